import numpy as np
import pytest

from family_filters import (
    FAMILY_FILTERS,
    ColorPopLook,
    Family,
    MonoLook,
    PopEffect,
    SoftLook,
    apply_family_filter,
    get_family_filter,
    list_family_filters,
)
from pixel_buffer import PixelBuffer
from tests.helpers import solid

ALL_LOOKS = [look for looks in FAMILY_FILTERS.values() for look in looks]


def test_every_family_has_a_table():
    assert set(FAMILY_FILTERS) == set(Family)
    for family, looks in FAMILY_FILTERS.items():
        expected = 8 if family is Family.COLORPOP else 6
        assert len(looks) == expected
        assert all(look.family is family for look in looks)


def test_lookup_by_id():
    assert get_family_filter('bali').family is Family.WARM
    assert get_family_filter('noir', Family.MONO).vignette == 20
    assert get_family_filter('bali', Family.COOL) is None
    assert get_family_filter('missing') is None
    assert [look.id for look in list_family_filters(Family.VIVID)][0] == 'chroma'


def test_colorpop_effect_tags():
    assert get_family_filter('outrun').effect is PopEffect.DUOTONE
    assert get_family_filter('poster').effect is PopEffect.POSTERIZE
    assert get_family_filter('amethyst').effect is None


@pytest.mark.parametrize('look', ALL_LOOKS, ids=lambda look: f"{look.family.value}-{look.id}")
def test_transparent_pixels_untouched(look, gradient_buffer):
    apply_family_filter(gradient_buffer, look)
    assert gradient_buffer.get_pixel(0, 0) == (200, 40, 90, 5)
    assert np.all(gradient_buffer.pixels()[..., 3][1:] == 255)


@pytest.mark.parametrize('look', ALL_LOOKS, ids=lambda look: f"{look.family.value}-{look.id}")
def test_chunking_does_not_change_result(look, gradient_buffer):
    chunked = gradient_buffer.copy()
    apply_family_filter(gradient_buffer, look)
    apply_family_filter(chunked, look, rows_per_chunk=2)
    np.testing.assert_array_equal(gradient_buffer.data, chunked.data)


def test_natural_soft_haze_on_gray():
    buffer = solid((128, 128, 128, 255))
    get_family_filter('myst').apply(buffer)
    assert buffer.get_pixel(0, 0) == (140, 140, 140, 255)


def test_warm_shifts_red_up_blue_down():
    buffer = solid((100, 100, 100, 255))
    apply_family_filter(buffer, get_family_filter('bali'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert r > 100 > b


def test_cool_shifts_blue_up_red_down():
    buffer = solid((100, 100, 100, 255))
    apply_family_filter(buffer, get_family_filter('tundra'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert b > 100 > r


def test_vivid_saturates():
    buffer = solid((150, 100, 80, 255))
    apply_family_filter(buffer, get_family_filter('chroma'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert r - b > 150 - 80


def test_soft_rolls_off_highlights():
    buffer = solid((255, 255, 255, 255))
    apply_family_filter(buffer, get_family_filter('aura'))
    assert all(channel < 255 for channel in buffer.get_pixel(0, 0)[:3])


def test_vintage_lifts_blacks():
    buffer = solid((0, 0, 0, 255))
    apply_family_filter(buffer, get_family_filter('fade'))
    assert all(channel > 40 for channel in buffer.get_pixel(0, 0)[:3])


def test_mono_outputs_gray(gradient_buffer):
    apply_family_filter(gradient_buffer, get_family_filter('ink'))
    pixels = gradient_buffer.pixels()[1:]
    np.testing.assert_array_equal(pixels[..., 0], pixels[..., 1])
    np.testing.assert_array_equal(pixels[..., 1], pixels[..., 2])


def test_mono_vignette_darkens_corners():
    buffer = solid((180, 180, 180, 255), width=9, height=9)
    apply_family_filter(buffer, MonoLook('test', 'Test', contrast=1.0, brightness=0,
                                         black_point=0, white_point=100, gamma=1.0, vignette=50))
    assert buffer.get_pixel(0, 0)[0] < buffer.get_pixel(4, 4)[0]


def test_colorpop_leaves_neutral_gray_neutral():
    buffer = solid((128, 128, 128, 255))
    apply_family_filter(buffer, get_family_filter('amethyst'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert r == g == b


def test_colorpop_pulls_hue_toward_primary():
    buffer = solid((60, 160, 60, 255))
    apply_family_filter(buffer, get_family_filter('amethyst'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert b > g and b > r


def test_posterize_keeps_strong_reds():
    buffer = solid((220, 20, 20, 255))
    apply_family_filter(buffer, get_family_filter('poster'))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert r > 200 and g < 40 and b < 40


def test_malformed_buffer_returned_unchanged():
    buffer = PixelBuffer(width=3, height=1, data=np.zeros(4, dtype=np.uint8))
    assert apply_family_filter(buffer, get_family_filter('bali')) is buffer
    np.testing.assert_array_equal(buffer.data, np.zeros(4, dtype=np.uint8))


def pop_look(effect=None, primary_hue=240.0, contrast=0.0):
    return ColorPopLook('test', 'Test', primary_hue=primary_hue, saturation_boost=0,
                        contrast=contrast, effect=effect)


def test_duotone_uses_primary_hue_in_shadows_and_secondary_in_highlights():
    # heatwave: shadows pulled toward 200, highlights toward 0, influence 0.4
    # dark red l=20: target 160, hue 0 -> 44.8, l -> 50 + (20 - 50) * 1.075
    dark = solid((102, 0, 0, 255))
    apply_family_filter(dark, get_family_filter('heatwave'))
    assert dark.get_pixel(0, 0) == (91, 68, 0, 255)

    # light red l=80: target 40, hue 0 -> 11.2, l -> 82.25
    light = solid((255, 153, 153, 255))
    apply_family_filter(light, get_family_filter('heatwave'))
    assert light.get_pixel(0, 0) == (255, 181, 164, 255)


def test_vintage_effect_shifts_hue_away_from_cyan():
    # (240 - 180) * 0.15 * 1.0 = 9 degrees
    buffer = solid((255, 0, 0, 255))
    apply_family_filter(buffer, pop_look(PopEffect.VINTAGE))
    assert buffer.get_pixel(0, 0) == (255, 38, 0, 255)


def test_crossprocess_effect_moves_quarter_way_to_primary():
    # (60 - 0) * 0.25 * 1.0 = 15 degrees
    buffer = solid((255, 0, 0, 255))
    apply_family_filter(buffer, pop_look(PopEffect.CROSSPROCESS, primary_hue=60))
    assert buffer.get_pixel(0, 0) == (255, 64, 0, 255)


def test_colorpop_contrast_only_moves_lightness():
    # Neutral pixels have no influence; l = 50 + (l - 50) * (1 + 100 / 200)
    shadow = solid((64, 64, 64, 255))
    highlight = solid((192, 192, 192, 255))
    apply_family_filter(shadow, pop_look(contrast=100))
    apply_family_filter(highlight, pop_look(contrast=100))
    assert shadow.get_pixel(0, 0) == (32, 32, 32, 255)
    assert highlight.get_pixel(0, 0) == (224, 224, 224, 255)


def test_soft_tint_blend_is_midtone_weighted():
    look = SoftLook('test', 'Test', contrast=1.0, highlight_softness=0, shadow_lift=0,
                    color_tint=(255, 0, 0), tint_strength=0.5, saturation=1.0,
                    brightness=0, warmth=0)
    # amount = 0.5 * (1 - |128/255 - 0.5| * 2) ~= 0.498
    mid = solid((128, 128, 128, 255))
    apply_family_filter(mid, look)
    assert mid.get_pixel(0, 0) == (191, 64, 64, 255)

    # Black and white have a zero midtone factor
    for rgba in [(0, 0, 0, 255), (255, 255, 255, 255)]:
        buffer = solid(rgba)
        apply_family_filter(buffer, look)
        assert buffer.get_pixel(0, 0) == rgba
