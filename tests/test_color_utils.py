import numpy as np
import pytest

from color_utils import (
    CMYK,
    RGB,
    cmyk_to_hex,
    cmyk_to_rgb,
    darken,
    generate_palette,
    get_contrast_color,
    hex_to_cmyk,
    hex_to_rgb,
    hsl_to_rgb,
    hsl_to_rgb_array,
    lighten,
    mix_colors,
    parse_color,
    rgb_to_cmyk,
    rgb_to_hex,
    rgb_to_hsl,
    rgb_to_hsl_array,
)

SAMPLES = [
    (0, 0, 0), (255, 255, 255), (128, 128, 128), (255, 0, 0), (0, 255, 0), (0, 0, 255),
    (128, 64, 32), (12, 200, 180), (250, 240, 10), (77, 1, 199), (33, 33, 34), (201, 99, 150),
]


def test_hex_to_rgb_parses_case_insensitive():
    assert hex_to_rgb('#FF0000') == RGB(255, 0, 0)
    assert hex_to_rgb('00ff7f') == RGB(0, 255, 127)


@pytest.mark.parametrize('value', ['#fff', '#12345g', 'red', '', None, '#1234567'])
def test_hex_to_rgb_rejects_malformed(value):
    assert hex_to_rgb(value) is None


def test_rgb_to_hex_clamps_and_pads():
    assert rgb_to_hex(255, 0, 16) == '#ff0010'
    assert rgb_to_hex(300, -4, 127.5) == '#ff0080'


def test_rgb_to_hsl_rounds_to_whole_units():
    assert rgb_to_hsl(255, 0, 0) == (0, 100, 50)
    assert rgb_to_hsl(128, 128, 128) == (0, 0, 50)
    assert rgb_to_hsl(0, 0, 255) == (240, 100, 50)


def test_hsl_to_rgb_primary_colors():
    assert hsl_to_rgb(0, 100, 50) == RGB(255, 0, 0)
    assert hsl_to_rgb(120, 100, 50) == RGB(0, 255, 0)
    assert hsl_to_rgb(360, 100, 50) == RGB(255, 0, 0)


@pytest.mark.parametrize('rgb', SAMPLES)
def test_rgb_hsl_round_trip_within_one(rgb):
    back = hsl_to_rgb(*rgb_to_hsl(*rgb, precise=True))
    assert all(abs(a - b) <= 1 for a, b in zip(back, rgb))


def test_rgb_to_cmyk_red():
    assert rgb_to_cmyk(255, 0, 0) == CMYK(0, 100, 100, 0)


def test_rgb_to_cmyk_black_avoids_division_by_zero():
    assert rgb_to_cmyk(0, 0, 0) == CMYK(0, 0, 0, 100)


def test_cmyk_concrete_value_round_trips():
    assert rgb_to_cmyk(128, 64, 32) == CMYK(0, 50, 75, 50)
    assert cmyk_to_rgb(0, 50, 75, 50) == RGB(128, 64, 32)


@pytest.mark.parametrize('rgb', SAMPLES)
def test_rgb_cmyk_round_trip_within_one(rgb):
    back = cmyk_to_rgb(*rgb_to_cmyk(*rgb))
    assert all(abs(a - b) <= 1 for a, b in zip(back, rgb))


def test_hex_cmyk_helpers():
    assert hex_to_cmyk('#ff0000') == CMYK(0, 100, 100, 0)
    assert hex_to_cmyk('nope') is None
    assert cmyk_to_hex(0, 0, 0, 100) == '#000000'


def test_lighten_and_darken_clamp_lightness():
    assert lighten('#808080', 10) == '#999999'
    assert darken('#101010', 50) == '#000000'
    assert lighten('#ffffff', 20) == '#ffffff'


def test_lighten_returns_malformed_input_unchanged():
    assert lighten('bogus', 10) == 'bogus'
    assert darken('bogus', 10) == 'bogus'


def test_mix_colors_weight_and_clamp():
    assert mix_colors('#000000', '#ffffff') == '#808080'
    assert mix_colors('#000000', '#ffffff', 2.0) == '#ffffff'
    assert mix_colors('#000000', '#ffffff', -1.0) == '#000000'
    assert mix_colors('#123456', 'bad') == '#123456'


def test_get_contrast_color():
    assert get_contrast_color('#ffffff') == '#000000'
    assert get_contrast_color('#000080') == '#ffffff'


@pytest.mark.parametrize('text, expected', [
    ('#A1B2C3', '#A1B2C3'),
    ('#abc', '#aabbcc'),
    ('rgb(255, 0, 0)', '#ff0000'),
    ('hsl(120, 100%, 50%)', '#00ff00'),
    ('transparent', None),
    ('#abcd', None),
])
def test_parse_color(text, expected):
    assert parse_color(text) == expected


def test_generate_palette_centers_on_base():
    palette = generate_palette('#808080', 5)
    assert palette == ['#333333', '#595959', '#808080', '#a6a6a6', '#cccccc']


def test_generate_palette_clamps_lightness():
    palette = generate_palette('#ffffff', 5)
    assert palette[-1] == '#e6e6e6'
    assert generate_palette('nope') == ['nope']


def test_vectorized_hsl_matches_scalar():
    rgb = np.array(SAMPLES, dtype=np.float64)
    h, s, l = rgb_to_hsl_array(rgb[:, 0], rgb[:, 1], rgb[:, 2])
    for i, sample in enumerate(SAMPLES):
        expected = rgb_to_hsl(*sample, precise=True)
        assert h[i] == pytest.approx(expected.h)
        assert s[i] == pytest.approx(expected.s)
        assert l[i] == pytest.approx(expected.l)

    r, g, b = hsl_to_rgb_array(h, s, l)
    np.testing.assert_allclose(np.stack([r, g, b], axis=1), rgb, atol=1e-6)
