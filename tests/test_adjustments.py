import math

import numpy as np
import pytest

from adjustments import (
    AdjustmentParams,
    SLIDER_RANGES,
    _apply_contrast,
    _apply_temperature,
    apply_adjustments,
    apply_grayscale,
    apply_sepia,
    apply_sharpen,
    create_reset_params,
    has_active_adjustments,
    iter_apply_adjustments,
)
from pixel_buffer import PixelBuffer
from tests.helpers import solid


def test_default_params_leave_buffer_identical(gradient_buffer):
    before = gradient_buffer.data.copy()
    result = apply_adjustments(gradient_buffer, AdjustmentParams())
    assert result is gradient_buffer
    np.testing.assert_array_equal(gradient_buffer.data, before)


def test_reset_params_are_inactive():
    params = create_reset_params()
    assert params == AdjustmentParams()
    assert not has_active_adjustments(params)
    assert has_active_adjustments(AdjustmentParams(sepia=True))
    assert has_active_adjustments(AdjustmentParams(sharpness=5))


def test_contrast_keeps_midtone_gray():
    buffer = solid((128, 128, 128, 255))
    apply_adjustments(buffer, AdjustmentParams(contrast=50))
    assert buffer.get_pixel(0, 0) == (128, 128, 128, 255)


def test_contrast_expands_around_pivot():
    buffer = solid((100, 150, 128, 255))
    apply_adjustments(buffer, AdjustmentParams(contrast=50))
    assert buffer.get_pixel(0, 0) == (86, 161, 128, 255)


def test_brightness_is_multiplicative():
    buffer = solid((100, 50, 0, 255))
    apply_adjustments(buffer, AdjustmentParams(brightness=20))
    assert buffer.get_pixel(0, 0) == (120, 60, 0, 255)


def test_invert():
    buffer = solid((10, 20, 30, 255))
    apply_adjustments(buffer, AdjustmentParams(invert=True))
    assert buffer.get_pixel(0, 0) == (245, 235, 225, 255)


def test_saturation_minus_100_gives_gray():
    buffer = solid((200, 100, 50, 255))
    apply_adjustments(buffer, AdjustmentParams(saturation=-100))
    r, g, b, _ = buffer.get_pixel(0, 0)
    assert r == g == b == 124


def test_temperature_warms_and_cools():
    warm = solid((120, 120, 120, 255))
    apply_adjustments(warm, AdjustmentParams(temperature=80))
    r, g, b, _ = warm.get_pixel(0, 0)
    assert r > 120 and g == 120 and b < 120

    cool = solid((120, 120, 120, 255))
    apply_adjustments(cool, AdjustmentParams(temperature=-80))
    r, g, b, _ = cool.get_pixel(0, 0)
    assert r < 120 and b > 120


def test_shadows_lift_only_dark_pixels():
    buffer = PixelBuffer.from_array(np.array([[[30, 30, 30, 255], [220, 220, 220, 255]]], dtype=np.uint8))
    apply_adjustments(buffer, AdjustmentParams(shadows=100))
    assert buffer.get_pixel(0, 0)[0] > 30
    assert buffer.get_pixel(1, 0)[0] == 220


def test_blacks_lift_and_crush():
    lifted = solid((10, 10, 10, 255))
    apply_adjustments(lifted, AdjustmentParams(blacks=100))
    assert lifted.get_pixel(0, 0)[0] > 10

    crushed = solid((10, 10, 10, 255))
    apply_adjustments(crushed, AdjustmentParams(blacks=-100))
    assert crushed.get_pixel(0, 0)[0] < 10


def test_transparent_pixel_untouched_by_every_stage():
    params = AdjustmentParams(**{name: high for name, (_, high) in SLIDER_RANGES.items()},
                              grayscale=True, sepia=True, invert=True)
    pixels = np.full((3, 3, 4), 90, dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[1, 1] = (200, 40, 90, 5)
    buffer = PixelBuffer.from_array(pixels)

    apply_adjustments(buffer, params)
    assert buffer.get_pixel(1, 1) == (200, 40, 90, 5)


def test_extreme_values_stay_in_range(gradient_buffer):
    apply_adjustments(gradient_buffer, AdjustmentParams(brightness=100, contrast=100, shadows=100,
                                                        vibrance=100, saturation=100, clarity=100))
    pixels = gradient_buffer.pixels()
    assert pixels.dtype == np.uint8
    assert gradient_buffer.data.size == 8 * 6 * 4


def test_out_of_range_sliders_are_clamped():
    params = AdjustmentParams(contrast=500, sharpness=-20, tint=math.nan).clamped()
    assert params.contrast == 100
    assert params.sharpness == 0
    assert params.tint == 0

    clamped = solid((100, 150, 128, 255))
    apply_adjustments(clamped, AdjustmentParams(contrast=500))
    reference = solid((100, 150, 128, 255))
    apply_adjustments(reference, AdjustmentParams(contrast=100))
    assert clamped.get_pixel(0, 0) == reference.get_pixel(0, 0)


def test_temperature_and_contrast_do_not_commute():
    r, g, b = np.array([200.0]), np.array([100.0]), np.array([50.0])

    first = _apply_contrast(*_apply_temperature(r, g, b, 50), 50)
    second = _apply_temperature(*_apply_contrast(r, g, b, 50), 50)
    assert not np.allclose(np.stack(first), np.stack(second))


def test_processing_is_deterministic(gradient_buffer):
    params = AdjustmentParams(temperature=30, tint=-20, contrast=25, clarity=40, vignette=50, sharpness=30)
    other = gradient_buffer.copy()
    apply_adjustments(gradient_buffer, params)
    apply_adjustments(other, params)
    np.testing.assert_array_equal(gradient_buffer.data, other.data)


def test_chunked_and_threaded_runs_match_single_pass(gradient_buffer):
    params = AdjustmentParams(temperature=30, highlights=40, whites=20, vignette=60, sharpness=50)
    single = gradient_buffer.copy()
    chunked = gradient_buffer.copy()
    threaded = gradient_buffer.copy()

    apply_adjustments(single, params)
    apply_adjustments(chunked, params, rows_per_chunk=2)
    apply_adjustments(threaded, params, rows_per_chunk=1, workers=3)

    np.testing.assert_array_equal(single.data, chunked.data)
    np.testing.assert_array_equal(single.data, threaded.data)


def test_iter_apply_yields_progress(gradient_buffer):
    params = AdjustmentParams(contrast=20, vignette=-40)
    reference = gradient_buffer.copy()
    apply_adjustments(reference, params)

    progress = list(iter_apply_adjustments(gradient_buffer, params, rows_per_chunk=4))
    assert progress == [4, 6]
    np.testing.assert_array_equal(gradient_buffer.data, reference.data)


def test_iter_apply_leaves_malformed_buffer(caplog):
    buffer = PixelBuffer(width=2, height=2, data=np.arange(5, dtype=np.uint8))
    assert list(iter_apply_adjustments(buffer, AdjustmentParams(contrast=10))) == []
    np.testing.assert_array_equal(buffer.data, np.arange(5, dtype=np.uint8))
    assert 'Cannot acquire pixel buffer' in caplog.text


@pytest.mark.parametrize('post_pass', [
    apply_grayscale,
    apply_sepia,
    lambda buffer: apply_sharpen(buffer, 50),
], ids=['grayscale', 'sepia', 'sharpen'])
def test_post_passes_return_malformed_buffer(post_pass):
    buffer = PixelBuffer(width=4, height=4, data=np.arange(10, dtype=np.uint8))
    assert post_pass(buffer) is buffer
    np.testing.assert_array_equal(buffer.data, np.arange(10, dtype=np.uint8))


def test_malformed_buffer_returned_unchanged():
    buffer = PixelBuffer(width=2, height=2, data=np.arange(5, dtype=np.uint8))
    result = apply_adjustments(buffer, AdjustmentParams(contrast=10))
    assert result is buffer
    np.testing.assert_array_equal(buffer.data, np.arange(5, dtype=np.uint8))


def test_vignette_darkens_corners_more_than_center():
    buffer = solid((200, 200, 200, 255), width=9, height=9)
    apply_adjustments(buffer, AdjustmentParams(vignette=100))
    assert buffer.get_pixel(0, 0)[0] < buffer.get_pixel(4, 4)[0]


def test_negative_vignette_lightens_corners():
    buffer = solid((100, 100, 100, 255), width=9, height=9)
    apply_adjustments(buffer, AdjustmentParams(vignette=-100))
    assert buffer.get_pixel(0, 0)[0] > 100


def test_grayscale_equalizes_channels():
    buffer = solid((200, 100, 50, 255))
    apply_grayscale(buffer)
    assert buffer.get_pixel(0, 0) == (124, 124, 124, 255)


def test_sepia_matrix():
    buffer = solid((255, 255, 255, 255))
    apply_sepia(buffer)
    assert buffer.get_pixel(0, 0) == (255, 255, 239, 255)


def test_sharpen_leaves_border_and_flat_areas():
    flat = solid((80, 120, 160, 255), width=4, height=4)
    before = flat.data.copy()
    apply_sharpen(flat, 100)
    np.testing.assert_array_equal(flat.data, before)

    pixels = np.full((3, 3, 4), 100, dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[1, 1, :3] = 120
    buffer = PixelBuffer.from_array(pixels)
    apply_sharpen(buffer, 100)
    # center + (center - blur) * 1.0 * 1.5 = 120 + 20 * 1.5
    assert buffer.get_pixel(1, 1) == (150, 150, 150, 255)
    assert buffer.get_pixel(0, 0) == (100, 100, 100, 255)
    assert buffer.get_pixel(2, 1) == (100, 100, 100, 255)


def test_sharpen_skips_tiny_buffers():
    buffer = solid((10, 20, 30, 255), width=2, height=2)
    before = buffer.data.copy()
    apply_sharpen(buffer, 80)
    np.testing.assert_array_equal(buffer.data, before)


def test_merged_overrides_only_named_fields():
    base = AdjustmentParams(contrast=5, sharpness=20)
    merged = base.merged({'contrast': 30, 'grayscale': 1}, preset='custom')
    assert merged.contrast == 30
    assert merged.sharpness == 20
    assert merged.grayscale is True
    assert merged.preset == 'custom'
    assert base.contrast == 5


def test_from_dict_ignores_unknown_keys():
    params = AdjustmentParams.from_dict({'contrast': '12', 'exposure': 3, 'preset': 'x'})
    assert params.contrast == 12.0
    assert params.preset == 'x'
    assert params.to_dict()['contrast'] == 12.0


def test_empty_config_values_are_skipped():
    params = AdjustmentParams.from_dict({'sharpness': None, 'contrast': 15, 'sepia': None})
    assert params.sharpness == 0
    assert params.contrast == 15.0
    assert params.sepia is False
    assert AdjustmentParams(vignette=30).merged({'vignette': None}).vignette == 30
