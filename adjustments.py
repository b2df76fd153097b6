"""
Adjustment Pipeline
Applies slider-style tone and color adjustments to an RGBA pixel buffer

Stage order is fixed: Temperature -> Tint -> Brightness -> Contrast ->
Highlights -> Shadows -> Whites -> Blacks -> Vibrance -> Saturation ->
Invert -> Clarity -> Vignette, then the whole-buffer grayscale / sepia
effects and finally sharpening on a snapshot of the processed image.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np

from pixel_buffer import (
    PixelBuffer,
    gray_level,
    iter_row_chunks,
    luminance,
    radial_falloff,
    split_channels,
    write_channels,
)

logger = logging.getLogger(__name__)

# Slider name -> (min, max)
SLIDER_RANGES: Dict[str, Tuple[float, float]] = {
    'temperature': (-100, 100),
    'tint': (-100, 100),
    'brightness': (-100, 100),
    'contrast': (-100, 100),
    'highlights': (-100, 100),
    'shadows': (-100, 100),
    'whites': (-100, 100),
    'blacks': (-100, 100),
    'vibrance': (-100, 100),
    'saturation': (-100, 100),
    'clarity': (-100, 100),
    'sharpness': (0, 100),
    'vignette': (-100, 100),
}

FLAG_FIELDS = ('grayscale', 'sepia', 'invert')

# Fields a preset is allowed to override
OVERRIDABLE_FIELDS = tuple(SLIDER_RANGES) + FLAG_FIELDS

MIDPOINT = 128.0

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])


@dataclass(frozen=True)
class AdjustmentParams:
    """Slider values (-100..100, sharpness 0..100), effect flags and active preset id"""
    temperature: float = 0
    tint: float = 0
    brightness: float = 0
    contrast: float = 0
    highlights: float = 0
    shadows: float = 0
    whites: float = 0
    blacks: float = 0
    vibrance: float = 0
    saturation: float = 0
    clarity: float = 0
    sharpness: float = 0
    vignette: float = 0
    grayscale: bool = False
    sepia: bool = False
    invert: bool = False
    preset: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'AdjustmentParams':
        """Build params from a plain mapping (config file, UI event); unknown keys are ignored"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown adjustment keys: {unknown}")
        return cls().merged({k: v for k, v in values.items() if k in known and k != 'preset'},
                            preset=values.get('preset'))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merged(self, overrides: Mapping[str, Any], preset: Optional[str] = None) -> 'AdjustmentParams':
        """
        Return a copy with the given fields overridden

        Only sliders and effect flags can be overridden; None values (empty
        YAML keys) are skipped and every other field keeps the current value.
        ``preset`` replaces the active preset id when given.
        """
        changes: Dict[str, Any] = {}
        for name in OVERRIDABLE_FIELDS:
            if name not in overrides:
                continue
            value = overrides[name]
            if value is None:
                continue
            if name in FLAG_FIELDS:
                changes[name] = bool(value)
            else:
                changes[name] = float(value)
        if preset is not None:
            changes['preset'] = preset
        return replace(self, **changes)

    def clamped(self) -> 'AdjustmentParams':
        """Copy with every slider forced into its allowed range"""
        changes = {}
        for name, (low, high) in SLIDER_RANGES.items():
            value = getattr(self, name)
            if value is None or not np.isfinite(value):
                changes[name] = 0
            else:
                changes[name] = max(low, min(high, value))
        return replace(self, **changes)


def create_reset_params() -> AdjustmentParams:
    """All sliders at 0, all effects off, no preset"""
    return AdjustmentParams()


def has_active_adjustments(params: AdjustmentParams) -> bool:
    """True if processing with ``params`` can change a pixel"""
    return (
        any(getattr(params, name) for name in SLIDER_RANGES)
        or params.grayscale
        or params.sepia
        or params.invert
    )


def _has_pixel_pass(params: AdjustmentParams) -> bool:
    return params.invert or any(
        getattr(params, name) for name in SLIDER_RANGES if name != 'sharpness'
    )


def _midtone_factor(lum: np.ndarray) -> np.ndarray:
    return 1 - np.abs(lum - 0.5) * 2


def _apply_temperature(r, g, b, temperature: float):
    """Warm (red up, blue down) or cool shift, stronger in highlights"""
    temp = temperature / 100
    influence = 0.5 + luminance(r, g, b) * 0.5
    if temp > 0:
        r = np.minimum(255, r + r * temp * 0.15 * influence)
        b = np.maximum(0, b - b * temp * 0.15 * influence)
    else:
        amount = abs(temp)
        b = np.minimum(255, b + b * amount * 0.15 * influence)
        r = np.maximum(0, r - r * amount * 0.1 * influence)
    return r, g, b


def _apply_tint(r, g, b, tint: float):
    """Magenta (positive) or green (negative) shift, strongest in midtones"""
    amount = tint / 100
    influence = _midtone_factor(luminance(r, g, b))
    if amount > 0:
        r = np.minimum(255, r + r * amount * 0.08 * influence)
        g = np.maximum(0, g - g * amount * 0.08 * influence)
        b = np.minimum(255, b + b * amount * 0.05 * influence)
    else:
        amount = abs(amount)
        g = np.minimum(255, g + g * amount * 0.08 * influence)
        r = np.maximum(0, r - r * amount * 0.05 * influence)
    return r, g, b


def _apply_brightness(r, g, b, brightness: float):
    factor = 1 + brightness / 100
    return r * factor, g * factor, b * factor


def _apply_contrast(r, g, b, contrast: float):
    factor = 1 + contrast / 100
    return (MIDPOINT + (r - MIDPOINT) * factor,
            MIDPOINT + (g - MIDPOINT) * factor,
            MIDPOINT + (b - MIDPOINT) * factor)


def _apply_highlights(r, g, b, highlights: float):
    lum = luminance(r, g, b)
    influence = np.where(lum > 0.5, (lum - 0.5) * 2, 0.0)
    factor = 1 + (highlights / 100) * 0.3 * influence
    return r * factor, g * factor, b * factor


def _apply_shadows(r, g, b, shadows: float):
    lum = luminance(r, g, b)
    influence = np.where(lum < 0.5, (0.5 - lum) * 2, 0.0)
    lift = (shadows / 100) * 30 * influence
    return r + lift, g + lift, b + lift


def _apply_whites(r, g, b, whites: float):
    lum = luminance(r, g, b)
    influence = np.where(lum > 0.8, (lum - 0.8) / 0.2, 0.0)
    factor = 1 + (whites / 100) * 0.2 * influence
    return r * factor, g * factor, b * factor


def _apply_blacks(r, g, b, blacks: float):
    """Lift (positive, additive) or crush (negative, multiplicative) the darkest tones"""
    lum = luminance(r, g, b)
    influence = np.where(lum < 0.2, (0.2 - lum) / 0.2, 0.0)
    amount = blacks / 100
    if amount > 0:
        lift = amount * 25 * influence
        return r + lift, g + lift, b + lift
    factor = 1 + amount * 0.3 * influence
    return r * factor, g * factor, b * factor


def _current_saturation(r, g, b) -> np.ndarray:
    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    return np.where(cmax > 0, (cmax - cmin) / np.where(cmax > 0, cmax, 1.0), 0.0)


def _scale_from_gray(r, g, b, factor):
    gray = gray_level(r, g, b)
    return (gray + (r - gray) * factor,
            gray + (g - gray) * factor,
            gray + (b - gray) * factor)


def _apply_vibrance(r, g, b, vibrance: float):
    """Saturation boost weighted toward muted pixels"""
    boost = 1 + (vibrance / 100) * 0.5 * (1 - _current_saturation(r, g, b))
    return _scale_from_gray(r, g, b, boost)


def _apply_saturation(r, g, b, saturation: float):
    return _scale_from_gray(r, g, b, 1 + saturation / 100)


def _apply_invert(r, g, b):
    return 255 - r, 255 - g, 255 - b


def _apply_clarity(r, g, b, clarity: float):
    """Midtone-weighted contrast around the 128 pivot"""
    factor = 1 + (clarity / 100) * 0.5 * _midtone_factor(luminance(r, g, b))
    return (MIDPOINT + (r - MIDPOINT) * factor,
            MIDPOINT + (g - MIDPOINT) * factor,
            MIDPOINT + (b - MIDPOINT) * factor)


def _apply_vignette(r, g, b, vignette: float, y0: int, width: int, height: int):
    """Radial darken (positive) or lighten (negative) from the image center"""
    falloff = radial_falloff(y0, r.shape[0], width, height)
    strength = vignette / 100
    if strength > 0:
        factor = np.maximum(0.2, 1 - falloff * strength * 0.7)
        return r * factor, g * factor, b * factor

    lighten = falloff * abs(strength) * 0.5
    return (np.minimum(255, r + (255 - r) * lighten),
            np.minimum(255, g + (255 - g) * lighten),
            np.minimum(255, b + (255 - b) * lighten))


def _adjust_rows(pixels: np.ndarray, params: AdjustmentParams, y0: int, width: int, height: int):
    """Run the per-pixel stages over a block of rows, rounding once at the end"""
    r, g, b = split_channels(pixels)

    if params.temperature:
        r, g, b = _apply_temperature(r, g, b, params.temperature)
    if params.tint:
        r, g, b = _apply_tint(r, g, b, params.tint)
    if params.brightness:
        r, g, b = _apply_brightness(r, g, b, params.brightness)
    if params.contrast:
        r, g, b = _apply_contrast(r, g, b, params.contrast)
    if params.highlights:
        r, g, b = _apply_highlights(r, g, b, params.highlights)
    if params.shadows:
        r, g, b = _apply_shadows(r, g, b, params.shadows)
    if params.whites:
        r, g, b = _apply_whites(r, g, b, params.whites)
    if params.blacks:
        r, g, b = _apply_blacks(r, g, b, params.blacks)
    if params.vibrance:
        r, g, b = _apply_vibrance(r, g, b, params.vibrance)
    if params.saturation:
        r, g, b = _apply_saturation(r, g, b, params.saturation)
    if params.invert:
        r, g, b = _apply_invert(r, g, b)
    if params.clarity:
        r, g, b = _apply_clarity(r, g, b, params.clarity)
    if params.vignette:
        r, g, b = _apply_vignette(r, g, b, params.vignette, y0, width, height)

    write_channels(pixels, r, g, b)


def apply_grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace every channel with the pixel's luminance"""
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer
    r, g, b = split_channels(pixels)
    gray = gray_level(r, g, b)
    write_channels(pixels, gray, gray, gray)
    return buffer


def apply_sepia(buffer: PixelBuffer) -> PixelBuffer:
    """Apply the classic sepia color matrix"""
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer
    rgb = pixels[..., :3].astype(np.float64)
    toned = rgb @ SEPIA_MATRIX.T
    write_channels(pixels, toned[..., 0], toned[..., 1], toned[..., 2])
    return buffer


def apply_sharpen(buffer: PixelBuffer, sharpness: float) -> PixelBuffer:
    """
    4-neighbor unsharp mask

    Reads from a snapshot of the buffer and writes interior pixels only;
    the outer row/column on each side is left as it is.

    Args:
        buffer: Buffer to sharpen in place
        sharpness: 0..100
    """
    amount = max(0.0, min(100.0, float(sharpness))) / 100
    if amount <= 0 or buffer.width < 3 or buffer.height < 3:
        return buffer

    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer
    snapshot = pixels[..., :3].astype(np.float64)

    center = snapshot[1:-1, 1:-1]
    blur = (snapshot[:-2, 1:-1] + snapshot[2:, 1:-1] + snapshot[1:-1, :-2] + snapshot[1:-1, 2:]) / 4
    sharpened = center + (center - blur) * amount * 1.5

    interior = pixels[1:-1, 1:-1]
    write_channels(interior, sharpened[..., 0], sharpened[..., 1], sharpened[..., 2])
    return buffer


def _finish(buffer: PixelBuffer, params: AdjustmentParams):
    if params.grayscale:
        apply_grayscale(buffer)
    if params.sepia:
        apply_sepia(buffer)
    if params.sharpness > 0:
        apply_sharpen(buffer, params.sharpness)


def iter_apply_adjustments(buffer: PixelBuffer, params: AdjustmentParams,
                           rows_per_chunk: int = 64) -> Iterator[int]:
    """
    Apply adjustments one group of rows at a time

    Yields the number of rows finished after each group so a cooperative
    caller can hand control back between groups. Whole-buffer effects and
    sharpening run after the last group. A malformed buffer is logged and
    left untouched without yielding.
    """
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return
    params = params.clamped()

    if _has_pixel_pass(params):
        for start, stop in iter_row_chunks(buffer.height, rows_per_chunk):
            _adjust_rows(pixels[start:stop], params, start, buffer.width, buffer.height)
            yield stop
    else:
        yield buffer.height

    _finish(buffer, params)


def apply_adjustments(buffer: PixelBuffer, params: AdjustmentParams,
                      rows_per_chunk: Optional[int] = None, workers: int = 1) -> PixelBuffer:
    """
    Apply all adjustments to ``buffer`` in place

    Args:
        buffer: Decoded RGBA8 buffer
        params: Slider values and effect flags
        rows_per_chunk: Rows per work unit (None processes the whole image at once)
        workers: Threads used to process row groups concurrently

    Returns:
        The same buffer; unchanged if it could not be processed
    """
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer

    params = params.clamped()
    if not has_active_adjustments(params):
        return buffer

    active = {k: v for k, v in params.to_dict().items() if v and k != 'preset'}
    logger.debug(f"Applying adjustments to {buffer.width}x{buffer.height}: {active}")

    if _has_pixel_pass(params):
        chunk = rows_per_chunk or buffer.height
        ranges = list(iter_row_chunks(buffer.height, chunk))
        if workers > 1 and len(ranges) > 1:
            # Row groups write to disjoint slices; vignette only reads image-wide constants
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(_adjust_rows, pixels[start:stop], params, start, buffer.width, buffer.height)
                    for start, stop in ranges
                ]
                for future in futures:
                    future.result()
        else:
            for start, stop in ranges:
                _adjust_rows(pixels[start:stop], params, start, buffer.width, buffer.height)

    _finish(buffer, params)
    return buffer
