"""
Color Replace
Recolors the saturated subject of an image toward a target color, leaving neutral backgrounds alone
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from color_utils import hex_to_rgb, hsl_to_rgb_array, rgb_to_hsl, rgb_to_hsl_array
from pixel_buffer import PixelBuffer, iter_row_chunks, opaque_mask, split_channels, write_channels

logger = logging.getLogger(__name__)

# Quick-pick colors
COLOR_PALETTE: Tuple[Tuple[str, str], ...] = (
    ('Purple', '#9333EA'),
    ('Blue', '#3B82F6'),
    ('Green', '#10B981'),
    ('Yellow', '#F59E0B'),
    ('Red', '#EF4444'),
    ('Pink', '#EC4899'),
    ('Teal', '#14B8A6'),
    ('Orange', '#F97316'),
)


class BlendMode(Enum):
    HUE = 'hue'
    MULTIPLY = 'multiply'
    SCREEN = 'screen'
    OVERLAY = 'overlay'


@dataclass(frozen=True)
class ColorReplaceEffect:
    target_color: str
    intensity: float = 100
    blend_mode: BlendMode = BlendMode.HUE

    @classmethod
    def from_dict(cls, values: Dict) -> 'ColorReplaceEffect':
        return cls(
            target_color=values['target_color'],
            intensity=float(values.get('intensity', 100)),
            blend_mode=BlendMode(values.get('blend_mode', 'hue')),
        )


def _color_strength(s: np.ndarray, l: np.ndarray) -> np.ndarray:
    """Per-pixel recolor strength; 0 for background, shadows and highlights"""
    subject = (s > 20) & (l > 20) & (l < 90)
    muted = (s > 10) & (l > 30) & (l < 80)
    return np.where(subject, np.minimum(1, s / 60),
                    np.where(muted, np.minimum(0.5, s / 80), 0.0))


def _blend(h, s, l, target_h: float, target_s: float, mode: BlendMode):
    """Fully recolored (h, s, l) for one blend mode, before intensity mixing"""
    new_h = np.full_like(h, target_h)
    if mode is BlendMode.HUE:
        return new_h, np.minimum(100, s + (target_s - s) * 0.4), l
    if mode is BlendMode.MULTIPLY:
        return new_h, np.minimum(100, s * 1.2), l * 0.9
    if mode is BlendMode.SCREEN:
        return new_h, s * 0.8, l + (100 - l) * 0.2
    # Overlay
    return new_h, s, np.where(l < 50, l * 0.95, l + (100 - l) * 0.1)


def apply_color_replacement(buffer: PixelBuffer, effect: ColorReplaceEffect,
                            rows_per_chunk: Optional[int] = None) -> PixelBuffer:
    """
    Recolor ``buffer`` in place

    Args:
        buffer: Decoded RGBA8 buffer
        effect: Target color, intensity 0-100 and blend mode
        rows_per_chunk: Rows per work unit (None processes the whole image at once)

    Returns:
        The same buffer; unchanged if it or the target color is invalid
    """
    target = hex_to_rgb(effect.target_color)
    if target is None:
        logger.warning(f"Invalid target color '{effect.target_color}', skipping color replacement")
        return buffer

    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer

    target_h, target_s, _ = rgb_to_hsl(*target, precise=True)
    intensity = effect.intensity / 100
    logger.debug(f"Replacing colors with {effect.target_color} ({effect.blend_mode.value}, {effect.intensity}%)")

    for start, stop in iter_row_chunks(buffer.height, rows_per_chunk or buffer.height):
        block = pixels[start:stop]
        r, g, b = split_channels(block)
        h, s, l = rgb_to_hsl_array(r, g, b)

        strength = _color_strength(s, l)
        new_h, new_s, new_l = _blend(h, s, l, target_h, target_s, effect.blend_mode)

        amount = intensity * strength
        final_h = h + (new_h - h) * amount
        final_s = np.clip(s + (new_s - s) * amount, 0, 100)
        final_l = np.clip(new_l, 0, 100)

        out_r, out_g, out_b = hsl_to_rgb_array(final_h, final_s, final_l)
        mask = opaque_mask(block) & (strength > 0)
        write_channels(block, out_r, out_g, out_b, mask=mask)
    return buffer
