"""
Filter Presets
Named presets expressed as sparse slider overrides, applied through the adjustment pipeline
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from adjustments import OVERRIDABLE_FIELDS, AdjustmentParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterCategory:
    id: str
    name: str


@dataclass(frozen=True)
class FilterPreset:
    """A named look: category tag plus the slider fields it overrides"""
    id: str
    name: str
    category: str
    values: Mapping[str, Any] = field(default_factory=dict)
    description: str = ''

    def __post_init__(self):
        unknown = set(self.values) - set(OVERRIDABLE_FIELDS)
        if unknown:
            raise ValueError(f"Preset '{self.id}' overrides unknown fields: {sorted(unknown)}")


FILTER_CATEGORIES: Tuple[FilterCategory, ...] = (
    FilterCategory('natural', 'Pure'),
    FilterCategory('warm', 'Sun'),
    FilterCategory('cool', 'Ice'),
    FilterCategory('vivid', 'Bold'),
    FilterCategory('soft', 'Dream'),
    FilterCategory('vintage', 'Film'),
    FilterCategory('mono', 'B&W'),
    FilterCategory('colorpop', 'Neon'),
    FilterCategory('lut', 'Cinematic'),
)

FILTER_PRESETS: Tuple[FilterPreset, ...] = (
    # Natural
    FilterPreset('fresco', 'Clear', 'natural', {'contrast': 10, 'saturation': 5, 'clarity': 10}),
    FilterPreset('belvedere', 'Deep', 'natural', {'contrast': 8, 'brightness': 5, 'vibrance': 10}),
    FilterPreset('flint', 'Stone', 'natural', {'contrast': 5, 'saturation': -5, 'clarity': 15}),
    FilterPreset('luna', 'Moon', 'natural', {'brightness': 5, 'contrast': 5, 'shadows': 10}),
    FilterPreset('aero', 'Air', 'natural', {'clarity': 20, 'contrast': 10, 'vibrance': 5}),
    FilterPreset('myst', 'Haze', 'natural', {'brightness': 10, 'contrast': -5, 'saturation': -10}),
    # Warm
    FilterPreset('bali', 'Coast', 'warm', {'temperature': 25, 'saturation': 10, 'vibrance': 15}),
    FilterPreset('capri', 'Golden', 'warm', {'temperature': 20, 'contrast': 10, 'highlights': 10}),
    FilterPreset('latte', 'Cream', 'warm', {'temperature': 30, 'brightness': 5, 'saturation': -5}),
    FilterPreset('bronz', 'Amber', 'warm', {'temperature': 35, 'contrast': 15, 'vibrance': 10}),
    FilterPreset('sandi', 'Desert', 'warm', {'temperature': 20, 'highlights': 15, 'saturation': 5}),
    FilterPreset('sangri', 'Ruby', 'warm', {'temperature': 25, 'tint': 5, 'contrast': 10}),
    # Cool
    FilterPreset('scandi', 'Nord', 'cool', {'temperature': -15, 'contrast': 5, 'clarity': 10}),
    FilterPreset('nordic', 'Frost', 'cool', {'temperature': -20, 'saturation': -5, 'shadows': -10}),
    FilterPreset('astro', 'Cosmic', 'cool', {'temperature': -25, 'contrast': 15, 'vibrance': 10}),
    FilterPreset('arctic', 'Ice', 'cool', {'temperature': -30, 'brightness': 10, 'saturation': -10}),
    FilterPreset('polar', 'Cold', 'cool', {'temperature': -20, 'highlights': 15, 'contrast': 5}),
    FilterPreset('tundra', 'Gray', 'cool', {'temperature': -25, 'saturation': -15, 'clarity': 15}),
    # Vivid
    FilterPreset('chroma', 'Boost', 'vivid', {'saturation': 40, 'vibrance': 30, 'contrast': 15}),
    FilterPreset('rustiq', 'Earth', 'vivid', {'saturation': 30, 'temperature': 10, 'contrast': 20}),
    FilterPreset('eldar', 'Bright', 'vivid', {'saturation': 35, 'clarity': 20, 'vibrance': 25}),
    FilterPreset('zeal', 'Impact', 'vivid', {'saturation': 45, 'contrast': 20, 'brightness': 5}),
    FilterPreset('aria', 'Vivid', 'vivid', {'vibrance': 40, 'saturation': 25, 'highlights': 10}),
    FilterPreset('stark', 'Hard', 'vivid', {'contrast': 30, 'saturation': 20, 'clarity': 25}),
    # Soft
    FilterPreset('aura', 'Glow', 'soft', {'contrast': -15, 'brightness': 10, 'saturation': -10}),
    FilterPreset('hazel', 'Fog', 'soft', {'contrast': -10, 'temperature': 5, 'shadows': 15}),
    FilterPreset('whimsi', 'Soft', 'soft', {'saturation': -15, 'brightness': 15, 'contrast': -20}),
    FilterPreset('rose', 'Blush', 'soft', {'tint': 10, 'contrast': -10, 'saturation': -5}),
    FilterPreset('oceanic', 'Breeze', 'soft', {'temperature': -10, 'contrast': -15, 'saturation': -10}),
    FilterPreset('nimbus', 'Cloud', 'soft', {'brightness': 20, 'contrast': -20, 'clarity': -10}),
    # Vintage
    FilterPreset('vinto', 'Old', 'vintage', {'blacks': 20, 'temperature': 15, 'saturation': -15}),
    FilterPreset('fade', 'Matte', 'vintage', {'blacks': 30, 'contrast': -10, 'saturation': -20}),
    FilterPreset('antiq', 'Sepia', 'vintage', {'sepia': True, 'blacks': 15, 'temperature': 20}),
    FilterPreset('nostalg', 'Memory', 'vintage', {'temperature': 10, 'blacks': 25, 'vibrance': -20}),
    FilterPreset('dream', 'Dreamy', 'vintage', {'brightness': 10, 'blacks': 20, 'saturation': -25}),
    FilterPreset('retro', 'Analog', 'vintage', {'temperature': 15, 'contrast': 10, 'blacks': 15}),
    # Mono
    FilterPreset('classic', 'Mono', 'mono', {'grayscale': True, 'contrast': 10}),
    FilterPreset('ink', 'Ink', 'mono', {'grayscale': True, 'contrast': 30, 'blacks': -10}),
    FilterPreset('noir', 'Noir', 'mono', {'grayscale': True, 'contrast': 40, 'vignette': 30}),
    FilterPreset('film', 'Grain', 'mono', {'grayscale': True, 'blacks': 15, 'contrast': 15}),
    FilterPreset('newspaper', 'Print', 'mono', {'grayscale': True, 'contrast': 50}),
    FilterPreset('slate', 'Urban', 'mono', {'grayscale': True, 'contrast': 5, 'brightness': 10}),
    # Color pop
    FilterPreset('outrun', 'Neon', 'colorpop', {'saturation': 50, 'contrast': 25, 'tint': 20}),
    FilterPreset('heatwave', 'Heat', 'colorpop', {'temperature': -30, 'saturation': 50, 'contrast': 25}),
    FilterPreset('amethyst', 'Purple', 'colorpop', {'tint': 30, 'saturation': 35, 'contrast': 15}),
    FilterPreset('minty', 'Mint', 'colorpop', {'temperature': -30, 'saturation': 30, 'vibrance': 35}),
    FilterPreset('hibiscus', 'Pink', 'colorpop', {'tint': 35, 'saturation': 45, 'temperature': 10}),
    FilterPreset('poster', 'Graphic', 'colorpop', {'contrast': 50, 'saturation': 30, 'clarity': 30}),
    FilterPreset('xpro-', 'X-Dark', 'colorpop',
                 {'temperature': -15, 'contrast': 25, 'blacks': 20, 'saturation': -10}),
    FilterPreset('xpro+', 'X-Light', 'colorpop',
                 {'temperature': 25, 'contrast': 30, 'saturation': 20, 'vibrance': 25}),
    # Cinematic grades
    FilterPreset('lut-natural', 'Natural', 'lut',
                 {'brightness': 5, 'contrast': 5, 'vibrance': 10, 'saturation': 5, 'clarity': 10}),
    FilterPreset('lut-bright', 'Bright', 'lut',
                 {'brightness': 20, 'contrast': -5, 'highlights': 15, 'vibrance': 15, 'saturation': 10}),
    FilterPreset('lut-cinematic', 'Cinematic', 'lut',
                 {'temperature': -5, 'brightness': -5, 'contrast': 30, 'saturation': -10, 'clarity': 20,
                  'vignette': 25}),
    FilterPreset('lut-teal-orange', 'Teal & Orange', 'lut',
                 {'temperature': 15, 'tint': -10, 'contrast': 20, 'vibrance': 20, 'saturation': 15,
                  'vignette': 15}),
    FilterPreset('lut-vibrant', 'Vibrant', 'lut',
                 {'brightness': 5, 'contrast': 15, 'vibrance': 35, 'saturation': 25, 'clarity': 20}),
    FilterPreset('lut-matte', 'Matte', 'lut',
                 {'temperature': 10, 'brightness': 10, 'contrast': -15, 'saturation': -15, 'blacks': 25}),
    FilterPreset('lut-warm', 'Warm', 'lut',
                 {'temperature': 35, 'tint': 5, 'brightness': 5, 'contrast': 10, 'vibrance': 15}),
    FilterPreset('lut-cool', 'Cool', 'lut',
                 {'temperature': -30, 'contrast': 15, 'vibrance': 10, 'clarity': 15, 'vignette': 10}),
    FilterPreset('lut-vintage', 'Vintage', 'lut',
                 {'temperature': 20, 'contrast': -5, 'saturation': -20, 'vignette': 20, 'blacks': 20}),
    FilterPreset('lut-moody', 'Moody', 'lut',
                 {'temperature': -10, 'brightness': -15, 'contrast': 25, 'saturation': -10, 'clarity': 25,
                  'vignette': 35}),
    FilterPreset('lut-bw', 'B&W', 'lut',
                 {'brightness': 5, 'contrast': 20, 'saturation': -100, 'clarity': 15, 'vignette': 15,
                  'grayscale': True}),
    FilterPreset('lut-hdr', 'HDR', 'lut',
                 {'contrast': 25, 'highlights': -20, 'vibrance': 30, 'saturation': 20, 'clarity': 40,
                  'sharpness': 15}),
)

# Column order of the adjustment LUT-preset rows below
_LUT_PRESET_FIELDS = ('temperature', 'tint', 'brightness', 'contrast', 'highlights',
                      'vibrance', 'saturation', 'clarity', 'sharpness', 'vignette')


def _lut_preset(preset_id: str, name: str, description: str, row: Tuple[float, ...],
                **extra: Any) -> FilterPreset:
    values = dict(zip(_LUT_PRESET_FIELDS, row))
    values.update(extra)
    return FilterPreset(preset_id, name, 'lut', values, description)


LUT_PRESETS: Tuple[FilterPreset, ...] = (
    _lut_preset('natural', 'Natural', 'Clean, natural look with balanced tones',
                (0, 0, 5, 5, 0, 10, 5, 10, 5, 0)),
    _lut_preset('bright', 'Bright', 'Bright and airy look',
                (5, 0, 20, -5, 15, 15, 10, 5, 0, -10)),
    _lut_preset('cinematic', 'Cinematic', 'Hollywood film look with rich contrast',
                (-5, 0, -5, 30, -10, 5, -10, 20, 10, 25)),
    _lut_preset('teal-orange', 'Teal & Orange', 'Popular blockbuster color grade',
                (15, -10, 0, 20, 10, 20, 15, 15, 5, 15)),
    _lut_preset('vibrant', 'Vibrant', 'Punchy colors with high saturation',
                (5, 0, 5, 15, 5, 35, 25, 20, 10, 0)),
    _lut_preset('matte', 'Matte', 'Faded film look with lifted blacks',
                (10, 0, 10, -15, -10, -10, -15, -10, 0, 0), blacks=25),
    _lut_preset('warm', 'Warm', 'Golden, warm tones',
                (35, 5, 5, 10, 10, 15, 10, 5, 0, 0)),
    _lut_preset('cool', 'Cool', 'Blue, cool atmosphere',
                (-30, 0, 0, 15, 5, 10, 5, 15, 5, 10)),
    _lut_preset('vintage', 'Vintage', 'Retro film emulation',
                (20, 5, 5, -5, -5, -15, -20, -5, 0, 20), blacks=20),
    _lut_preset('moody', 'Moody', 'Dark, atmospheric look',
                (-10, 0, -15, 25, -15, -5, -10, 25, 10, 35)),
    _lut_preset('bw', 'Black & White', 'Classic monochrome',
                (0, 0, 5, 20, 10, 0, -100, 15, 10, 15), grayscale=True),
    _lut_preset('hdr', 'HDR', 'High dynamic range look',
                (0, 0, 0, 25, -20, 30, 20, 40, 15, 0)),
)

_PRESETS_BY_ID: Dict[str, FilterPreset] = {preset.id: preset for preset in FILTER_PRESETS}
_LUT_PRESETS_BY_ID: Dict[str, FilterPreset] = {preset.id: preset for preset in LUT_PRESETS}


def get_preset(preset_id: str) -> Optional[FilterPreset]:
    """Look up a catalog preset by id, None if unknown"""
    return _PRESETS_BY_ID.get(preset_id)


def get_presets_by_category(category: str) -> List[FilterPreset]:
    """All catalog presets of ``category`` in catalog order"""
    return [preset for preset in FILTER_PRESETS if preset.category == category]


def get_category(category_id: str) -> Optional[FilterCategory]:
    for category in FILTER_CATEGORIES:
        if category.id == category_id:
            return category
    return None


def apply_preset_to_params(params: AdjustmentParams, preset_id: str) -> AdjustmentParams:
    """
    Merge a catalog preset onto existing params

    Fields the preset defines win, every other field keeps the caller's
    value, and the preset id is recorded on the result.

    Args:
        params: Current slider state
        preset_id: Catalog preset id

    Returns:
        New params, or ``params`` unchanged if the id is unknown
    """
    preset = get_preset(preset_id)
    if preset is None:
        logger.warning(f"Unknown preset '{preset_id}', keeping current adjustments")
        return params
    return params.merged(preset.values, preset=preset.id)


def get_lut_preset(preset_id: str) -> Optional[FilterPreset]:
    return _LUT_PRESETS_BY_ID.get(preset_id)


def apply_lut_preset(params: AdjustmentParams, preset_id: str) -> AdjustmentParams:
    """Same merge as apply_preset_to_params, for the adjustment LUT-preset table"""
    preset = get_lut_preset(preset_id)
    if preset is None:
        logger.warning(f"Unknown LUT preset '{preset_id}', keeping current adjustments")
        return params
    return params.merged(preset.values, preset=preset.id)
