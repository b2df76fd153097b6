"""
Family Filters
Self-contained "look" algorithms, one per filter family, with their static tables

Every look is an immutable dataclass tagged with its Family. A single
dispatcher (apply_family_filter) runs the family's per-pixel math over a
PixelBuffer; transparent pixels are skipped and channels are rounded and
clamped once at the end of the pass.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional, Tuple, Union

import numpy as np

from color_utils import hsl_to_rgb_array, rgb_to_hsl_array
from pixel_buffer import (
    PixelBuffer,
    gray_level,
    iter_row_chunks,
    radial_falloff,
    split_channels,
    write_channels,
)

logger = logging.getLogger(__name__)

MIDPOINT = 128.0

Color = Tuple[int, int, int]


class Family(Enum):
    """Filter families (display name of each family in the UI in comments)"""
    NATURAL = 'natural'     # Pure
    WARM = 'warm'           # Sun
    COOL = 'cool'           # Ice
    VIVID = 'vivid'         # Bold
    SOFT = 'soft'           # Dream
    VINTAGE = 'vintage'     # Film
    COLORPOP = 'colorpop'   # Neon
    MONO = 'mono'           # B&W


class PopEffect(Enum):
    DUOTONE = 'duotone'
    POSTERIZE = 'posterize'
    VINTAGE = 'vintage'
    CROSSPROCESS = 'crossprocess'


class _Look:
    """Shared behavior of all family look dataclasses"""
    family: ClassVar[Family]

    def apply(self, buffer: PixelBuffer, rows_per_chunk: Optional[int] = None) -> PixelBuffer:
        return apply_family_filter(buffer, self, rows_per_chunk=rows_per_chunk)


@dataclass(frozen=True)
class NaturalLook(_Look):
    id: str
    name: str
    contrast: float
    saturation: float
    brightness: float
    warmth: float
    clarity: float
    family: ClassVar[Family] = Family.NATURAL


@dataclass(frozen=True)
class WarmLook(_Look):
    id: str
    name: str
    temperature: float
    tint: float
    contrast: float
    saturation: float
    brightness: float
    family: ClassVar[Family] = Family.WARM


@dataclass(frozen=True)
class CoolLook(_Look):
    id: str
    name: str
    temperature: float
    tint: float
    contrast: float
    saturation: float
    brightness: float
    family: ClassVar[Family] = Family.COOL


@dataclass(frozen=True)
class VividLook(_Look):
    id: str
    name: str
    vibrance: float
    saturation: float
    contrast: float
    brightness: float
    clarity: float
    family: ClassVar[Family] = Family.VIVID


@dataclass(frozen=True)
class SoftLook(_Look):
    id: str
    name: str
    contrast: float
    highlight_softness: float
    shadow_lift: float
    color_tint: Color
    tint_strength: float
    saturation: float
    brightness: float
    warmth: float
    family: ClassVar[Family] = Family.SOFT


@dataclass(frozen=True)
class VintageLook(_Look):
    id: str
    name: str
    shadow_lift: float          # 0-50, raises the black point
    highlight_compress: float   # 0-30, lowers the white point
    shadow_tint: Color
    highlight_tint: Color
    contrast: float
    saturation: float
    warmth: float
    film_grain: float
    fade_strength: float
    family: ClassVar[Family] = Family.VINTAGE


@dataclass(frozen=True)
class ColorPopLook(_Look):
    id: str
    name: str
    primary_hue: float
    saturation_boost: float
    contrast: float
    secondary_hue: Optional[float] = None
    effect: Optional[PopEffect] = None
    family: ClassVar[Family] = Family.COLORPOP


@dataclass(frozen=True)
class MonoLook(_Look):
    id: str
    name: str
    contrast: float
    brightness: float
    black_point: float
    white_point: float
    gamma: float
    vignette: float = 0
    family: ClassVar[Family] = Family.MONO


FamilyLook = Union[NaturalLook, WarmLook, CoolLook, VividLook, SoftLook, VintageLook, ColorPopLook, MonoLook]


NATURAL_FILTERS: Tuple[NaturalLook, ...] = (
    NaturalLook('fresco', 'ClearTone', contrast=1.1, saturation=1.05, brightness=0, warmth=0, clarity=10),
    NaturalLook('belvedere', 'DeepView', contrast=1.08, saturation=1.0, brightness=5, warmth=5, clarity=5),
    NaturalLook('flint', 'CoolStone', contrast=1.05, saturation=0.95, brightness=0, warmth=0, clarity=15),
    NaturalLook('luna', 'Moonlight', contrast=1.05, saturation=1.0, brightness=5, warmth=0, clarity=3),
    NaturalLook('aero', 'AirLift', contrast=1.1, saturation=1.05, brightness=0, warmth=0, clarity=20),
    NaturalLook('myst', 'SoftHaze', contrast=0.95, saturation=0.9, brightness=10, warmth=0, clarity=0),
)

WARM_FILTERS: Tuple[WarmLook, ...] = (
    WarmLook('bali', 'SunCoast', temperature=25, tint=0, contrast=1.0, saturation=1.1, brightness=0),
    WarmLook('capri', 'Golden Bay', temperature=20, tint=0, contrast=1.1, saturation=1.0, brightness=5),
    WarmLook('latte', 'CreamWarm', temperature=30, tint=0, contrast=1.0, saturation=0.95, brightness=5),
    WarmLook('bronz', 'AmberGlow', temperature=35, tint=5, contrast=1.15, saturation=1.1, brightness=0),
    WarmLook('sandi', 'DesertTone', temperature=20, tint=0, contrast=1.0, saturation=1.05, brightness=8),
    WarmLook('sangri', 'RubyHeat', temperature=25, tint=5, contrast=1.1, saturation=1.0, brightness=0),
)

COOL_FILTERS: Tuple[CoolLook, ...] = (
    CoolLook('scandi', 'NordLight', temperature=-15, tint=0, contrast=1.05, saturation=1.0, brightness=0),
    CoolLook('nordic', 'Frosted Air', temperature=-20, tint=0, contrast=1.0, saturation=0.95, brightness=0),
    CoolLook('astro', 'CosmicBlue', temperature=-25, tint=0, contrast=1.15, saturation=1.1, brightness=0),
    CoolLook('arctic', 'IceWhite', temperature=-30, tint=0, contrast=1.0, saturation=0.9, brightness=10),
    CoolLook('polar', 'ColdEdge', temperature=-20, tint=0, contrast=1.05, saturation=1.0, brightness=8),
    CoolLook('tundra', 'GrayFrost', temperature=-25, tint=0, contrast=1.0, saturation=0.85, brightness=0),
)

VIVID_FILTERS: Tuple[VividLook, ...] = (
    VividLook('chroma', 'ColorBoost', vibrance=30, saturation=1.4, contrast=1.15, brightness=0, clarity=10),
    VividLook('rustiq', 'EarthPop', vibrance=20, saturation=1.3, contrast=1.2, brightness=0, clarity=5),
    VividLook('eldar', 'BrightRise', vibrance=25, saturation=1.35, contrast=1.1, brightness=0, clarity=20),
    VividLook('zeal', 'HighImpact', vibrance=35, saturation=1.45, contrast=1.2, brightness=5, clarity=10),
    VividLook('aria', 'ClearVivid', vibrance=40, saturation=1.25, contrast=1.05, brightness=5, clarity=5),
    VividLook('stark', 'HardContrast', vibrance=20, saturation=1.2, contrast=1.3, brightness=0, clarity=25),
)

SOFT_FILTERS: Tuple[SoftLook, ...] = (
    SoftLook('aura', 'GlowMist', contrast=0.85, highlight_softness=15, shadow_lift=8,
             color_tint=(255, 252, 245), tint_strength=0.08, saturation=0.9, brightness=8, warmth=5),
    SoftLook('hazel', 'WarmFog', contrast=0.8, highlight_softness=12, shadow_lift=10,
             color_tint=(200, 170, 130), tint_strength=0.15, saturation=0.85, brightness=5, warmth=20),
    SoftLook('whimsi', 'PlaySoft', contrast=0.82, highlight_softness=18, shadow_lift=12,
             color_tint=(255, 240, 200), tint_strength=0.12, saturation=0.75, brightness=10, warmth=15),
    SoftLook('rose', 'BlushTone', contrast=0.85, highlight_softness=15, shadow_lift=8,
             color_tint=(255, 200, 210), tint_strength=0.18, saturation=0.88, brightness=5, warmth=10),
    SoftLook('oceanic', 'SeaBreeze', contrast=0.82, highlight_softness=15, shadow_lift=10,
             color_tint=(180, 220, 230), tint_strength=0.15, saturation=0.85, brightness=5, warmth=-15),
    SoftLook('nimbus', 'CloudFade', contrast=0.75, highlight_softness=20, shadow_lift=15,
             color_tint=(230, 235, 240), tint_strength=0.12, saturation=0.7, brightness=8, warmth=-5),
)

VINTAGE_FILTERS: Tuple[VintageLook, ...] = (
    VintageLook('vinto', 'OldFrame', shadow_lift=8, highlight_compress=5,
                shadow_tint=(10, 5, 0), highlight_tint=(15, 10, 0),
                contrast=1.0, saturation=0.85, warmth=15, film_grain=0, fade_strength=5),
    # Strong matte, warm brown tones, very lifted blacks
    VintageLook('fade', 'MatteLift', shadow_lift=30, highlight_compress=12,
                shadow_tint=(25, 15, 5), highlight_tint=(20, 12, 0),
                contrast=0.65, saturation=0.45, warmth=20, film_grain=0, fade_strength=35),
    VintageLook('antiq', 'SepiaDust', shadow_lift=12, highlight_compress=8,
                shadow_tint=(25, 15, 0), highlight_tint=(35, 25, 5),
                contrast=0.9, saturation=0.55, warmth=30, film_grain=0, fade_strength=10),
    VintageLook('nostalg', 'MemoryWarm', shadow_lift=15, highlight_compress=10,
                shadow_tint=(20, 10, 0), highlight_tint=(25, 15, 0),
                contrast=0.85, saturation=0.7, warmth=25, film_grain=0, fade_strength=15),
    # Cool pastel with greenish shadows
    VintageLook('dream', 'SoftFilm', shadow_lift=18, highlight_compress=25,
                shadow_tint=(0, 12, 10), highlight_tint=(10, 18, 15),
                contrast=0.55, saturation=0.5, warmth=-10, film_grain=0, fade_strength=20),
    VintageLook('retro', 'AnalogPop', shadow_lift=10, highlight_compress=5,
                shadow_tint=(15, 8, 0), highlight_tint=(20, 12, 0),
                contrast=1.1, saturation=0.9, warmth=25, film_grain=0, fade_strength=5),
)

COLORPOP_FILTERS: Tuple[ColorPopLook, ...] = (
    ColorPopLook('outrun', 'NeonDrive', primary_hue=270, secondary_hue=200,
                 saturation_boost=25, contrast=10, effect=PopEffect.DUOTONE),
    ColorPopLook('heatwave', 'ThermalRush', primary_hue=200, secondary_hue=0,
                 saturation_boost=30, contrast=15, effect=PopEffect.DUOTONE),
    ColorPopLook('amethyst', 'PurplePulse', primary_hue=275, saturation_boost=20, contrast=5),
    ColorPopLook('minty', 'FreshGreen', primary_hue=155, saturation_boost=20, contrast=5),
    ColorPopLook('hibiscus', 'PinkBloom', primary_hue=320, saturation_boost=25, contrast=5),
    ColorPopLook('poster', 'GraphicTone', primary_hue=0, saturation_boost=-40, contrast=30,
                 effect=PopEffect.POSTERIZE),
    ColorPopLook('xpro-', 'CrossDark', primary_hue=120, saturation_boost=5, contrast=15,
                 effect=PopEffect.VINTAGE),
    ColorPopLook('xpro+', 'CrossBright', primary_hue=35, saturation_boost=15, contrast=20,
                 effect=PopEffect.CROSSPROCESS),
)

MONO_FILTERS: Tuple[MonoLook, ...] = (
    MonoLook('classic', 'TrueMono', contrast=1.05, brightness=0, black_point=0, white_point=100, gamma=1.0),
    MonoLook('ink', 'DeepBlack', contrast=1.4, brightness=0, black_point=0, white_point=100, gamma=0.9),
    MonoLook('noir', 'ShadowDrama', contrast=1.5, brightness=-5, black_point=0, white_point=95, gamma=1.1,
             vignette=20),
    MonoLook('film', 'GrainMono', contrast=0.9, brightness=5, black_point=10, white_point=95, gamma=0.95),
    MonoLook('newspaper', 'PrintGray', contrast=0.8, brightness=10, black_point=15, white_point=90, gamma=1.0),
    MonoLook('slate', 'UrbanGray', contrast=0.95, brightness=0, black_point=5, white_point=95, gamma=1.0),
)

FAMILY_FILTERS: Dict[Family, Tuple[FamilyLook, ...]] = {
    Family.NATURAL: NATURAL_FILTERS,
    Family.WARM: WARM_FILTERS,
    Family.COOL: COOL_FILTERS,
    Family.VIVID: VIVID_FILTERS,
    Family.SOFT: SOFT_FILTERS,
    Family.VINTAGE: VINTAGE_FILTERS,
    Family.COLORPOP: COLORPOP_FILTERS,
    Family.MONO: MONO_FILTERS,
}


def get_family_filter(filter_id: str, family: Optional[Family] = None) -> Optional[FamilyLook]:
    """
    Look up a family filter by id

    Args:
        filter_id: Filter id, e.g. 'bali'
        family: Restrict the search to one family

    Returns:
        The look, or None if no family defines that id
    """
    families = [family] if family is not None else list(FAMILY_FILTERS)
    for fam in families:
        for look in FAMILY_FILTERS[fam]:
            if look.id == filter_id:
                return look
    return None


def list_family_filters(family: Family) -> List[FamilyLook]:
    return list(FAMILY_FILTERS[family])


# Shared primitives (0..255 float channels)

def _scale(r, g, b, factor):
    return r * factor, g * factor, b * factor


def _pivot(r, g, b, factor):
    return (MIDPOINT + (r - MIDPOINT) * factor,
            MIDPOINT + (g - MIDPOINT) * factor,
            MIDPOINT + (b - MIDPOINT) * factor)


def _saturate(r, g, b, factor):
    gray = gray_level(r, g, b)
    return (gray + (r - gray) * factor,
            gray + (g - gray) * factor,
            gray + (b - gray) * factor)


def _midtone_factor(lum):
    return 1 - np.abs(lum - 0.5) * 2


# Family algorithms: (r, g, b, look, falloff) -> (r, g, b)

def _apply_natural(r, g, b, look: NaturalLook, falloff):
    r, g, b = _scale(r, g, b, 1 + look.brightness / 100)

    if look.warmth != 0:
        warm = look.warmth / 100
        r = r * (1 + warm * 0.1)
        b = b * (1 - warm * 0.1)

    r, g, b = _pivot(r, g, b, look.contrast)

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)

    if look.clarity > 0:
        r, g, b = _pivot(r, g, b, 1 + look.clarity / 100)
    return r, g, b


def _apply_warm(r, g, b, look: WarmLook, falloff):
    temp = look.temperature / 100
    r = np.minimum(255, r * (1 + temp * 0.2))
    b = np.maximum(0, b * (1 - temp * 0.15))

    if look.tint != 0:
        tint = look.tint / 100
        r = np.minimum(255, r * (1 + tint * 0.08))
        g = np.maximum(0, g * (1 - tint * 0.05))

    r, g, b = _scale(r, g, b, 1 + look.brightness / 100)
    r, g, b = _pivot(r, g, b, look.contrast)

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)
    return r, g, b


def _apply_cool(r, g, b, look: CoolLook, falloff):
    temp = abs(look.temperature) / 100
    r = np.maximum(0, r * (1 - temp * 0.12))
    b = np.minimum(255, b * (1 + temp * 0.15))

    if look.tint != 0:
        tint = look.tint / 100
        r = np.minimum(255, r * (1 + tint * 0.08))
        g = np.maximum(0, g * (1 - tint * 0.05))

    r, g, b = _scale(r, g, b, 1 + look.brightness / 100)
    r, g, b = _pivot(r, g, b, look.contrast)

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)
    return r, g, b


def _apply_vivid(r, g, b, look: VividLook, falloff):
    r, g, b = _scale(r, g, b, 1 + look.brightness / 100)
    r, g, b = _pivot(r, g, b, look.contrast)

    # Vibrance: unscaled boost, stacked with the uniform saturation below
    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    current_sat = np.where(cmax > 0, (cmax - cmin) / np.where(cmax > 0, cmax, 1.0), 0.0)
    r, g, b = _saturate(r, g, b, 1 + (look.vibrance / 100) * (1 - current_sat))

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)

    if look.clarity > 0:
        r, g, b = _pivot(r, g, b, 1 + look.clarity / 100)
    return r, g, b


def _apply_soft(r, g, b, look: SoftLook, falloff):
    if look.brightness != 0:
        bright = look.brightness / 100
        r = np.minimum(255, r + r * bright)
        g = np.minimum(255, g + g * bright)
        b = np.minimum(255, b + b * bright)

    if look.warmth != 0:
        warm = look.warmth / 100
        r = np.minimum(255, r * (1 + warm * 0.12))
        b = np.maximum(0, b * (1 - warm * 0.12))

    if look.highlight_softness > 0:
        threshold = 200
        keep = 1 - look.highlight_softness / 100
        r = np.where(r > threshold, threshold + (r - threshold) * keep, r)
        g = np.where(g > threshold, threshold + (g - threshold) * keep, g)
        b = np.where(b > threshold, threshold + (b - threshold) * keep, b)

    if look.shadow_lift > 0:
        lift = look.shadow_lift / 100 * 30
        r = np.minimum(255, r + lift * (1 - r / 255))
        g = np.minimum(255, g + lift * (1 - g / 255))
        b = np.minimum(255, b + lift * (1 - b / 255))

    if look.contrast != 1:
        r, g, b = _pivot(r, g, b, look.contrast)

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)

    if look.tint_strength > 0:
        amount = look.tint_strength * _midtone_factor(gray_level(r, g, b) / 255)
        tint_r, tint_g, tint_b = look.color_tint
        r = r + (tint_r - r) * amount
        g = g + (tint_g - g) * amount
        b = b + (tint_b - b) * amount
    return r, g, b


def _film_tone_curve(channel, shadow_lift: float, highlight_compress: float):
    """Lift blacks, compress whites, then a gentle S-curve"""
    black_point = shadow_lift / 100
    white_point = 1 - highlight_compress / 100
    v = black_point + (channel / 255) * (white_point - black_point)
    low = 0.5 * np.power(np.clip(2 * v, 0, None), 1.1)
    high = 1 - 0.5 * np.power(np.clip(2 * (1 - v), 0, None), 1.1)
    v = np.where(v < 0.5, low, high)
    return np.clip(v * 255, 0, 255)


def _apply_vintage(r, g, b, look: VintageLook, falloff):
    r = _film_tone_curve(r, look.shadow_lift, look.highlight_compress)
    g = _film_tone_curve(g, look.shadow_lift, look.highlight_compress)
    b = _film_tone_curve(b, look.shadow_lift, look.highlight_compress)

    if look.warmth != 0:
        warm = look.warmth / 100
        r = np.minimum(255, r * (1 + warm * 0.15))
        b = np.maximum(0, b * (1 - warm * 0.15))

    # Split toning
    lum = gray_level(r, g, b) / 255
    shadow_weight = (1 - lum) ** 2
    highlight_weight = lum ** 2
    r = r + look.shadow_tint[0] * shadow_weight + look.highlight_tint[0] * highlight_weight
    g = g + look.shadow_tint[1] * shadow_weight + look.highlight_tint[1] * highlight_weight
    b = b + look.shadow_tint[2] * shadow_weight + look.highlight_tint[2] * highlight_weight

    if look.saturation != 1:
        r, g, b = _saturate(r, g, b, look.saturation)

    if look.contrast != 1:
        r, g, b = _pivot(r, g, b, look.contrast)

    if look.fade_strength > 0:
        # Cream fade overlay
        fade = look.fade_strength / 100 * 0.4
        r = r + (250 - r) * fade
        g = g + (245 - g) * fade
        b = b + (235 - b) * fade
    return r, g, b


def _apply_colorpop(r, g, b, look: ColorPopLook, falloff):
    """Remap hue (and saturation) only; lightness is kept or gently contrasted"""
    h, s, l = rgb_to_hsl_array(r, g, b)

    # Saturated midtones are treated as the subject
    influence = np.minimum(1, s / 40) * (1 - np.abs(l - 50) / 50)
    influence = np.where(l < 15, influence * 0.2, influence)
    influence = np.where(l > 90, influence * 0.3, influence)
    active = influence > 0.1

    new_h = h
    new_s = s
    effect = look.effect
    if effect is PopEffect.DUOTONE:
        if look.secondary_hue is not None:
            target = look.primary_hue * (1 - l / 100) + look.secondary_hue * (l / 100)
        else:
            target = look.primary_hue
        new_h = np.where(active, np.mod(h + (target - h) * influence * 0.7, 360), h)
        new_s = np.where(active, np.minimum(100, s + look.saturation_boost * influence * 0.5), s)
    elif effect is PopEffect.POSTERIZE:
        keep_red = (s > 50) & ((h < 30) | (h > 330))
        new_s = np.where(keep_red, s, np.maximum(0, s + look.saturation_boost))
    elif effect is PopEffect.VINTAGE:
        shift = (look.primary_hue - 180) * 0.15 * influence
        new_h = np.where(active, np.mod(h + shift, 360), h)
        new_s = np.where(active, np.maximum(0, s + look.saturation_boost * influence), s)
    elif effect is PopEffect.CROSSPROCESS:
        shift = (look.primary_hue - h) * 0.25 * influence
        new_h = np.where(active, np.mod(h + shift, 360), h)
        new_s = np.where(active, np.minimum(100, s + look.saturation_boost * influence), s)
    else:
        # Shortest way around the color wheel
        distance = look.primary_hue - h
        distance = np.where(distance > 180, distance - 360, distance)
        distance = np.where(distance < -180, distance + 360, distance)
        new_h = np.where(active, np.mod(h + distance * influence * 0.7, 360), h)
        new_s = np.where(active, np.minimum(100, s + look.saturation_boost * influence * 0.5), s)

    new_l = l
    if look.contrast > 0:
        new_l = np.clip(50 + (l - 50) * (1 + look.contrast / 200), 0, 100)

    return hsl_to_rgb_array(new_h, new_s, new_l)


def _apply_mono(r, g, b, look: MonoLook, falloff):
    gray = (0.2126 * r + 0.7152 * g + 0.0722 * b) / 255
    gray = np.power(gray, look.gamma)
    gray = 0.5 + (gray - 0.5) * look.contrast
    gray = gray + look.brightness / 100

    black = look.black_point / 100
    white = look.white_point / 100
    gray = np.clip(black + gray * (white - black), 0, 1)

    if look.vignette > 0:
        gray = gray * np.maximum(0.3, 1 - falloff * (look.vignette / 100))

    value = gray * 255
    return value, value, value


_ALGORITHMS: Dict[Family, Callable] = {
    Family.NATURAL: _apply_natural,
    Family.WARM: _apply_warm,
    Family.COOL: _apply_cool,
    Family.VIVID: _apply_vivid,
    Family.SOFT: _apply_soft,
    Family.VINTAGE: _apply_vintage,
    Family.COLORPOP: _apply_colorpop,
    Family.MONO: _apply_mono,
}


def apply_family_filter(buffer: PixelBuffer, look: FamilyLook,
                        rows_per_chunk: Optional[int] = None) -> PixelBuffer:
    """
    Run a family look over ``buffer`` in place

    Args:
        buffer: Decoded RGBA8 buffer
        look: Any family look (dispatch is by its ``family`` tag)
        rows_per_chunk: Rows per work unit (None processes the whole image at once)

    Returns:
        The same buffer; unchanged if it could not be processed
    """
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer

    algorithm = _ALGORITHMS[look.family]
    logger.debug(f"Applying {look.family.value} filter '{look.id}' to {buffer.width}x{buffer.height}")

    for start, stop in iter_row_chunks(buffer.height, rows_per_chunk or buffer.height):
        block = pixels[start:stop]
        r, g, b = split_channels(block)
        falloff = radial_falloff(start, stop - start, buffer.width, buffer.height) if look.family is Family.MONO else None
        r, g, b = algorithm(r, g, b, look, falloff)
        write_channels(block, r, g, b)
    return buffer
