"""
Color Utilities
Color conversions (RGB, HSL, CMYK, hex), parsing and simple color manipulation
"""

import math
import re
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

HEX_PATTERN = re.compile(r'^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$', re.IGNORECASE)
HEX6_PATTERN = re.compile(r'^#[0-9a-f]{6}$', re.IGNORECASE)
HEX3_PATTERN = re.compile(r'^#[0-9a-f]{3}$', re.IGNORECASE)
RGB_PATTERN = re.compile(r'rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)', re.IGNORECASE)
HSL_PATTERN = re.compile(r'hsl\(\s*(\d+)\s*,\s*(\d+)%?\s*,\s*(\d+)%?\s*\)', re.IGNORECASE)

PALETTE_STEP = 15
PALETTE_MIN_LIGHTNESS = 10
PALETTE_MAX_LIGHTNESS = 90


class RGB(NamedTuple):
    r: int
    g: int
    b: int


class HSL(NamedTuple):
    h: float
    s: float
    l: float


class CMYK(NamedTuple):
    c: int
    m: int
    y: int
    k: int


def _round(value: float) -> int:
    """Round half up (matches canvas rounding, unlike Python's banker's rounding)"""
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def hex_to_rgb(hex_color: str) -> Optional[RGB]:
    """
    Parse a ``#rrggbb`` color (the leading ``#`` is optional, case-insensitive)

    Returns:
        RGB tuple, or None if the string is not a 6-digit hex color
    """
    if not isinstance(hex_color, str):
        return None
    match = HEX_PATTERN.match(hex_color.strip())
    if not match:
        return None
    return RGB(*(int(part, 16) for part in match.groups()))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert RGB components to a lowercase ``#rrggbb`` string"""
    def to_hex(value: float) -> str:
        return f"{_round(_clamp(value, 0, 255)):02x}"

    return f"#{to_hex(r)}{to_hex(g)}{to_hex(b)}"


def rgb_to_hsl(r: float, g: float, b: float, precise: bool = False) -> HSL:
    """
    Convert RGB (0-255) to HSL

    Args:
        r, g, b: Channel values 0-255
        precise: Return unrounded floats instead of whole degrees / percents

    Returns:
        HSL with hue in degrees, saturation and lightness in percent
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    cmax = max(r, g, b)
    cmin = min(r, g, b)
    h = 0.0
    s = 0.0
    l = (cmax + cmin) / 2

    if cmax != cmin:
        d = cmax - cmin
        s = d / (2 - cmax - cmin) if l > 0.5 else d / (cmax + cmin)
        if cmax == r:
            h = ((g - b) / d + (6 if g < b else 0)) / 6
        elif cmax == g:
            h = ((b - r) / d + 2) / 6
        else:
            h = ((r - g) / d + 4) / 6

    if precise:
        return HSL(h * 360, s * 100, l * 100)
    return HSL(_round(h * 360), _round(s * 100), _round(l * 100))


def _hsl_to_rgb_unit(h: float, s: float, l: float) -> Tuple[float, float, float]:
    h = h % 360
    s /= 100
    l /= 100

    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs(((h / 60) % 2) - 1))
    m = l - c / 2

    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return r + m, g + m, b + m


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert HSL (degrees, percent, percent) to rounded RGB 0-255"""
    r, g, b = _hsl_to_rgb_unit(h, s, l)
    return RGB(_round(r * 255), _round(g * 255), _round(b * 255))


def rgb_to_cmyk(r: float, g: float, b: float) -> CMYK:
    """Convert RGB 0-255 to CMYK percentages"""
    r_norm, g_norm, b_norm = r / 255.0, g / 255.0, b / 255.0
    k = 1 - max(r_norm, g_norm, b_norm)

    # Pure black: chromatic components are undefined
    if k == 1:
        return CMYK(0, 0, 0, 100)

    c = (1 - r_norm - k) / (1 - k)
    m = (1 - g_norm - k) / (1 - k)
    y = (1 - b_norm - k) / (1 - k)
    return CMYK(_round(c * 100), _round(m * 100), _round(y * 100), _round(k * 100))


def cmyk_to_rgb(c: float, m: float, y: float, k: float) -> RGB:
    """Convert CMYK percentages to RGB 0-255"""
    c, m, y, k = c / 100, m / 100, y / 100, k / 100
    return RGB(
        _round(255 * (1 - c) * (1 - k)),
        _round(255 * (1 - m) * (1 - k)),
        _round(255 * (1 - y) * (1 - k)),
    )


def hex_to_cmyk(hex_color: str) -> Optional[CMYK]:
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return None
    return rgb_to_cmyk(*rgb)


def cmyk_to_hex(c: float, m: float, y: float, k: float) -> str:
    return rgb_to_hex(*cmyk_to_rgb(c, m, y, k))


def lighten(hex_color: str, amount: float) -> str:
    """Raise HSL lightness by ``amount`` percent; malformed input is returned as-is"""
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return hex_color
    h, s, l = rgb_to_hsl(*rgb)
    return rgb_to_hex(*hsl_to_rgb(h, s, _clamp(l + amount, 0, 100)))


def darken(hex_color: str, amount: float) -> str:
    """Lower HSL lightness by ``amount`` percent; malformed input is returned as-is"""
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return hex_color
    h, s, l = rgb_to_hsl(*rgb)
    return rgb_to_hex(*hsl_to_rgb(h, s, _clamp(l - amount, 0, 100)))


def get_contrast_color(hex_color: str) -> str:
    """Pick black or white text for a background color"""
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return '#000000'
    luminance = (0.299 * rgb.r + 0.587 * rgb.g + 0.114 * rgb.b) / 255
    return '#000000' if luminance > 0.5 else '#ffffff'


def mix_colors(hex1: str, hex2: str, weight: float = 0.5) -> str:
    """
    Weighted per-channel average of two colors

    Args:
        hex1: Base color
        hex2: Color mixed in
        weight: Share of ``hex2``, clamped to [0, 1]

    Returns:
        Mixed color, or ``hex1`` if either color fails to parse
    """
    rgb1 = hex_to_rgb(hex1)
    rgb2 = hex_to_rgb(hex2)
    if rgb1 is None or rgb2 is None:
        return hex1

    w = _clamp(weight, 0.0, 1.0)
    return rgb_to_hex(
        _round(rgb1.r * (1 - w) + rgb2.r * w),
        _round(rgb1.g * (1 - w) + rgb2.g * w),
        _round(rgb1.b * (1 - w) + rgb2.b * w),
    )


def parse_color(color: str) -> Optional[str]:
    """
    Normalize a CSS-like color string to ``#rrggbb``

    Accepts 6-digit hex, 3-digit hex, ``rgb(r, g, b)`` and ``hsl(h, s%, l%)``.
    Returns None for anything else.
    """
    if not isinstance(color, str):
        return None
    color = color.strip()

    if HEX6_PATTERN.match(color):
        return color

    if HEX3_PATTERN.match(color):
        return f"#{color[1]}{color[1]}{color[2]}{color[2]}{color[3]}{color[3]}"

    rgb_match = RGB_PATTERN.search(color)
    if rgb_match:
        return rgb_to_hex(*(int(v) for v in rgb_match.groups()))

    hsl_match = HSL_PATTERN.search(color)
    if hsl_match:
        h, s, l = (int(v) for v in hsl_match.groups())
        return rgb_to_hex(*hsl_to_rgb(h, s, l))

    return None


def generate_palette(base_color: str, count: int = 5) -> List[str]:
    """Spread a color over ``count`` lightness steps centered on the original"""
    rgb = hex_to_rgb(base_color)
    if rgb is None:
        return [base_color]

    h, s, l = rgb_to_hsl(*rgb)
    palette = []
    for i in range(count):
        step_l = _clamp(l + (i - count // 2) * PALETTE_STEP, PALETTE_MIN_LIGHTNESS, PALETTE_MAX_LIGHTNESS)
        palette.append(rgb_to_hex(*hsl_to_rgb(h, s, step_l)))
    return palette


def rgb_to_hsl_array(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized unrounded RGB (0-255) -> HSL (degrees, percent, percent)"""
    r = np.asarray(r, dtype=np.float64) / 255.0
    g = np.asarray(g, dtype=np.float64) / 255.0
    b = np.asarray(b, dtype=np.float64) / 255.0

    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    d = cmax - cmin
    l = (cmax + cmin) / 2

    chromatic = d > 0
    safe_d = np.where(chromatic, d, 1.0)
    s_denominator = np.where(l > 0.5, 2 - cmax - cmin, cmax + cmin)
    s = np.where(chromatic, d / np.where(s_denominator == 0, 1.0, s_denominator), 0.0)

    h_r = ((g - b) / safe_d + np.where(g < b, 6.0, 0.0)) / 6
    h_g = ((b - r) / safe_d + 2) / 6
    h_b = ((r - g) / safe_d + 4) / 6
    h = np.select([cmax == r, cmax == g], [h_r, h_g], default=h_b)
    h = np.where(chromatic, h, 0.0)

    return h * 360, s * 100, l * 100


def hsl_to_rgb_array(h: np.ndarray, s: np.ndarray, l: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized HSL (degrees, percent, percent) -> unrounded RGB 0-255"""
    h = np.mod(np.asarray(h, dtype=np.float64), 360)
    s = np.asarray(s, dtype=np.float64) / 100
    l = np.asarray(l, dtype=np.float64) / 100

    c = (1 - np.abs(2 * l - 1)) * s
    x = c * (1 - np.abs(np.mod(h / 60, 2) - 1))
    m = l - c / 2
    zero = np.zeros_like(c)

    sector = np.clip((h // 60).astype(np.int64), 0, 5)
    r = np.choose(sector, [c, x, zero, zero, x, c])
    g = np.choose(sector, [x, c, c, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, c, c, x])

    return (r + m) * 255, (g + m) * 255, (b + m) * 255
