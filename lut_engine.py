"""
LUT Engine
3D lookup table model and trilinear sampler for custom color grades
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from pixel_buffer import PixelBuffer, clamp_round, iter_row_chunks, split_channels, write_channels

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True, eq=False)
class ParsedLUT:
    """A 3D LUT: N x N x N grid of RGB outputs

    ``data`` is flat, ordered red-slowest / blue-fastest, so the output for
    grid cell (ri, gi, bi) starts at ``(ri * N * N + gi * N + bi) * 3``.
    It may be shorter than N^3 * 3; missing entries sample as 0.
    """
    title: str
    size: int
    data: np.ndarray
    domain_min: Vector3 = (0.0, 0.0, 0.0)
    domain_max: Vector3 = (1.0, 1.0, 1.0)
    comments: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        # Sampling table, built once; non-finite entries read as 0
        table = np.nan_to_num(np.asarray(self.data, dtype=np.float64).reshape(-1),
                              nan=0.0, posinf=0.0, neginf=0.0)
        object.__setattr__(self, '_table', table)

    @property
    def expected_length(self) -> int:
        return self.size ** 3 * 3

    @property
    def is_undersized(self) -> bool:
        return self.data.size < self.expected_length

    def grid(self) -> np.ndarray:
        """(N, N, N, 3) float64 grid indexed [r, g, b], zero-padded if undersized

        Allocates the full table; sampling never calls it.
        """
        flat = np.zeros(self.expected_length, dtype=np.float64)
        available = min(self._table.size, self.expected_length)
        flat[:available] = self._table[:available]
        return flat.reshape(self.size, self.size, self.size, 3)

    def cells(self, ri: np.ndarray, gi: np.ndarray, bi: np.ndarray) -> np.ndarray:
        """RGB outputs of grid cells, shape (..., 3); cells past the data read as 0"""
        base = ((ri.astype(np.int64) * self.size + gi) * self.size + bi) * 3
        offsets = base[..., None] + np.arange(3)
        present = offsets < self._table.size
        values = np.zeros(offsets.shape, dtype=np.float64)
        values[present] = self._table[offsets[present]]
        return values


def identity_lut(size: int = 33, title: str = 'Identity') -> ParsedLUT:
    """LUT whose every grid vertex maps to its own coordinates"""
    if size < 2:
        raise ValueError(f"Identity LUT needs at least 2 points per axis, got {size}")
    axis = np.linspace(0.0, 1.0, size)
    r, g, b = np.meshgrid(axis, axis, axis, indexing='ij')
    data = np.stack([r, g, b], axis=-1).reshape(-1)
    return ParsedLUT(title=title, size=size, data=data)


def _grid_coordinates(values: np.ndarray, low: float, high: float, size: int):
    """Map domain values to (lower index, upper index, fraction) along one axis"""
    span = high - low
    if span == 0:
        span = 1.0
    scaled = (values - low) / span * (size - 1)
    scaled = np.clip(np.nan_to_num(scaled, nan=0.0), 0, size - 1)

    # Keep the lower index off the last vertex so exact vertices get fraction 0 or 1
    lower = np.minimum(np.floor(scaled), max(size - 2, 0)).astype(np.int64)
    upper = np.minimum(lower + 1, size - 1)
    return lower, upper, scaled - lower


def sample_lut_array(lut: ParsedLUT, r: np.ndarray, g: np.ndarray,
                     b: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Trilinear lookup of many RGB triples at once

    Args:
        lut: Parsed LUT
        r, g, b: Input channels in the LUT's domain (0..1 for the default domain)

    Returns:
        Unrounded output channels on the 0..1 scale
    """
    size = lut.size

    r0, r1, fr = _grid_coordinates(np.asarray(r, dtype=np.float64), lut.domain_min[0], lut.domain_max[0], size)
    g0, g1, fg = _grid_coordinates(np.asarray(g, dtype=np.float64), lut.domain_min[1], lut.domain_max[1], size)
    b0, b1, fb = _grid_coordinates(np.asarray(b, dtype=np.float64), lut.domain_min[2], lut.domain_max[2], size)

    fr = fr[..., None]
    fg = fg[..., None]
    fb = fb[..., None]

    # Blue axis first, then green, then red
    c00 = lut.cells(r0, g0, b0) * (1 - fb) + lut.cells(r0, g0, b1) * fb
    c01 = lut.cells(r0, g1, b0) * (1 - fb) + lut.cells(r0, g1, b1) * fb
    c10 = lut.cells(r1, g0, b0) * (1 - fb) + lut.cells(r1, g0, b1) * fb
    c11 = lut.cells(r1, g1, b0) * (1 - fb) + lut.cells(r1, g1, b1) * fb

    c0 = c00 * (1 - fg) + c01 * fg
    c1 = c10 * (1 - fg) + c11 * fg

    out = c0 * (1 - fr) + c1 * fr
    return out[..., 0], out[..., 1], out[..., 2]


def sample_lut(lut: ParsedLUT, r: float, g: float, b: float) -> Tuple[int, int, int]:
    """
    Remap one RGB triple through the LUT

    Args:
        lut: Parsed LUT (never modified)
        r, g, b: Input channels in the LUT's domain (0..1 for the default domain)

    Returns:
        Output channels rounded and clamped to 0..255
    """
    out_r, out_g, out_b = sample_lut_array(lut, np.array([r]), np.array([g]), np.array([b]))
    return (int(clamp_round(out_r * 255)[0]),
            int(clamp_round(out_g * 255)[0]),
            int(clamp_round(out_b * 255)[0]))


def sample_lut_rgb8(lut: ParsedLUT, r: int, g: int, b: int) -> Tuple[int, int, int]:
    """Convenience wrapper for 8-bit input channels"""
    return sample_lut(lut, r / 255.0, g / 255.0, b / 255.0)


def apply_lut(buffer: PixelBuffer, lut: ParsedLUT, rows_per_chunk: Optional[int] = None) -> PixelBuffer:
    """
    Grade every opaque pixel of ``buffer`` in place

    Pixel values are mapped from 0..255 onto 0..1 before lookup, so the LUT's
    domain should cover [0, 1].

    Returns:
        The same buffer; unchanged if it could not be processed
    """
    try:
        pixels = buffer.pixels()
    except ValueError as e:
        logger.error(f"Cannot acquire pixel buffer, returning input unchanged: {e}", exc_info=True)
        return buffer

    if lut.is_undersized:
        logger.warning(f"LUT '{lut.title}' has {lut.data.size} values, expected {lut.expected_length}; "
                       f"missing entries read as 0")

    logger.debug(f"Applying LUT '{lut.title}' (size {lut.size}) to {buffer.width}x{buffer.height}")

    for start, stop in iter_row_chunks(buffer.height, rows_per_chunk or buffer.height):
        block = pixels[start:stop]
        r, g, b = split_channels(block)
        out_r, out_g, out_b = sample_lut_array(lut, r / 255.0, g / 255.0, b / 255.0)
        write_channels(block, out_r * 255, out_g * 255, out_b * 255)
    return buffer
