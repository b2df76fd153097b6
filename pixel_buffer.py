"""
Pixel Buffer
Flat RGBA8 image buffer shared by every color-processing engine
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

# Pixels with alpha below this value are treated as fully transparent
ALPHA_THRESHOLD = 10

# Rec.601 weights used for luminance and gray references
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


@dataclass
class PixelBuffer:
    """Decoded image: width, height and channel-interleaved RGBA samples

    ``data`` is a flat uint8 array of length width * height * 4. Engines
    mutate it in place and never keep a reference after the call returns.
    """
    width: int
    height: int
    data: np.ndarray

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> 'PixelBuffer':
        """Build a buffer from an (H, W, 3) or (H, W, 4) uint8 array"""
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        if pixels.shape[2] == 3:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            pixels = np.concatenate([pixels.astype(np.uint8), alpha], axis=2)
        flat = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1).copy()
        return cls(width=width, height=height, data=flat)

    @classmethod
    def filled(cls, width: int, height: int, rgba: Tuple[int, int, int, int]) -> 'PixelBuffer':
        """Create a buffer where every pixel has the same RGBA value"""
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = rgba
        return cls(width=width, height=height, data=pixels.reshape(-1))

    def validate(self):
        """Raise ValueError if the buffer cannot be processed"""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid buffer size: {self.width}x{self.height}")
        if not isinstance(self.data, np.ndarray):
            raise ValueError(f"Buffer data must be a numpy array, got {type(self.data).__name__}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"Buffer data must be uint8, got {self.data.dtype}")
        expected = self.width * self.height * 4
        if self.data.size != expected:
            raise ValueError(f"Buffer length {self.data.size} does not match {self.width}x{self.height}x4 = {expected}")

    def pixels(self) -> np.ndarray:
        """Return an (H, W, 4) view sharing memory with ``data``"""
        self.validate()
        return self.data.reshape(self.height, self.width, 4)

    def copy(self) -> 'PixelBuffer':
        return PixelBuffer(width=self.width, height=self.height, data=self.data.copy())

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        i = (y * self.width + x) * 4
        return tuple(int(v) for v in self.data[i:i + 4])

    def set_pixel(self, x: int, y: int, rgba: Tuple[int, int, int, int]):
        i = (y * self.width + x) * 4
        self.data[i:i + 4] = rgba


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round .5 away from zero for non-negative values, like a UI canvas does"""
    return np.floor(values + 0.5)


def clamp_round(values: np.ndarray) -> np.ndarray:
    """Round then clamp float channels into the 0..255 uint8 range"""
    return np.clip(round_half_up(values), 0, 255).astype(np.uint8)


def opaque_mask(pixels: np.ndarray) -> np.ndarray:
    """Boolean (H, W) mask of pixels that take part in processing"""
    return pixels[..., 3] >= ALPHA_THRESHOLD


def luminance(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Normalized 0..1 luminance of 0..255 channels"""
    return (LUMA_R * r + LUMA_G * g + LUMA_B * b) / 255.0


def gray_level(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Luminance-weighted gray on the 0..255 scale"""
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def split_channels(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Float64 copies of the R, G and B planes of an (H, W, 4) array"""
    rgb = pixels[..., :3].astype(np.float64)
    return rgb[..., 0], rgb[..., 1], rgb[..., 2]


def write_channels(pixels: np.ndarray, r: np.ndarray, g: np.ndarray, b: np.ndarray,
                   mask: Optional[np.ndarray] = None):
    """Clamp, round and store float channels back into ``pixels``

    Only pixels selected by ``mask`` (defaults to the alpha mask) are written,
    the alpha plane is never touched.
    """
    if mask is None:
        mask = opaque_mask(pixels)
    out = np.stack([clamp_round(r), clamp_round(g), clamp_round(b)], axis=-1)
    pixels[..., :3][mask] = out[mask]


def iter_row_chunks(height: int, rows_per_chunk: int) -> Iterator[Tuple[int, int]]:
    """Yield (start, stop) row ranges covering ``height`` rows"""
    step = max(1, int(rows_per_chunk))
    for start in range(0, height, step):
        yield start, min(start + step, height)


def radial_falloff(y0: int, rows: int, width: int, height: int) -> np.ndarray:
    """Squared distance from the image center, normalized to 1 at the corners

    Covers rows ``y0`` .. ``y0 + rows`` of a ``width`` x ``height`` image.
    """
    center_x = width / 2
    center_y = height / 2
    max_distance = np.sqrt(center_x * center_x + center_y * center_y)

    ys = np.arange(y0, y0 + rows, dtype=np.float64)[:, None]
    xs = np.arange(width, dtype=np.float64)[None, :]
    distance = np.sqrt((xs - center_x) ** 2 + (ys - center_y) ** 2)
    return (distance / max_distance) ** 2
