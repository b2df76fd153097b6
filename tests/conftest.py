import numpy as np
import pytest

from pixel_buffer import PixelBuffer


@pytest.fixture
def gradient_buffer():
    """8x6 opaque buffer with varied colors and one transparent pixel at (0, 0)"""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(6, 8, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[0, 0] = (200, 40, 90, 5)
    return PixelBuffer.from_array(pixels)
