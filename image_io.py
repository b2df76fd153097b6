"""
Image I/O
Decodes image files into RGBA pixel buffers and encodes buffers back to files or bytes
"""

import io
import logging
from pathlib import Path
from typing import Iterable, Union

import numpy as np
import rawpy
from PIL import Image

from pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

OUTPUT_FORMATS = ('png', 'jpeg', 'tiff')

EXTENSIONS = {
    'png': '.png',
    'jpeg': '.jpg',
    'tiff': '.tif',
}


def normalize_format(output_format: str) -> str:
    """Map a configured format name onto one of OUTPUT_FORMATS"""
    fmt = (output_format or 'png').lower().lstrip('.')
    if fmt == 'jpg':
        return 'jpeg'
    if fmt == 'tif':
        return 'tiff'
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")
    return fmt


def is_raw_file(path: PathLike, raw_extensions: Iterable[str]) -> bool:
    return Path(path).suffix.lower() in {ext.lower() for ext in raw_extensions}


def from_pil(image: Image.Image) -> PixelBuffer:
    """Convert any Pillow image to an RGBA8 buffer"""
    if image.mode != 'RGBA':
        image = image.convert('RGBA')
    return PixelBuffer.from_array(np.asarray(image, dtype=np.uint8))


def to_pil(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(buffer.pixels())


def load_raw(input_path: PathLike) -> PixelBuffer:
    """Demosaic a camera RAW file with rawpy into an 8-bit sRGB buffer"""
    with rawpy.imread(str(input_path)) as raw:
        rgb = raw.postprocess(
            use_camera_wb=True,
            half_size=False,
            no_auto_bright=False,
            output_bps=8,
            output_color=rawpy.ColorSpace.sRGB,
            demosaic_algorithm=rawpy.DemosaicAlgorithm.AHD,
            use_auto_wb=False,
        )

    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError(f"Unexpected RAW image shape: {rgb.shape}")
    return PixelBuffer.from_array(rgb.astype(np.uint8))


def load_image(input_path: PathLike, raw_extensions: Iterable[str] = (),
               raw_processing: bool = True) -> PixelBuffer:
    """
    Decode an image file into a buffer

    Args:
        input_path: Image file
        raw_extensions: Suffixes handled by the RAW decoder
        raw_processing: If False, RAW suffixes go through Pillow as well

    Returns:
        RGBA8 buffer (alpha 255 for formats without transparency)
    """
    input_path = Path(input_path)
    if raw_processing and is_raw_file(input_path, raw_extensions):
        logger.debug(f"Decoding RAW {input_path.name}")
        return load_raw(input_path)

    with Image.open(input_path) as image:
        image.load()
        return from_pil(image)


def decode_bytes(data: bytes) -> PixelBuffer:
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return from_pil(image)


def _prepare(buffer: PixelBuffer, fmt: str) -> Image.Image:
    image = to_pil(buffer)
    if fmt == 'jpeg':
        # JPEG has no alpha; flatten onto white
        background = Image.new('RGB', image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[3])
        return background
    return image


def save_image(buffer: PixelBuffer, output_path: PathLike, output_format: str = 'png',
               jpeg_quality: int = 95) -> Path:
    """
    Encode ``buffer`` and write it to ``output_path``

    Args:
        buffer: Processed buffer
        output_path: Destination file (parent directories are created)
        output_format: png, jpeg or tiff
        jpeg_quality: JPEG quality 1-100

    Returns:
        The written path
    """
    fmt = normalize_format(output_format)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    output_path.write_bytes(encode_image(buffer, fmt, jpeg_quality))
    return output_path


def encode_image(buffer: PixelBuffer, output_format: str = 'png', jpeg_quality: int = 95) -> bytes:
    fmt = normalize_format(output_format)
    image = _prepare(buffer, fmt)
    out = io.BytesIO()
    if fmt == 'jpeg':
        image.save(out, format='JPEG', quality=jpeg_quality, optimize=True)
    elif fmt == 'tiff':
        image.save(out, format='TIFF', compression='tiff_lzw')
    else:
        image.save(out, format='PNG')
    return out.getvalue()


def encode_png(buffer: PixelBuffer) -> bytes:
    """PNG bytes of ``buffer``"""
    return encode_image(buffer, 'png')
