"""
Image Processor
Applies the configured look (LUT, family filter or slider preset) to image files
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from adjustments import AdjustmentParams, apply_adjustments, apply_sharpen
from color_replace import ColorReplaceEffect, apply_color_replacement
from cube_parser import read_cube_file
from family_filters import FamilyLook, apply_family_filter, get_family_filter
from filter_presets import apply_lut_preset, apply_preset_to_params, get_lut_preset, get_preset
from image_io import EXTENSIONS, encode_image, load_image, normalize_format, save_image
from lut_engine import ParsedLUT, apply_lut
from pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class ImageProcessor:
    """Process images with one configured look

    The look is picked from the ``look`` config section: a ``lut`` path wins
    over a ``family`` filter id, which wins over ``preset`` + ``adjustments``.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize processor

        Args:
            config: Application config (see config.yaml)

        Raises:
            ValueError: If the configured LUT, family filter or output format is invalid
            FileNotFoundError: If the configured LUT file does not exist
        """
        self.config = config
        look = config.get('look') or {}
        processing = config.get('processing') or {}

        self.rows_per_chunk: Optional[int] = processing.get('rows_per_chunk')
        self.workers: int = int(processing.get('workers', 1))
        self.output_format = normalize_format(config.get('output_format', 'png'))
        self.jpeg_quality = int(config.get('jpeg_quality', 95))

        self.lut: Optional[ParsedLUT] = None
        self.family_look: Optional[FamilyLook] = None
        self.params = AdjustmentParams.from_dict(look.get('adjustments') or {})
        self.color_replace: Optional[ColorReplaceEffect] = None

        if look.get('lut'):
            self.lut = read_cube_file(look['lut'])
            if self.lut is None:
                raise ValueError(f"Could not parse LUT file: {look['lut']}")
            self.mode = 'lut'
            logger.info(f"Using LUT '{self.lut.title}' (size {self.lut.size})")
        elif look.get('family'):
            self.family_look = get_family_filter(look['family'])
            if self.family_look is None:
                raise ValueError(f"Unknown family filter: {look['family']}")
            self.mode = 'family'
            logger.info(f"Using {self.family_look.family.value} filter '{self.family_look.name}'")
        else:
            self.mode = 'adjustments'
            preset_id = look.get('preset')
            if preset_id:
                self.params = self._apply_preset(self.params, preset_id)
            logger.info(f"Using adjustments (preset: {self.params.preset})")

        if look.get('color_replace'):
            self.color_replace = ColorReplaceEffect.from_dict(look['color_replace'])
            logger.info(f"Color replacement enabled: {self.color_replace.target_color}")

    @staticmethod
    def _apply_preset(params: AdjustmentParams, preset_id: str) -> AdjustmentParams:
        if get_preset(preset_id) is not None:
            return apply_preset_to_params(params, preset_id)
        if get_lut_preset(preset_id) is not None:
            return apply_lut_preset(params, preset_id)
        logger.warning(f"Unknown preset '{preset_id}', using adjustments only")
        return params

    def process_buffer(self, buffer: PixelBuffer) -> PixelBuffer:
        """Run the configured look over a decoded buffer in place"""
        if self.mode == 'lut':
            apply_lut(buffer, self.lut, rows_per_chunk=self.rows_per_chunk)
        elif self.mode == 'family':
            apply_family_filter(buffer, self.family_look, rows_per_chunk=self.rows_per_chunk)
        else:
            apply_adjustments(buffer, self.params, rows_per_chunk=self.rows_per_chunk, workers=self.workers)

        if self.color_replace is not None:
            apply_color_replacement(buffer, self.color_replace, rows_per_chunk=self.rows_per_chunk)

        # Sharpening runs last; the slider pipeline already did it
        if self.mode != 'adjustments' and self.params.sharpness > 0:
            apply_sharpen(buffer, min(100.0, self.params.sharpness))
        return buffer

    def output_path_for(self, input_path: Path, output_folder: Path) -> Path:
        return Path(output_folder) / f"{Path(input_path).stem}{EXTENSIONS[self.output_format]}"

    def load(self, input_path: Path) -> PixelBuffer:
        extensions = self.config.get('supported_extensions') or {}
        return load_image(
            input_path,
            raw_extensions=extensions.get('raw', []),
            raw_processing=self.config.get('raw_processing', True),
        )

    def process_image(self, input_path: str, output_path: str) -> bool:
        """
        Process a single image file

        Args:
            input_path: Path to input image
            output_path: Path to save processed image

        Returns:
            True if successful, False otherwise
        """
        try:
            input_path = Path(input_path)
            output_path = Path(output_path)

            buffer = self.load(input_path)
            self.process_buffer(buffer)
            save_image(buffer, output_path, self.output_format, self.jpeg_quality)

            logger.info(f"Successfully processed: {input_path.name} -> {output_path.name}")
            return True

        except Exception as e:
            logger.error(f"Error processing {input_path}: {e}", exc_info=True)
            return False

    def process_bytes(self, buffer: PixelBuffer) -> bytes:
        """Process a buffer and return it encoded in the configured output format"""
        self.process_buffer(buffer)
        return encode_image(buffer, self.output_format, self.jpeg_quality)
