"""
Cube LUT Parser
Reads and writes .cube 3D LUT files (TITLE, LUT_3D_SIZE, DOMAIN_MIN/MAX and RGB data rows)
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from lut_engine import ParsedLUT

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'Custom LUT'

TITLE_QUOTED = re.compile(r'TITLE\s+"([^"]+)"', re.IGNORECASE)
TITLE_BARE = re.compile(r'TITLE\s+(\S+)', re.IGNORECASE)
SIZE_PATTERN = re.compile(r'LUT_3D_SIZE\s+(\d+)', re.IGNORECASE)
_NUMBER = r'([\d.eE+-]+)'
DOMAIN_MIN_PATTERN = re.compile(rf'DOMAIN_MIN\s+{_NUMBER}\s+{_NUMBER}\s+{_NUMBER}', re.IGNORECASE)
DOMAIN_MAX_PATTERN = re.compile(rf'DOMAIN_MAX\s+{_NUMBER}\s+{_NUMBER}\s+{_NUMBER}', re.IGNORECASE)
DIRECTIVE_PATTERN = re.compile(r'^[A-Z_]+')


def _parse_row(line: str) -> Optional[List[float]]:
    parts = line.split()
    if len(parts) < 3:
        return None
    try:
        return [float(parts[0]), float(parts[1]), float(parts[2])]
    except ValueError:
        return None


def parse_cube_lut(content: str) -> Optional[ParsedLUT]:
    """
    Parse .cube text into a LUT

    Unknown all-caps directives are skipped, ``#`` lines are comments, and
    every other line with at least three numbers is a data row. A missing
    LUT_3D_SIZE is inferred from the row count. Short data is accepted with
    a warning.

    Args:
        content: File content

    Returns:
        ParsedLUT, or None if the content holds no usable LUT
    """
    try:
        title = DEFAULT_TITLE
        size = 0
        domain_min = (0.0, 0.0, 0.0)
        domain_max = (1.0, 1.0, 1.0)
        comments = []
        values: List[float] = []

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line.startswith('#'):
                comments.append(line[1:].strip())
                continue

            if line.startswith('TITLE'):
                match = TITLE_QUOTED.match(line) or TITLE_BARE.match(line)
                if match:
                    title = match.group(1)
                continue

            if line.startswith('LUT_3D_SIZE'):
                match = SIZE_PATTERN.match(line)
                if match:
                    size = int(match.group(1))
                continue

            if line.startswith('DOMAIN_MIN'):
                match = DOMAIN_MIN_PATTERN.match(line)
                if match:
                    domain_min = tuple(float(v) for v in match.groups())
                continue

            if line.startswith('DOMAIN_MAX'):
                match = DOMAIN_MAX_PATTERN.match(line)
                if match:
                    domain_max = tuple(float(v) for v in match.groups())
                continue

            # LUT_1D_SIZE, LUT_3D_INPUT_RANGE and friends
            if DIRECTIVE_PATTERN.match(line):
                continue

            row = _parse_row(line)
            if row is not None:
                values.extend(row)

        if not values:
            logger.error("Failed to parse .cube LUT: no data rows found")
            return None

        if size == 0:
            size = int(np.floor(np.cbrt(len(values) // 3) + 0.5))
            logger.debug(f"LUT_3D_SIZE missing, inferred size {size} from {len(values) // 3} rows")

        if size < 1:
            logger.error(f"Failed to parse .cube LUT: invalid size {size}")
            return None

        expected = size ** 3 * 3
        if len(values) < expected:
            logger.warning(f"LUT data incomplete: expected {expected}, got {len(values)}")

        return ParsedLUT(
            title=title,
            size=size,
            data=np.array(values, dtype=np.float64),
            domain_min=domain_min,
            domain_max=domain_max,
            comments=tuple(comments),
        )
    except Exception as e:
        logger.error(f"Failed to parse .cube LUT: {e}", exc_info=True)
        return None


def read_cube_file(path: Union[str, Path]) -> Optional[ParsedLUT]:
    """
    Load a .cube file from disk

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"LUT file not found: {path}")

    content = path.read_text(encoding='utf-8', errors='replace')
    lut = parse_cube_lut(content)
    if lut is not None and lut.title == DEFAULT_TITLE:
        lut = ParsedLUT(title=path.stem, size=lut.size, data=lut.data,
                        domain_min=lut.domain_min, domain_max=lut.domain_max, comments=lut.comments)
    return lut


def format_cube_lut(lut: ParsedLUT) -> str:
    """Serialize a LUT as .cube text (data rows in red-slowest / blue-fastest order)"""
    lines = [f'TITLE "{lut.title}"']
    for comment in lut.comments:
        lines.append(f"# {comment}")

    lines.append(f"LUT_3D_SIZE {lut.size}")
    if tuple(lut.domain_min) != (0.0, 0.0, 0.0):
        lines.append("DOMAIN_MIN {:.6f} {:.6f} {:.6f}".format(*lut.domain_min))
    if tuple(lut.domain_max) != (1.0, 1.0, 1.0):
        lines.append("DOMAIN_MAX {:.6f} {:.6f} {:.6f}".format(*lut.domain_max))
    lines.append('')

    for r, g, b in lut.grid().reshape(-1, 3):
        lines.append(f"{r:.6f} {g:.6f} {b:.6f}")
    return '\n'.join(lines) + '\n'


def write_cube_file(lut: ParsedLUT, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_cube_lut(lut), encoding='utf-8')
    logger.info(f"Wrote LUT '{lut.title}' to {path}")
    return path
