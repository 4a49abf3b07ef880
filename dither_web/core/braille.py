"""Terminal rendering of rasters.

Dithered rasters are drawn with braille characters, one dot per pixel, so
the dither pattern survives at full preview resolution. Greyscale rasters
and grey-level dithers use a luminance character ramp instead.
"""

from __future__ import annotations

import numpy as np

from dither_web.core.raster import Raster

# Ordered dark → light (low luminance → high luminance)
RAMP_CHARS = " .:-=+*#%@"

# --- Braille encoding ---
# Braille characters use a 2-wide x 4-tall dot grid per character.
# Unicode braille block starts at U+2800.
# Dot positions (col 0, col 1):
#   row 0: bit 0, bit 3
#   row 1: bit 1, bit 4
#   row 2: bit 2, bit 5
#   row 3: bit 6, bit 7

BRAILLE_BASE = 0x2800
CELL_WIDTH = 2
CELL_HEIGHT = 4

BRAILLE_DOT_BITS: list[list[int]] = [
    [0, 3],
    [1, 4],
    [2, 5],
    [6, 7],
]


def braille_char(dots: np.ndarray) -> str:
    """Convert a 4x2 boolean array to a single braille character."""
    code = 0
    for row in range(CELL_HEIGHT):
        for col in range(CELL_WIDTH):
            if dots[row, col]:
                code |= 1 << BRAILLE_DOT_BITS[row][col]
    return chr(BRAILLE_BASE + code)


def braille_from_array(binary: np.ndarray) -> list[str]:
    """Convert a 2D binary array to braille lines.

    Values > 0 are raised dots. The array is zero-padded up to a multiple of
    4 rows and 2 columns.
    """
    h, w = binary.shape
    if h == 0 or w == 0:
        return []
    pad_h = (CELL_HEIGHT - h % CELL_HEIGHT) % CELL_HEIGHT
    pad_w = (CELL_WIDTH - w % CELL_WIDTH) % CELL_WIDTH
    if pad_h or pad_w:
        binary = np.pad(binary, ((0, pad_h), (0, pad_w)), constant_values=0)
        h, w = binary.shape

    lines = []
    for y in range(0, h, CELL_HEIGHT):
        line_chars = []
        for x in range(0, w, CELL_WIDTH):
            line_chars.append(braille_char(binary[y : y + CELL_HEIGHT, x : x + CELL_WIDTH] > 0))
        lines.append("".join(line_chars))
    return lines


def raster_to_braille(raster: Raster, threshold: int = 128) -> list[str]:
    """Braille lines for a raster: samples >= threshold become raised dots."""
    return braille_from_array((raster.pixels >= threshold).astype(np.uint8))


def raster_to_ramp(raster: Raster, chars: str = RAMP_CHARS) -> list[str]:
    """Map each sample to a character from a dark → light ramp."""
    if raster.is_empty:
        return []
    indices = (raster.pixels.astype(np.int64) * len(chars)) // 256
    return ["".join(chars[i] for i in row) for row in indices]


def braille_cells(width: int, height: int) -> tuple[int, int]:
    """Pixel dimensions covered by a ``width x height`` block of braille characters."""
    return width * CELL_WIDTH, height * CELL_HEIGHT


def render_lines(raster: Raster, levels: int = 2) -> list[str]:
    """Braille dots for black/white output, the character ramp for grey levels."""
    if levels > 2:
        return raster_to_ramp(raster)
    return raster_to_braille(raster)
