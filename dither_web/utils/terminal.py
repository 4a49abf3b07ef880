"""Terminal size detection utilities."""

from __future__ import annotations

import shutil


def get_terminal_size(
    fallback_width: int = 80,
    fallback_height: int = 24,
) -> tuple[int, int]:
    """Get current terminal size in columns and rows.

    Returns (width, height). Falls back to provided defaults
    if terminal size cannot be determined.
    """
    try:
        size = shutil.get_terminal_size(fallback=(fallback_width, fallback_height))
        return size.columns, size.lines
    except (ValueError, OSError):
        return fallback_width, fallback_height


def fit_to_cells(
    img_width: int,
    img_height: int,
    max_width: int | None = None,
    max_height: int | None = None,
    cell_aspect: float = 1.0,
) -> tuple[int, int]:
    """Calculate a cell grid that fits the bounds while preserving aspect ratio.

    For braille, each cell is 2 dots wide and 4 tall on a glyph about twice
    as tall as it is wide, so dots come out roughly square and the default
    ``cell_aspect`` of 1.0 (dot width / dot height) holds.

    Args:
        img_width: original image width in pixels.
        img_height: original image height in pixels.
        max_width: maximum columns (defaults to terminal width).
        max_height: maximum rows (defaults to terminal height - 4 for UI).
        cell_aspect: width/height of one image pixel as drawn.

    Returns:
        (cols, rows) tuple, each at least 1.
    """
    if max_width is None or max_height is None:
        tw, th = get_terminal_size()
        if max_width is None:
            max_width = tw
        if max_height is None:
            max_height = max(th - 4, 10)  # Leave room for UI chrome

    max_width = max(1, max_width)
    max_height = max(1, max_height)
    if img_width <= 0 or img_height <= 0:
        return max_width, max_height

    img_aspect = (img_width / img_height) * (1.0 / cell_aspect)

    if img_aspect > max_width / max_height:
        # Width-constrained
        cols = max_width
        rows = max(1, int(cols / img_aspect))
    else:
        # Height-constrained
        rows = max_height
        cols = max(1, int(rows * img_aspect))

    return cols, rows
