"""Save dithered rasters as PNG files or a single labelled contact sheet.

The contact sheet lays the original and every variant out side by side,
each under its title and a "Time taken" caption.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from dither_web.core.processor import ProcessedImage
from dither_web.core.raster import Raster

logger = logging.getLogger(__name__)

DEFAULT_FONT_SIZE = 14
PANEL_GAP = 10  # pixels between panels
CAPTION_LINES = 2
ORIGINAL_TITLE = "Original image"


def encode_png(raster: Raster) -> bytes:
    """Encode a raster as greyscale PNG bytes."""
    raster.validate()
    buf = io.BytesIO()
    raster.to_image().save(buf, format="PNG")
    return buf.getvalue()


def save_raster(raster: Raster, output_path: Path) -> Path:
    """Write a raster as a PNG file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_png(raster))
    return output_path


def save_variants(processed: ProcessedImage, out_dir: Path, stem: str) -> list[Path]:
    """Write the greyscale original and each variant as ``<stem>_<slug>.png``.

    Returns the written paths, original first.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written = [save_raster(processed.original, out_dir / f"{stem}_original.png")]
    for result in processed.results:
        path = out_dir / f"{stem}_{result.method.value}.png"
        written.append(save_raster(result.raster, path))
    logger.info("saved %d images to %s", len(written), out_dir)
    return written


def _get_font(size: int = DEFAULT_FONT_SIZE) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Get a monospace font for captions."""
    for name in [
        "DejaVuSansMono.ttf",
        "Menlo.ttc",
        "Consolas.ttf",
        "CourierNew.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
        "/System/Library/Fonts/Menlo.ttc",
    ]:
        try:
            return ImageFont.truetype(name, size)
        except (IOError, OSError):
            continue
    return ImageFont.load_default()


def format_elapsed(elapsed_ms: float) -> str:
    return f"Time taken: {elapsed_ms:.1f}ms"


def render_contact_sheet(
    processed: ProcessedImage,
    font_size: int = DEFAULT_FONT_SIZE,
    bg_color: int = 255,
) -> Image.Image:
    """Render the original and every variant side by side with captions.

    Args:
        processed: pipeline output to lay out.
        font_size: caption font size in pixels.
        bg_color: greyscale background level.

    Returns:
        PIL "L" image.
    """
    font = _get_font(font_size)
    panels: list[tuple[str, str, Raster]] = [
        (ORIGINAL_TITLE, format_elapsed(0.0), processed.original)
    ]
    for result in processed.results:
        panels.append((result.title, format_elapsed(result.elapsed_ms), result.raster))

    caption_h = CAPTION_LINES * (font_size + 2) + 4
    panel_w = max(processed.width, 1)
    img_w = len(panels) * panel_w + (len(panels) - 1) * PANEL_GAP
    img_h = caption_h + max(processed.height, 1)

    sheet = Image.new("L", (img_w, img_h), bg_color)
    draw = ImageDraw.Draw(sheet)
    fg = 0 if bg_color > 127 else 255

    for i, (title, caption, raster) in enumerate(panels):
        x = i * (panel_w + PANEL_GAP)
        draw.text((x, 0), title, fill=fg, font=font)
        draw.text((x, font_size + 2), caption, fill=fg, font=font)
        if not raster.is_empty:
            sheet.paste(raster.to_image(), (x, caption_h))

    return sheet


def save_contact_sheet(
    processed: ProcessedImage,
    output_path: Path,
    font_size: int = DEFAULT_FONT_SIZE,
) -> Path:
    """Render and save the contact sheet; the format follows the suffix."""
    suffix = output_path.suffix.lower()
    if suffix not in (".png", ".gif", ".bmp", ".tif", ".tiff", ".webp"):
        raise ValueError(f"Unsupported output format: {suffix}")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    render_contact_sheet(processed, font_size).save(str(output_path))
    logger.info("saved contact sheet to %s", output_path)
    return output_path
