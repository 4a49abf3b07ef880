"""Image loading from files, raw bytes, or URL downloads.

Every decoded image is flattened to an 8-bit greyscale raster; alpha is
composited onto white first so transparent regions do not turn black.
"""

from __future__ import annotations

import io
import logging
import tempfile
import urllib.error
import urllib.request
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError

from dither_web.core.raster import Raster

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: dict[str, str] = {
    ".png": "png",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".gif": "gif",
    ".bmp": "bmp",
    ".tif": "tiff",
    ".tiff": "tiff",
    ".webp": "webp",
}


@dataclass
class ImageInfo:
    """Metadata about the input image."""

    path: Path | None  # None for images decoded from memory
    format: str
    width: int
    height: int

    @property
    def name(self) -> str:
        return self.path.name if self.path else "<memory>"


@dataclass
class LoadedImage:
    raster: Raster
    info: ImageInfo


def detect_format(path: Path) -> str:
    """Detect image format from file extension."""
    suffix = path.suffix.lower()
    if suffix in SUPPORTED_SUFFIXES:
        return SUPPORTED_SUFFIXES[suffix]
    raise ValueError(f"Unsupported format: {suffix}")


def _to_greyscale(img: Image.Image) -> Image.Image:
    """Flatten to "L", compositing any transparency onto white."""
    if img.mode in ("RGBA", "LA") or "transparency" in img.info:
        rgba = img.convert("RGBA")
        canvas = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        canvas.alpha_composite(rgba)
        return canvas.convert("L")
    return img.convert("L")


def _decode(stream, source: str) -> tuple[Image.Image, str]:
    try:
        with Image.open(stream) as img:
            img.load()
            fmt = (img.format or "unknown").lower()
            return _to_greyscale(img), fmt
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ValueError(f"Cannot decode image: {source}: {e}") from e


def load_from_bytes(data: bytes) -> LoadedImage:
    """Decode an in-memory image (any format Pillow understands)."""
    if not data:
        raise ValueError("Image data is empty")
    gray, fmt = _decode(io.BytesIO(data), "<memory>")
    raster = Raster.from_image(gray)
    logger.info("decoded %d bytes: %dx%d %s", len(data), raster.width, raster.height, fmt)
    return LoadedImage(
        raster=raster,
        info=ImageInfo(path=None, format=fmt, width=raster.width, height=raster.height),
    )


def load_image_file(path: Path) -> LoadedImage:
    """Decode an image file into a greyscale raster."""
    detect_format(path)
    gray, fmt = _decode(path, str(path))
    raster = Raster.from_image(gray)
    logger.info("finished loading image: %s (%dx%d)", path.name, raster.width, raster.height)
    return LoadedImage(
        raster=raster,
        info=ImageInfo(path=path, format=fmt, width=raster.width, height=raster.height),
    )


def is_url(path: str) -> bool:
    """Check if the input looks like an HTTP(S) URL."""
    try:
        parsed = urlparse(str(path))
        return parsed.scheme in ("http", "https")
    except ValueError:
        return False


def _guess_extension_from_url(url: str) -> str:
    """Extract file extension from a URL path."""
    parsed = urlparse(url)
    suffix = Path(parsed.path).suffix.lower()
    if suffix in SUPPORTED_SUFFIXES:
        return suffix
    # Pillow sniffs the real format; the suffix only has to be accepted
    return ".png"


def download_media(
    url: str,
    on_progress: Callable[[int, int], None] | None = None,
) -> Path:
    """Download an image from a URL to a temp file.

    Args:
        url: HTTP(S) URL to download.
        on_progress: optional callback(bytes_downloaded, total_bytes).

    Returns:
        Path to the downloaded temporary file.

    Raises:
        ValueError: if the URL is unreachable, returns an error, or is empty.
    """
    ext = _guess_extension_from_url(url)
    tmp = tempfile.NamedTemporaryFile(suffix=ext, delete=False)
    tmp_path = Path(tmp.name)

    try:
        req = urllib.request.Request(url, headers={"User-Agent": "dither-web/0.1"})
        with urllib.request.urlopen(req, timeout=30) as resp:
            total = int(resp.headers.get("Content-Length", 0))
            downloaded = 0
            while True:
                chunk = resp.read(65536)
                if not chunk:
                    break
                tmp.write(chunk)
                downloaded += len(chunk)
                if on_progress:
                    on_progress(downloaded, total)
        tmp.close()
    except urllib.error.URLError as e:
        tmp.close()
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Failed to download {url}: {e}") from e
    except Exception:
        tmp.close()
        tmp_path.unlink(missing_ok=True)
        raise

    if tmp_path.stat().st_size == 0:
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Downloaded file is empty: {url}")

    logger.info("downloaded %s to %s", url, tmp_path)
    return tmp_path


def load_image(path: str | Path) -> LoadedImage:
    """Load a local image file or HTTP(S) URL as a greyscale raster.

    URLs are downloaded to a temporary file, which is removed once decoded;
    the returned info then has no path.
    """
    path_str = str(path)
    if is_url(path_str):
        local_path = download_media(path_str)
        try:
            loaded = load_image_file(local_path)
        finally:
            local_path.unlink(missing_ok=True)
        loaded.info = replace(loaded.info, path=None)
        return loaded
    else:
        local_path = Path(path_str)
        if not local_path.exists():
            raise FileNotFoundError(f"File not found: {local_path}")
    return load_image_file(local_path)
