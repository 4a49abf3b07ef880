"""Tests for image loading."""

import io
import tempfile
import urllib.request
from pathlib import Path

import pytest
from PIL import Image

from dither_web.core.reader import (
    ImageInfo,
    LoadedImage,
    _guess_extension_from_url,
    detect_format,
    is_url,
    load_from_bytes,
    load_image,
)


class TestDetectFormat:
    def test_png(self):
        assert detect_format(Path("test.png")) == "png"

    def test_jpeg(self):
        assert detect_format(Path("test.JPG")) == "jpeg"
        assert detect_format(Path("test.jpeg")) == "jpeg"

    def test_gif(self):
        assert detect_format(Path("test.gif")) == "gif"

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported"):
            detect_format(Path("test.txt"))


class TestUrls:
    def test_is_url(self):
        assert is_url("https://example.com/cat.png")
        assert is_url("http://example.com/cat.png")
        assert not is_url("/tmp/cat.png")
        assert not is_url("cat.png")

    def test_guess_extension(self):
        assert _guess_extension_from_url("https://x.org/a/b.jpg?size=2") == ".jpg"
        assert _guess_extension_from_url("https://x.org/image") == ".png"


class TestLoadImage:
    @pytest.fixture
    def sample_png(self, tmp_path):
        path = tmp_path / "sample.png"
        Image.new("RGB", (12, 8), (255, 255, 255)).save(str(path))
        return path

    def test_load_png(self, sample_png):
        loaded = load_image(sample_png)
        assert isinstance(loaded, LoadedImage)
        assert isinstance(loaded.info, ImageInfo)
        assert loaded.info.format == "png"
        assert (loaded.info.width, loaded.info.height) == (12, 8)
        assert (loaded.raster.width, loaded.raster.height) == (12, 8)
        assert loaded.raster.samples() == [255] * 96
        assert loaded.info.name == "sample.png"

    def test_accepts_str_path(self, sample_png):
        loaded = load_image(str(sample_png))
        assert loaded.info.path == sample_png

    def test_colour_converted_to_greyscale(self, tmp_path):
        path = tmp_path / "red.png"
        Image.new("RGB", (4, 4), (255, 0, 0)).save(str(path))
        loaded = load_image(path)
        # ITU-R 601-2 luma: 255 * 299/1000
        assert set(loaded.raster.samples()) == {76}

    def test_transparent_becomes_white(self, tmp_path):
        path = tmp_path / "clear.png"
        Image.new("RGBA", (4, 4), (0, 0, 0, 0)).save(str(path))
        loaded = load_image(path)
        assert set(loaded.raster.samples()) == {255}

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_image("/nonexistent/file.png")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValueError, match="Unsupported"):
            load_image(path)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not a png at all")
        with pytest.raises(ValueError, match="Cannot decode"):
            load_image(path)


class TestLoadFromBytes:
    def test_png_bytes(self):
        buf = io.BytesIO()
        Image.new("L", (3, 2), 42).save(buf, format="PNG")
        loaded = load_from_bytes(buf.getvalue())
        assert loaded.info.path is None
        assert loaded.info.name == "<memory>"
        assert loaded.raster.samples() == [42] * 6

    def test_empty_bytes(self):
        with pytest.raises(ValueError, match="empty"):
            load_from_bytes(b"")

    def test_garbage_bytes(self):
        with pytest.raises(ValueError, match="Cannot decode"):
            load_from_bytes(b"\x00\x01\x02")


class _FakeResponse(io.BytesIO):
    def __init__(self, data: bytes):
        super().__init__(data)
        self.headers = {"Content-Length": str(len(data))}


class TestLoadFromUrl:
    @pytest.fixture
    def served_png(self, monkeypatch, tmp_path):
        buf = io.BytesIO()
        Image.new("L", (4, 4), 200).save(buf, format="PNG")
        monkeypatch.setattr(
            urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(buf.getvalue())
        )
        download_dir = tmp_path / "downloads"
        download_dir.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(download_dir))
        return download_dir

    def test_decodes_download(self, served_png):
        loaded = load_image("http://example.invalid/a.png")
        assert (loaded.raster.width, loaded.raster.height) == (4, 4)
        assert loaded.raster.samples() == [200] * 16
        assert loaded.info.path is None

    def test_removes_temporary_file(self, served_png):
        load_image("http://example.invalid/a.png")
        assert list(served_png.iterdir()) == []

    def test_removes_temporary_file_on_decode_error(self, monkeypatch, served_png):
        monkeypatch.setattr(
            urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(b"garbage")
        )
        with pytest.raises(ValueError, match="Cannot decode"):
            load_image("http://example.invalid/a.png")
        assert list(served_png.iterdir()) == []


class TestDecompressionBomb:
    def test_oversized_image_is_value_error(self, monkeypatch):
        buf = io.BytesIO()
        Image.new("L", (16, 16), 0).save(buf, format="PNG")
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        with pytest.raises(ValueError, match="Cannot decode"):
            load_from_bytes(buf.getvalue())
