"""Tests for the raster type and quantizers."""

import numpy as np
import pytest
from PIL import Image

from dither_web.core.quantize import BiLevel, NLevel, build_lut, spread_of
from dither_web.core.raster import InvalidRaster, Raster


class TestRaster:
    def test_from_samples_row_major(self):
        raster = Raster.from_samples(3, 2, [1, 2, 3, 4, 5, 6])
        assert raster.pixels.shape == (2, 3)
        assert raster.pixels[1, 0] == 4
        assert raster.samples() == [1, 2, 3, 4, 5, 6]

    def test_from_bytes(self):
        raster = Raster.from_samples(2, 1, b"\x00\xff")
        assert raster.samples() == [0, 255]

    def test_sample_count_mismatch(self):
        with pytest.raises(InvalidRaster, match="Expected 6 samples"):
            Raster.from_samples(3, 2, [1, 2, 3])

    def test_empty_buffer_with_dimensions(self):
        with pytest.raises(InvalidRaster):
            Raster.from_samples(2, 2, [])

    def test_out_of_range_samples(self):
        with pytest.raises(InvalidRaster, match="0..255"):
            Raster.from_samples(2, 1, [0, 256])

    def test_negative_dimensions(self):
        with pytest.raises(InvalidRaster, match="Negative"):
            Raster.from_samples(-1, 2, [])

    def test_zero_dimensions_allowed(self):
        raster = Raster.from_samples(0, 0, [])
        assert raster.is_empty
        raster.validate()

    def test_from_array_rejects_wrong_dtype(self):
        with pytest.raises(InvalidRaster, match="uint8"):
            Raster.from_array(np.zeros((2, 2), dtype=np.float64))

    def test_from_array_rejects_3d(self):
        with pytest.raises(InvalidRaster, match="2D"):
            Raster.from_array(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_from_array_copies(self):
        arr = np.zeros((2, 2), dtype=np.uint8)
        raster = Raster.from_array(arr)
        raster.pixels[0, 0] = 9
        assert arr[0, 0] == 0

    def test_validate_shape_mismatch(self):
        raster = Raster(4, 4, np.zeros((3, 4), dtype=np.uint8))
        with pytest.raises(InvalidRaster, match="does not match"):
            raster.validate()

    def test_copy_is_independent(self):
        raster = Raster.from_samples(2, 1, [10, 20])
        dup = raster.copy()
        dup.pixels[0, 0] = 99
        assert raster.samples() == [10, 20]

    def test_image_round_trip(self):
        img = Image.new("RGB", (5, 3), (255, 255, 255))
        raster = Raster.from_image(img)
        assert (raster.width, raster.height) == (5, 3)
        assert raster.samples() == [255] * 15
        back = raster.to_image()
        assert back.mode == "L"
        assert back.size == (5, 3)

    def test_blank(self):
        raster = Raster.blank(3, 2, 7)
        assert raster.samples() == [7] * 6


class TestQuantizers:
    def test_bilevel_threshold(self):
        q = BiLevel(128)
        assert q(127) == 0
        assert q(128) == 255
        assert q.palette == (0, 255)

    def test_bilevel_invalid_threshold(self):
        with pytest.raises(ValueError, match="Threshold"):
            BiLevel(300)

    def test_nlevel_palette(self):
        assert NLevel(2).palette == (0, 255)
        assert NLevel(4).palette == (0, 85, 170, 255)

    def test_nlevel_nearest(self):
        q = NLevel(4)
        assert q(40) == 0
        assert q(50) == 85
        assert q(250) == 255

    def test_nlevel_invalid(self):
        with pytest.raises(ValueError, match="Levels"):
            NLevel(1)

    def test_spread(self):
        assert spread_of(BiLevel()) == 256.0
        assert spread_of(NLevel(3)) == 128.0
        assert spread_of(lambda v: v) == 256.0

    def test_build_lut(self):
        lut = build_lut(BiLevel(100))
        assert lut.shape == (256,)
        assert lut[99] == 0
        assert lut[100] == 255

    def test_build_lut_rejects_out_of_range(self):
        with pytest.raises(ValueError, match="out-of-range"):
            build_lut(lambda v: -1)
