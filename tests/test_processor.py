"""Tests for the dither pipeline."""

import numpy as np
import pytest
from PIL import Image

from dither_web.core.dither import DitherMethod
from dither_web.core.processor import (
    ALL_METHODS,
    DitherResult,
    ProcessedImage,
    Settings,
    process_image,
    process_raster,
    resize_for_preview,
    run_dithers,
)
from dither_web.core.quantize import BiLevel, NLevel
from dither_web.core.raster import InvalidRaster, Raster


def _gradient(width=32, height=16):
    row = np.linspace(0, 255, width).astype(np.uint8)
    return Raster.from_array(np.tile(row, (height, 1)))


class TestSettings:
    def test_default_settings(self):
        s = Settings()
        assert s.methods == ALL_METHODS
        assert s.threshold == 128
        assert s.levels == 2
        assert s.bayer_size == 4
        assert s.seed is None
        assert s.workers == 1

    def test_hash_deterministic(self):
        assert Settings().hash() == Settings().hash()

    def test_hash_changes_with_settings(self):
        assert Settings().hash() != Settings(threshold=100).hash()
        assert Settings().hash() != Settings(seed=1).hash()

    def test_hash_ignores_workers(self):
        assert Settings().hash() == Settings(workers=4).hash()

    def test_quantizer(self):
        assert Settings(threshold=90).quantizer() == BiLevel(90)
        assert Settings(levels=4).quantizer() == NLevel(4)

    def test_threshold_range(self):
        assert Settings(threshold=0).quantizer() == BiLevel(0)
        assert Settings(threshold=256).quantizer() == BiLevel(256)
        with pytest.raises(ValueError, match="0..256"):
            Settings(threshold=257)
        with pytest.raises(ValueError, match="0..256"):
            Settings(threshold=-1, levels=4)


class TestRunDithers:
    def test_all_five_in_order(self):
        results = run_dithers(_gradient(), Settings(seed=1))
        assert [r.method for r in results] == list(DitherMethod)
        assert all(isinstance(r, DitherResult) for r in results)

    def test_titles(self):
        results = run_dithers(_gradient(), Settings(seed=1))
        assert [r.title for r in results] == [
            "Floyd-Steinberg",
            "Atkinson",
            "Sierra Lite",
            "Bayer",
            "Random threshold",
        ]

    def test_source_untouched(self):
        source = _gradient()
        before = source.pixels.copy()
        run_dithers(source, Settings(seed=1))
        assert np.array_equal(source.pixels, before)

    def test_private_buffers(self):
        results = run_dithers(_gradient(), Settings(seed=1))
        ids = {id(r.raster.pixels) for r in results}
        assert len(ids) == len(results)

    def test_timings_recorded(self):
        for result in run_dithers(_gradient(), Settings(seed=1)):
            assert result.elapsed_ms >= 0.0

    def test_subset_of_methods(self):
        settings = Settings(methods=(DitherMethod.BAYER, DitherMethod.ATKINSON))
        results = run_dithers(_gradient(), settings)
        assert [r.method for r in results] == [DitherMethod.BAYER, DitherMethod.ATKINSON]

    def test_parallel_matches_sequential(self):
        source = _gradient(40, 24)
        seq = run_dithers(source, Settings(seed=5))
        par = run_dithers(source, Settings(seed=5, workers=5))
        assert [r.method for r in par] == [r.method for r in seq]
        for a, b in zip(seq, par):
            assert np.array_equal(a.raster.pixels, b.raster.pixels)

    def test_invalid_source(self):
        bad = Raster(3, 3, np.zeros((2, 3), dtype=np.uint8))
        with pytest.raises(InvalidRaster):
            run_dithers(bad, Settings())

    def test_empty_source(self):
        results = run_dithers(Raster.from_samples(0, 0, []), Settings(seed=1))
        assert len(results) == 5
        assert all(r.raster.is_empty for r in results)

    def test_multi_level(self):
        results = run_dithers(_gradient(), Settings(levels=3, seed=1))
        for r in results:
            assert set(np.unique(r.raster.pixels).tolist()) <= {0, 128, 255}


class TestProcessImage:
    def test_process_image(self):
        img = Image.new("RGB", (20, 10), (128, 64, 32))
        processed = process_image(img, Settings(seed=1))
        assert isinstance(processed, ProcessedImage)
        assert (processed.width, processed.height) == (20, 10)
        assert len(processed.results) == 5
        assert processed.elapsed_ms >= 0.0

    def test_result_for(self):
        processed = process_raster(_gradient(), Settings(seed=1))
        assert processed.result_for(DitherMethod.BAYER).method == DitherMethod.BAYER
        only = process_raster(_gradient(), Settings(methods=(DitherMethod.BAYER,)))
        assert only.result_for(DitherMethod.ATKINSON) is None

    def test_original_is_greyscale_source(self):
        source = _gradient()
        processed = process_raster(source, Settings(seed=1))
        assert processed.original is source


class TestResizeForPreview:
    def test_resize(self):
        small = resize_for_preview(_gradient(64, 32), 16, 8)
        assert (small.width, small.height) == (16, 8)

    def test_same_size_copies(self):
        source = _gradient()
        same = resize_for_preview(source, source.width, source.height)
        assert same is not source
        assert np.array_equal(same.pixels, source.pixels)
