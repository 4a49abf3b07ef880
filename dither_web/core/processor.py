"""Dither pipeline.

Decode → greyscale raster → one private copy per method → dither → time.
"""

from __future__ import annotations

import hashlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from PIL import Image

from dither_web.core.dither import DitherMethod, apply_method
from dither_web.core.quantize import BiLevel, NLevel, Quantizer
from dither_web.core.raster import Raster

logger = logging.getLogger(__name__)

ALL_METHODS: tuple[DitherMethod, ...] = tuple(DitherMethod)


@dataclass(frozen=True)
class Settings:
    """Processing settings that affect output."""

    methods: tuple[DitherMethod, ...] = ALL_METHODS
    threshold: int = 128  # bilevel cut-off, used when levels == 2
    levels: int = 2  # 2 = black/white
    bayer_size: int = 4  # 1, 2, 4, 8 or 16
    seed: int | None = None  # random-threshold seed; None = fresh each run
    workers: int = 1  # >1 runs methods on a thread pool

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 256:
            raise ValueError(f"Threshold must be in 0..256, got {self.threshold}")

    def hash(self) -> str:
        """Deterministic hash for cache keying."""
        methods = ",".join(m.value for m in self.methods)
        data = (
            f"{methods}:{self.threshold}:{self.levels}:"
            f"{self.bayer_size}:{self.seed}"
        )
        return hashlib.md5(data.encode()).hexdigest()[:12]

    def quantizer(self) -> Quantizer:
        if self.levels == 2:
            return BiLevel(self.threshold)
        return NLevel(self.levels)


@dataclass
class DitherResult:
    """One dithered variant and how long it took."""

    method: DitherMethod
    raster: Raster
    elapsed_ms: float

    @property
    def title(self) -> str:
        return self.method.title


@dataclass
class ProcessedImage:
    """Greyscale original plus every requested variant."""

    original: Raster
    results: list[DitherResult] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def width(self) -> int:
        return self.original.width

    @property
    def height(self) -> int:
        return self.original.height

    def result_for(self, method: DitherMethod) -> DitherResult | None:
        for result in self.results:
            if result.method == method:
                return result
        return None


def _run_one(
    method: DitherMethod, source: Raster, quantize: Quantizer, settings: Settings
) -> DitherResult:
    start = time.perf_counter()
    working = source.copy()
    apply_method(
        method,
        working,
        quantize,
        bayer_size=settings.bayer_size,
        seed=settings.seed,
    )
    elapsed = (time.perf_counter() - start) * 1000.0
    logger.debug("%s time: %.2fms", method.title, elapsed)
    return DitherResult(method=method, raster=working, elapsed_ms=elapsed)


def run_dithers(source: Raster, settings: Settings) -> list[DitherResult]:
    """Run every method in ``settings`` on its own copy of ``source``.

    ``source`` is never modified. Results are returned in the order the
    methods were requested, whether or not a thread pool is used.
    """
    source.validate()
    quantize = settings.quantizer()

    if settings.workers > 1 and len(settings.methods) > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as pool:
            futures = [
                pool.submit(_run_one, method, source, quantize, settings)
                for method in settings.methods
            ]
            return [f.result() for f in futures]

    return [_run_one(m, source, quantize, settings) for m in settings.methods]


def process_raster(source: Raster, settings: Settings) -> ProcessedImage:
    """Dither an already-decoded greyscale raster."""
    start = time.perf_counter()
    results = run_dithers(source, settings)
    elapsed = (time.perf_counter() - start) * 1000.0
    logger.debug("all time: %.2fms", elapsed)
    return ProcessedImage(original=source, results=results, elapsed_ms=elapsed)


def process_image(img: Image.Image, settings: Settings) -> ProcessedImage:
    """Convert a PIL image to greyscale and dither it with every method."""
    return process_raster(Raster.from_image(img), settings)


def resize_for_preview(raster: Raster, width: int, height: int) -> Raster:
    """Downscale a raster to preview size before dithering it."""
    if raster.is_empty or (raster.width, raster.height) == (width, height):
        return raster.copy()
    resized = raster.to_image().resize(
        (max(1, width), max(1, height)), Image.Resampling.LANCZOS
    )
    return Raster.from_image(resized)
