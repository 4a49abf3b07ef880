"""Dithering algorithms for single-channel 8-bit rasters.

Three error-diffusion kernels (Floyd-Steinberg, Atkinson, Sierra Lite) share
one weighted-diffusion routine; Bayer ordered dithering and random-threshold
dithering are per-pixel and vectorized. All of them quantize through a
caller-supplied quantizer and mutate the raster they are given.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

import numpy as np

from dither_web.core.quantize import Quantizer, build_lut, spread_of
from dither_web.core.raster import Raster


@dataclass(frozen=True)
class Kernel:
    """Error-diffusion kernel.

    Each tap is ``(dx, dy, weight)``; a neighbour receives
    ``err * weight / divisor``. Taps must point at pixels the row-major scan
    has not reached yet. Weights summing to less than the divisor discard the
    remainder of the error.
    """

    name: str
    divisor: int
    taps: tuple[tuple[int, int, int], ...]

    def __post_init__(self) -> None:
        if self.divisor <= 0:
            raise ValueError(f"Kernel divisor must be positive, got {self.divisor}")
        for dx, dy, _ in self.taps:
            if dy < 0 or (dy == 0 and dx <= 0):
                raise ValueError(
                    f"Kernel {self.name!r} tap ({dx}, {dy}) points at a visited pixel"
                )

    @property
    def diffused_fraction(self) -> float:
        """Share of the quantization error passed on to neighbours."""
        return sum(w for _, _, w in self.taps) / self.divisor


#         X   7
#     3   5   1      (/16)
FLOYD_STEINBERG = Kernel(
    "Floyd-Steinberg",
    16,
    ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1)),
)

#         X   1   1
#     1   1   1
#         1          (/8, 2/8 discarded)
ATKINSON = Kernel(
    "Atkinson",
    8,
    ((1, 0, 1), (2, 0, 1), (-1, 1, 1), (0, 1, 1), (1, 1, 1), (0, 2, 1)),
)

#         X   2
#     1   1          (/4)
SIERRA_LITE = Kernel(
    "Sierra Lite",
    4,
    ((1, 0, 2), (-1, 1, 1), (0, 1, 1)),
)


def error_diffusion(raster: Raster, quantize: Quantizer, kernel: Kernel) -> Raster:
    """Quantize ``raster`` in place, spreading each pixel's error per ``kernel``.

    Pixels are visited left to right, top to bottom. Accumulated values are
    clamped to [0, 255] before quantizing. Error aimed outside the raster is
    dropped.
    """
    raster.validate()
    lut = build_lut(quantize).tolist()
    if raster.is_empty:
        return raster

    h, w = raster.height, raster.width
    rows = raster.pixels.astype(np.float64).tolist()
    taps = [(dx, dy, weight / kernel.divisor) for dx, dy, weight in kernel.taps]

    for y in range(h):
        row = rows[y]
        for x in range(w):
            old = min(255.0, max(0.0, row[x]))
            new = lut[int(old + 0.5)]
            row[x] = new
            err = old - new
            if err == 0:
                continue
            for dx, dy, factor in taps:
                nx, ny = x + dx, y + dy
                if 0 <= nx < w and ny < h:
                    rows[ny][nx] += err * factor

    raster.pixels[...] = np.array(rows, dtype=np.uint8)
    return raster


def floyd_steinberg(raster: Raster, quantize: Quantizer) -> Raster:
    """Floyd-Steinberg error diffusion (7/16, 3/16, 5/16, 1/16)."""
    return error_diffusion(raster, quantize, FLOYD_STEINBERG)


def atkinson(raster: Raster, quantize: Quantizer) -> Raster:
    """Atkinson error diffusion: six neighbours at 1/8 each, 2/8 discarded."""
    return error_diffusion(raster, quantize, ATKINSON)


def sierra_lite(raster: Raster, quantize: Quantizer) -> Raster:
    """Sierra Lite error diffusion (2/4, 1/4, 1/4)."""
    return error_diffusion(raster, quantize, SIERRA_LITE)


# --- Ordered dithering ---


@dataclass(frozen=True)
class ThresholdMatrix:
    """Square table of threshold levels on a 0..255 scale, tiled over the image."""

    levels: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        n = len(self.levels)
        if n == 0 or any(len(row) != n for row in self.levels):
            raise ValueError("Threshold matrix must be square and non-empty")
        if any(not 0 <= v <= 255 for row in self.levels for v in row):
            raise ValueError("Threshold levels must be in 0..255")

    @classmethod
    def from_rows(cls, rows) -> ThresholdMatrix:
        return cls(tuple(tuple(int(v) for v in row) for row in rows))

    @property
    def size(self) -> int:
        return len(self.levels)

    def bias(self, spread: float = 256.0) -> np.ndarray:
        """Per-cell bias added to a sample before quantizing.

        Levels are centred on the middle of the sample range, offset by half
        a matrix step so flat black and flat white stay flat.
        """
        arr = np.array(self.levels, dtype=np.float64)
        step = 256.0 / (self.size * self.size)
        return (arr + step / 2 - 128.0) * (spread / 256.0)


@lru_cache(maxsize=None)
def bayer_matrix(n: int = 4) -> ThresholdMatrix:
    """Standard ``n x n`` Bayer matrix scaled to 0..255 (``n`` a power of 2, <= 16).

    ``bayer_matrix(2)`` is ``[[0, 128], [192, 64]]``.
    """
    if n <= 0 or n & (n - 1) != 0 or n > 16:
        raise ValueError(f"Bayer size must be a power of 2 up to 16, got {n}")

    def build(k: int) -> np.ndarray:
        if k == 1:
            return np.array([[0]], dtype=np.int64)
        prev = 4 * build(k // 2)
        return np.block([[prev + 0, prev + 2], [prev + 3, prev + 1]])

    index = build(n)
    return ThresholdMatrix.from_rows(index * 256 // (n * n))


def _quantize_biased(raster: Raster, lut: np.ndarray, bias: np.ndarray) -> None:
    values = np.clip(raster.pixels.astype(np.float64) + bias, 0.0, 255.0)
    raster.pixels[...] = lut[np.floor(values + 0.5).astype(np.intp)]


def bayer(
    raster: Raster,
    quantize: Quantizer,
    matrix: ThresholdMatrix | None = None,
    size: int = 4,
) -> Raster:
    """Ordered dithering with a tiled threshold matrix.

    Each pixel at ``(x, y)`` gets the bias of cell ``(x mod N, y mod N)``
    before quantizing. ``matrix`` defaults to ``bayer_matrix(size)``.
    """
    raster.validate()
    if matrix is None:
        matrix = bayer_matrix(size)
    lut = build_lut(quantize)
    if raster.is_empty:
        return raster

    n = matrix.size
    bias = matrix.bias(spread_of(quantize))
    reps_y = (raster.height + n - 1) // n
    reps_x = (raster.width + n - 1) // n
    tiled = np.tile(bias, (reps_y, reps_x))[: raster.height, : raster.width]
    _quantize_biased(raster, lut, tiled)
    return raster


def random_threshold(
    raster: Raster,
    quantize: Quantizer,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
) -> Raster:
    """Random-threshold dithering.

    Each pixel gets a uniform bias of up to half a level spread either side
    (pulled in by half a sample so flat black and flat white stay flat)
    before quantizing. Pass ``rng`` to supply the random stream, or ``seed`` for a
    fresh reproducible one; with neither, output varies between calls.
    """
    if rng is not None and seed is not None:
        raise ValueError("Pass either rng or seed, not both")
    raster.validate()
    lut = build_lut(quantize)
    if raster.is_empty:
        return raster

    if rng is None:
        rng = np.random.default_rng(seed)
    half = spread_of(quantize) / 2 - 0.5
    bias = rng.uniform(-half, half, size=(raster.height, raster.width))
    _quantize_biased(raster, lut, bias)
    return raster


# --- Method registry ---


class DitherMethod(str, Enum):
    FLOYD_STEINBERG = "floyd-steinberg"
    ATKINSON = "atkinson"
    SIERRA_LITE = "sierra-lite"
    BAYER = "bayer"
    RANDOM_THRESHOLD = "random-threshold"

    @property
    def title(self) -> str:
        return METHOD_TITLES[self]

    @property
    def is_error_diffusion(self) -> bool:
        return self in KERNELS


METHOD_TITLES: dict[DitherMethod, str] = {
    DitherMethod.FLOYD_STEINBERG: "Floyd-Steinberg",
    DitherMethod.ATKINSON: "Atkinson",
    DitherMethod.SIERRA_LITE: "Sierra Lite",
    DitherMethod.BAYER: "Bayer",
    DitherMethod.RANDOM_THRESHOLD: "Random threshold",
}

KERNELS: dict[DitherMethod, Kernel] = {
    DitherMethod.FLOYD_STEINBERG: FLOYD_STEINBERG,
    DitherMethod.ATKINSON: ATKINSON,
    DitherMethod.SIERRA_LITE: SIERRA_LITE,
}


def apply_method(
    method: DitherMethod,
    raster: Raster,
    quantize: Quantizer,
    bayer_size: int = 4,
    seed: int | None = None,
) -> Raster:
    """Run one dither method on ``raster`` in place."""
    if method in KERNELS:
        return error_diffusion(raster, quantize, KERNELS[method])
    if method == DitherMethod.BAYER:
        return bayer(raster, quantize, size=bayer_size)
    if method == DitherMethod.RANDOM_THRESHOLD:
        return random_threshold(raster, quantize, seed=seed)
    raise ValueError(f"Unknown dither method: {method}")
