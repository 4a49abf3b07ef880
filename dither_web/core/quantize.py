"""Quantizers: map an 8-bit sample to the nearest representable output level.

Any callable ``int -> int`` works as a quantizer. The classes here also carry
a ``spread`` (distance between adjacent output levels on a 256 scale), which
the ordered and random dithers use to size their bias.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np

Quantizer = Callable[[int], int]

FULL_SPREAD = 256.0


@dataclass(frozen=True)
class BiLevel:
    """Black/white quantizer: samples >= threshold become 255, others 0."""

    threshold: int = 128

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 256:
            raise ValueError(f"Threshold must be in 0..256, got {self.threshold}")

    def __call__(self, value: int) -> int:
        return 255 if value >= self.threshold else 0

    @property
    def spread(self) -> float:
        return FULL_SPREAD

    @property
    def palette(self) -> tuple[int, ...]:
        return (0, 255)


@dataclass(frozen=True)
class NLevel:
    """Evenly spaced grey levels from 0 to 255 (``levels`` >= 2)."""

    levels: int = 4

    def __post_init__(self) -> None:
        if self.levels < 2 or self.levels > 256:
            raise ValueError(f"Levels must be in 2..256, got {self.levels}")

    def __call__(self, value: int) -> int:
        step = 255 / (self.levels - 1)
        return int(round(round(value / step) * step))

    @property
    def spread(self) -> float:
        return FULL_SPREAD / (self.levels - 1)

    @property
    def palette(self) -> tuple[int, ...]:
        return tuple(sorted({self(v) for v in range(256)}))


def spread_of(quantize: Quantizer) -> float:
    """Bias spread for a quantizer; plain callables get the full sample range."""
    return float(getattr(quantize, "spread", FULL_SPREAD))


def build_lut(quantize: Quantizer) -> np.ndarray:
    """Tabulate a quantizer over every 8-bit input.

    Raises:
        ValueError: if the quantizer returns anything outside 0..255.
    """
    table = [int(quantize(v)) for v in range(256)]
    bad = [v for v in table if not 0 <= v <= 255]
    if bad:
        raise ValueError(f"Quantizer returned out-of-range levels: {sorted(set(bad))[:5]}")
    return np.array(table, dtype=np.uint8)
