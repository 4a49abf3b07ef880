"""Single-channel 8-bit raster shared by the dither engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from PIL import Image


class InvalidRaster(ValueError):
    """Raised when a raster's buffer does not match its declared dimensions."""


@dataclass
class Raster:
    """A row-major grid of uint8 samples.

    ``pixels`` has shape ``(height, width)``. Rasters are mutable; the dither
    functions write into the one they are handed.
    """

    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def from_samples(
        cls, width: int, height: int, samples: Sequence[int] | bytes
    ) -> Raster:
        """Build a raster from a flat row-major sequence of samples."""
        if width < 0 or height < 0:
            raise InvalidRaster(f"Negative dimensions: {width}x{height}")
        flat = np.asarray(bytearray(samples) if isinstance(samples, bytes) else samples)
        if flat.size != width * height:
            raise InvalidRaster(
                f"Expected {width * height} samples for {width}x{height}, "
                f"got {flat.size}"
            )
        if flat.size and (flat.min() < 0 or flat.max() > 255):
            raise InvalidRaster("Samples must be in 0..255")
        return cls(width, height, flat.astype(np.uint8).reshape(height, width))

    @classmethod
    def from_array(cls, array: np.ndarray) -> Raster:
        """Wrap a 2D uint8 array (copied)."""
        if array.ndim != 2:
            raise InvalidRaster(f"Expected a 2D array, got {array.ndim}D")
        if array.dtype != np.uint8:
            raise InvalidRaster(f"Expected uint8 samples, got {array.dtype}")
        h, w = array.shape
        return cls(w, h, array.copy())

    @classmethod
    def from_image(cls, img: Image.Image) -> Raster:
        """Convert a PIL image to greyscale and wrap it."""
        gray = np.array(img.convert("L"), dtype=np.uint8)
        return cls.from_array(gray)

    @classmethod
    def blank(cls, width: int, height: int, value: int = 0) -> Raster:
        return cls(width, height, np.full((height, width), value, dtype=np.uint8))

    def validate(self) -> None:
        """Check the buffer against the declared dimensions.

        Raises:
            InvalidRaster: on negative dimensions, a non-2D or non-uint8
                buffer, or a shape that disagrees with width/height.
        """
        if self.width < 0 or self.height < 0:
            raise InvalidRaster(f"Negative dimensions: {self.width}x{self.height}")
        if not isinstance(self.pixels, np.ndarray):
            raise InvalidRaster("Pixel buffer must be a numpy array")
        if self.pixels.ndim != 2:
            raise InvalidRaster(f"Expected a 2D buffer, got {self.pixels.ndim}D")
        if self.pixels.dtype != np.uint8:
            raise InvalidRaster(f"Expected uint8 samples, got {self.pixels.dtype}")
        if self.pixels.shape != (self.height, self.width):
            raise InvalidRaster(
                f"Buffer shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height}"
            )

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def copy(self) -> Raster:
        return Raster(self.width, self.height, self.pixels.copy())

    def samples(self) -> list[int]:
        """Flat row-major list of samples."""
        return [int(v) for v in self.pixels.ravel()]

    def to_image(self) -> Image.Image:
        """Return a PIL "L" image of this raster."""
        if self.is_empty:
            return Image.new("L", (self.width, self.height))
        return Image.fromarray(self.pixels)
