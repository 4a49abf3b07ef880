"""LRU cache of pipeline results keyed by (image_key, settings_hash)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Generic, TypeVar

T = TypeVar("T")


class ResultCache(Generic[T]):
    """Simple LRU cache for processed images.

    Keys are (image_key, settings_hash) tuples, where image_key identifies
    the source raster and its preview size.
    """

    def __init__(self, max_size: int = 16) -> None:
        self._max_size = max_size
        self._cache: OrderedDict[tuple[str, str], T] = OrderedDict()

    def get(self, image_key: str, settings_hash: str) -> T | None:
        """Get a cached result, or None if not present."""
        key = (image_key, settings_hash)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        return None

    def put(self, image_key: str, settings_hash: str, value: T) -> None:
        key = (image_key, settings_hash)
        if key in self._cache:
            self._cache.move_to_end(key)
        else:
            if len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
        self._cache[key] = value

    def clear(self) -> None:
        self._cache.clear()

    @property
    def size(self) -> int:
        return len(self._cache)
