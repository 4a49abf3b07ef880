"""Tests for the result cache and terminal fitting."""

from dither_web.utils.cache import ResultCache
from dither_web.utils.terminal import fit_to_cells, get_terminal_size


class TestResultCache:
    def test_get_missing(self):
        cache = ResultCache()
        assert cache.get("img", "abc") is None

    def test_put_get(self):
        cache = ResultCache()
        cache.put("img", "abc", 42)
        assert cache.get("img", "abc") == 42
        assert cache.get("img", "other") is None

    def test_evicts_least_recent(self):
        cache = ResultCache(max_size=2)
        cache.put("a", "s", 1)
        cache.put("b", "s", 2)
        cache.get("a", "s")
        cache.put("c", "s", 3)
        assert cache.get("b", "s") is None
        assert cache.get("a", "s") == 1
        assert cache.get("c", "s") == 3
        assert cache.size == 2

    def test_overwrite(self):
        cache = ResultCache(max_size=2)
        cache.put("a", "s", 1)
        cache.put("a", "s", 2)
        assert cache.size == 1
        assert cache.get("a", "s") == 2

    def test_clear(self):
        cache = ResultCache()
        cache.put("a", "s", 1)
        cache.clear()
        assert cache.size == 0


class TestFitToCells:
    def test_width_constrained(self):
        assert fit_to_cells(200, 100, max_width=50, max_height=50) == (50, 25)

    def test_height_constrained(self):
        assert fit_to_cells(100, 200, max_width=50, max_height=50) == (25, 50)

    def test_cell_aspect(self):
        # cells half as wide as tall need twice as many columns
        assert fit_to_cells(100, 100, max_width=80, max_height=20, cell_aspect=0.5) == (40, 20)

    def test_minimum_one(self):
        cols, rows = fit_to_cells(10000, 1, max_width=10, max_height=10)
        assert cols == 10
        assert rows == 1

    def test_terminal_size_fallback(self):
        w, h = get_terminal_size(fallback_width=100, fallback_height=40)
        assert w > 0 and h > 0
