"""Tests for the LRU, template, and classification caches."""

from __future__ import annotations

import threading

import pytest

from serilogsyntax.cache import CacheManager, ClassificationCache, LruCache, TemplateCache
from serilogsyntax.errors import InvalidArgumentError
from serilogsyntax.regions import Category, ClassificationSpan
from serilogsyntax.tokens import TextSpan


def spans_at(start: int) -> list[ClassificationSpan]:
    return [ClassificationSpan(TextSpan(start, 1), Category.PROPERTY_BRACE)]


# ---------------------------------------------------------------------------
# LruCache
# ---------------------------------------------------------------------------


class TestLruCache:
    def test_add_and_get(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        cache.add("a", 1)
        assert cache.get("a") == 1
        assert cache.get("missing") is None
        assert cache.get("missing", 0) == 0

    def test_first_write_wins(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        cache.add("a", 1)
        cache.add("a", 2)
        assert cache.get("a") == 1

    def test_evicts_least_recently_used(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        cache.add("a", 1)
        cache.add("b", 2)
        cache.get("a")
        cache.add("c", 3)
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_clear_returns_count(self) -> None:
        cache: LruCache[str, int] = LruCache(5)
        cache.add("a", 1)
        cache.add("b", 2)
        assert cache.clear() == 2
        assert len(cache) == 0

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity(self, capacity: int) -> None:
        with pytest.raises(ValueError):
            LruCache(capacity)

    def test_concurrent_access_respects_capacity(self) -> None:
        cache: LruCache[int, int] = LruCache(50)

        def worker(offset: int) -> None:
            for i in range(500):
                cache.add(offset * 1000 + i, i)
                cache.get(offset * 1000 + i // 2)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 50


# ---------------------------------------------------------------------------
# TemplateCache
# ---------------------------------------------------------------------------


class TestTemplateCache:
    def test_same_result_object(self) -> None:
        cache = TemplateCache()
        first = cache.get_or_parse("Hello {Name}")
        assert cache.get_or_parse("Hello {Name}") is first
        assert len(cache) == 1

    def test_clear_forces_reparse(self) -> None:
        cache = TemplateCache()
        first = cache.get_or_parse("Hello {Name}")
        assert cache.clear() == 1
        second = cache.get_or_parse("Hello {Name}")
        assert second is not first
        assert second == first

    def test_parser_failure_cached_as_empty(self) -> None:
        calls = []

        def boom(template: str) -> list:
            calls.append(template)
            raise RuntimeError("parser bug")

        cache = TemplateCache(parse=boom)
        assert cache.get_or_parse("{X}") == []
        assert cache.get_or_parse("{X}") == []
        assert calls == ["{X}"]

    def test_none_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            TemplateCache().get_or_parse(None)  # type: ignore[arg-type]

    def test_concurrent_callers_agree(self) -> None:
        cache = TemplateCache()
        results = []

        def worker() -> None:
            results.append(cache.get_or_parse("{A} {B} {C}"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(r is results[0] for r in results)


# ---------------------------------------------------------------------------
# ClassificationCache
# ---------------------------------------------------------------------------


class TestClassificationCache:
    def make(self) -> ClassificationCache:
        cache = ClassificationCache()
        for start in (0, 20, 40, 60):
            cache.put(TextSpan(start, 10), spans_at(start))
        return cache

    def test_invalidate_overlapping(self) -> None:
        cache = self.make()
        removed = cache.invalidate_overlapping([TextSpan(25, 20)])
        assert removed == 2
        assert TextSpan(0, 10) in cache
        assert TextSpan(20, 10) not in cache
        assert TextSpan(40, 10) not in cache
        assert TextSpan(60, 10) in cache

    def test_zero_length_edit_invalidates(self) -> None:
        cache = self.make()
        assert cache.invalidate_overlapping([TextSpan(5, 0)]) == 1
        assert TextSpan(0, 10) not in cache

    def test_edit_in_gap_keeps_everything(self) -> None:
        cache = self.make()
        assert cache.invalidate_overlapping([TextSpan(12, 4)]) == 0
        assert len(cache) == 4

    def test_touching_edit_invalidates(self) -> None:
        cache = self.make()
        # [10, 20) touches the entries at 0 and 20 without sharing a character
        assert cache.invalidate_overlapping([TextSpan(10, 10)]) == 2
        assert TextSpan(0, 10) not in cache
        assert TextSpan(20, 10) not in cache
        assert TextSpan(40, 10) in cache

    def test_edit_in_dependency_invalidates(self) -> None:
        cache = ClassificationCache()
        cache.put(TextSpan(40, 10), spans_at(40), depends_on=TextSpan(0, 15))
        cache.put(TextSpan(60, 10), spans_at(60))
        assert cache.depends_on(TextSpan(40, 10)) == TextSpan(0, 15)
        assert cache.invalidate_overlapping([TextSpan(3, 2)]) == 1
        assert TextSpan(40, 10) not in cache
        assert cache.depends_on(TextSpan(40, 10)) is None
        assert TextSpan(60, 10) in cache

    def test_put_is_first_write_wins(self) -> None:
        cache = ClassificationCache()
        first = spans_at(0)
        assert cache.put(TextSpan(0, 10), first) is first
        assert cache.put(TextSpan(0, 10), spans_at(1)) is first
        assert cache.get(TextSpan(0, 10)) is first

    def test_clear(self) -> None:
        cache = self.make()
        assert cache.clear() == 4
        assert cache.get(TextSpan(0, 10)) is None


class TestCacheManager:
    def test_clear_clears_everything(self) -> None:
        manager = CacheManager()
        lru = manager.register(LruCache(5, "calls"))
        lru.add("x", True)
        manager.get_or_parse("{A}")
        manager.classifications.put(TextSpan(0, 1), spans_at(0))
        manager.clear()
        assert len(lru) == 0
        assert len(manager.templates) == 0
        assert len(manager.classifications) == 0

    def test_invalidate(self) -> None:
        manager = CacheManager()
        manager.classifications.put(TextSpan(0, 10), spans_at(0))
        assert manager.invalidate([TextSpan(3, 1)]) == 1
