"""Cache layer: generic LRU, content-keyed template cache, span-keyed results.

Every cache guards its own structure with a lock. Locks are never held
while parsing; a value computed outside the lock is inserted with
first-write-wins semantics so concurrent producers agree on one result.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable, Hashable, Iterable
from typing import Generic, TypeVar

from loguru import logger

from serilogsyntax import logs
from serilogsyntax.errors import require_text
from serilogsyntax.regions import ClassificationSpan
from serilogsyntax.template import TemplateProperty, parse_template
from serilogsyntax.tokens import TextSpan

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LruCache(Generic[K, V]):
    """Bounded least-recently-used cache.

    ``add`` never overwrites: when the key is present the call is a no-op.
    Treat population as idempotent, not as an update mechanism.
    """

    def __init__(self, capacity: int, name: str = "lru") -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.name = name
        self._items: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the value for *key* and mark it most recently used."""
        with self._lock:
            try:
                self._items.move_to_end(key)
            except KeyError:
                return default
            return self._items[key]

    def add(self, key: K, value: V) -> None:
        with self._lock:
            if key in self._items:
                return
            if len(self._items) >= self.capacity:
                self._items.popitem(last=False)
            self._items[key] = value

    def clear(self) -> int:
        """Drop every entry and return how many there were."""
        with self._lock:
            count = len(self._items)
            self._items.clear()
        logger.debug(logs.LRU_CLEARED.format(name=self.name, count=count))
        return count

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class TemplateCache:
    """Parsed templates keyed by their exact text."""

    def __init__(self, parse: Callable[[str], list[TemplateProperty]] = parse_template) -> None:
        self._parse = parse
        self._items: dict[str, list[TemplateProperty]] = {}
        self._lock = threading.Lock()

    def get_or_parse(self, template: str) -> list[TemplateProperty]:
        """Return the cached parse of *template*, parsing on first use.

        Any failure inside the parser is logged and cached as an empty list
        so a bad template is not re-parsed on every keystroke.
        """
        require_text(template, "template")
        with self._lock:
            cached = self._items.get(template)
        if cached is not None:
            return cached

        try:
            result = self._parse(template)
        except Exception:
            logger.exception(logs.TEMPLATE_PARSE_FAILED.format(template=template[:80]))
            result = []

        with self._lock:
            return self._items.setdefault(template, result)

    def clear(self) -> int:
        with self._lock:
            count = len(self._items)
            self._items.clear()
        logger.debug(logs.TEMPLATE_CACHE_CLEARED.format(count=count))
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ClassificationCache:
    """Classification results keyed by the span they were computed for.

    An entry may also record the earlier text it was derived from (the
    opener of a multi-line literal, or the lines a wrapped call started on);
    an edit there evicts the entry too.
    """

    def __init__(self) -> None:
        self._items: dict[TextSpan, list[ClassificationSpan]] = {}
        self._depends: dict[TextSpan, TextSpan] = {}
        self._lock = threading.Lock()

    def get(self, span: TextSpan) -> list[ClassificationSpan] | None:
        with self._lock:
            return self._items.get(span)

    def put(
        self,
        span: TextSpan,
        spans: list[ClassificationSpan],
        depends_on: TextSpan | None = None,
    ) -> list[ClassificationSpan]:
        """Store *spans* unless a result for *span* already exists; return the stored one."""
        with self._lock:
            if span in self._items:
                return self._items[span]
            self._items[span] = spans
            if depends_on is not None:
                self._depends[span] = depends_on
            return spans

    def depends_on(self, span: TextSpan) -> TextSpan | None:
        with self._lock:
            return self._depends.get(span)

    def invalidate_overlapping(self, edited: Iterable[TextSpan]) -> int:
        """Evict every entry whose span or dependency intersects any edited span.

        Intersection includes spans that merely touch: an edit ending where
        an entry begins, or an empty insertion at either edge, evicts it.
        """
        edited = list(edited)
        with self._lock:
            stale = [
                span
                for span in self._items
                if any(self._hit(span, edit) for edit in edited)
            ]
            for span in stale:
                del self._items[span]
                self._depends.pop(span, None)
        logger.debug(logs.CLASSIFICATION_INVALIDATED.format(count=len(stale), edits=len(edited)))
        return len(stale)

    def _hit(self, span: TextSpan, edit: TextSpan) -> bool:
        if span.intersects_with(edit):
            return True
        dependency = self._depends.get(span)
        return dependency is not None and dependency.intersects_with(edit)

    def clear(self) -> int:
        with self._lock:
            count = len(self._items)
            self._items.clear()
            self._depends.clear()
        logger.debug(logs.CLASSIFICATION_CACHE_CLEARED.format(count=count))
        return count

    def __contains__(self, span: object) -> bool:
        with self._lock:
            return span in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class CacheManager:
    """Owns every cache used by one classifier and clears them together."""

    def __init__(self) -> None:
        self.templates = TemplateCache()
        self.classifications = ClassificationCache()
        self._lru_caches: list[LruCache] = []
        self._lock = threading.Lock()

    def register(self, cache: LruCache) -> LruCache:
        """Include *cache* in ``clear()`` and return it."""
        with self._lock:
            self._lru_caches.append(cache)
        return cache

    def get_or_parse(self, template: str) -> list[TemplateProperty]:
        return self.templates.get_or_parse(template)

    def invalidate(self, edited: Iterable[TextSpan]) -> int:
        return self.classifications.invalidate_overlapping(edited)

    def clear(self) -> None:
        with self._lock:
            self.templates.clear()
            self.classifications.clear()
            for cache in self._lru_caches:
                cache.clear()
        logger.debug(logs.CACHES_CLEARED)
