from __future__ import annotations

import dataclasses
import re
import time
from collections.abc import Callable

import ujson

from pykaza.constants.config import CACHE_HEALTH_CEILING, CACHE_TTL
from pykaza.logging import getLogger
from pykaza.players.query.classifier import is_url
from pykaza.search.result import SearchResult
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

LOGGER = getLogger("PyKaza.SearchCache")

_WHITESPACE = re.compile(r"\s+")


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class CacheEntry:
    result: SearchResult
    created: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now > self.created + self.ttl


def normalize_query(query: str) -> str:
    """Collapses whitespace, plain text is also lowercased, URLs keep their case"""
    query = _WHITESPACE.sub(" ", query.strip())
    return query if is_url(query) else query.lower()


def cache_key(query: str, source: str | None, limit: int) -> str:
    """Derives the cache key from the inputs that change a search result"""
    return ujson.dumps({"query": normalize_query(query), "source": source, "limit": limit}, sort_keys=True)


class ResolutionCache:
    """A time bounded memo of successful searches.

    Expired entries are never returned, they are purged lazily by :meth:`get` and in bulk by :meth:`sweep`.
    The size ceiling is only reported through :attr:`healthy`, it is not enforced by eviction.

    Parameters
    ----------
    ttl: :class:`float`
        The default time to live of an entry, in seconds.
    ceiling: :class:`int`
        The entry count above which the cache reports itself unhealthy.
    clock: Callable[[], :class:`float`]
        The monotonic clock used for expiry, in seconds.
    """

    __slots__ = ("_entries", "_ttl", "_ceiling", "_clock", "_hits", "_misses")

    def __init__(
        self,
        ttl: float = CACHE_TTL,
        ceiling: int = CACHE_HEALTH_CEILING,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl
        self._ceiling = ceiling
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.expired(self._clock())

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def healthy(self) -> bool:
        return len(self._entries) < self._ceiling

    def get(self, key: str) -> SearchResult | None:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            LOGGER.trace("Cache entry %s expired", key)
            return None
        self._hits += 1
        return entry.result

    def set(self, key: str, result: SearchResult, ttl: float | None = None) -> None:
        self._entries[key] = CacheEntry(result=result, created=self._clock(), ttl=self._ttl if ttl is None else ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def sweep(self) -> int:
        """Removes every expired entry.

        Returns
        -------
        :class:`int`
            The number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            LOGGER.verbose("Swept %s expired search cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Drops every entry and resets the counters"""
        self._entries = {}
        self._hits = 0
        self._misses = 0

    def stats(self) -> JSON_DICT_TYPE:
        return {"size": self.size, "hits": self._hits, "misses": self._misses, "healthy": self.healthy}
