from __future__ import annotations

import ujson

from pykaza.search.cache import ResolutionCache, cache_key, normalize_query
from pykaza.search.result import SearchMetadata, SearchResult


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _result(engine: str = "ytsearch") -> SearchResult:
    return SearchResult(type="search", tracks=[], metadata=SearchMetadata(engine=engine, platform="youtube"))


def test_normalize_query():
    assert normalize_query("  Never   Gonna\tGive ") == "never gonna give"
    assert normalize_query("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == (
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    )


def test_cache_key_depends_on_inputs():
    key = cache_key("Song", None, 10)
    assert ujson.loads(key) == {"query": "song", "source": None, "limit": 10}
    assert key == cache_key("  song ", None, 10)
    assert key != cache_key("song", "scsearch", 10)
    assert key != cache_key("song", None, 5)


def test_get_and_expiry():
    clock = Clock()
    cache = ResolutionCache(ttl=10, clock=clock)
    result = _result()
    cache.set("key", result)
    assert cache.get("key") is result
    assert "key" in cache
    clock.now += 10
    assert cache.get("key") is result
    clock.now += 0.5
    assert "key" not in cache
    assert cache.get("key") is None
    assert len(cache) == 0
    assert cache.stats() == {"size": 0, "hits": 2, "misses": 1, "healthy": True}


def test_per_entry_ttl():
    clock = Clock()
    cache = ResolutionCache(ttl=100, clock=clock)
    cache.set("short", _result(), ttl=1)
    cache.set("long", _result())
    clock.now += 2
    assert cache.get("short") is None
    assert cache.get("long") is not None


def test_sweep_removes_only_expired_entries():
    clock = Clock()
    cache = ResolutionCache(ttl=5, clock=clock)
    cache.set("old", _result())
    clock.now += 4
    cache.set("new", _result())
    clock.now += 2
    assert cache.sweep() == 1
    assert cache.size == 1
    assert cache.get("new") is not None
    assert cache.sweep() == 0


def test_delete_and_clear():
    cache = ResolutionCache()
    cache.set("a", _result())
    cache.get("a")
    assert cache.delete("a")
    assert not cache.delete("a")
    cache.set("b", _result())
    cache.clear()
    assert cache.size == 0
    assert cache.hits == 0


def test_health_ceiling():
    cache = ResolutionCache(ceiling=2)
    cache.set("a", _result())
    assert cache.healthy
    cache.set("b", _result())
    assert not cache.healthy
