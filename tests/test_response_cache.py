"""Tests for the API response cache."""

from buildersmcp.core.cache import ResponseCache

from fakes import FakeClock


class TestResponseCache:
    """Tests for ResponseCache."""

    def test_get_and_set(self):
        cache = ResponseCache(clock=FakeClock())

        assert cache.get("chains") is None
        cache.set("chains", ["sonic"])
        assert cache.get("chains") == ["sonic"]

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=120, clock=clock)
        cache.set("chains", ["sonic"])

        clock.advance(120)
        assert cache.get("chains") == ["sonic"]

        clock.advance(1)
        assert cache.get("chains") is None
        assert cache.stats()["size"] == 0

    def test_clear_returns_count(self):
        cache = ResponseCache(clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.clear() == 2
        assert cache.get("a") is None
        assert cache.clear() == 0

    def test_stats(self):
        cache = ResponseCache(clock=FakeClock())
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()

        assert stats["size"] == 1
        assert stats["keys"] == ["a"]
        assert stats["hits"] == 2
        assert stats["sets"] == 1
