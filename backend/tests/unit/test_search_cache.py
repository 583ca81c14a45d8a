"""Unit tests for the SearchResultCache and cache key derivation."""

import pytest

from app.application.services import SearchResultCache, build_cache_key
from app.domain.entities import SearchPage


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_page(total: int = 1) -> SearchPage:
    return SearchPage(records=({"id": "r1"},), total_count=total, page_index=1, page_size=10)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> SearchResultCache:
    return SearchResultCache(ttl_seconds=300, clock=clock)


def test_get_returns_stored_entry_within_ttl(cache, clock):
    page = make_page()
    cache.put("k", page, {"byStatus": {"SUBMITTED": 1}})
    clock.now += 299

    entry = cache.get("k")
    assert entry is not None
    assert entry.page is page
    assert entry.aggregations == {"byStatus": {"SUBMITTED": 1}}


def test_entries_expire_lazily_after_ttl(cache, clock):
    cache.put("k", make_page())
    clock.now += 300
    assert cache.get("k") is None
    assert len(cache) == 0


def test_put_sweeps_expired_entries(cache, clock):
    cache.put("old", make_page())
    clock.now += 301
    cache.put("new", make_page())
    assert len(cache) == 1
    assert cache.get("new") is not None


def test_last_write_wins(cache):
    cache.put("k", make_page(total=1))
    cache.put("k", make_page(total=2))
    assert cache.get("k").page.total_count == 2


def test_clear_drops_everything(cache):
    cache.put("a", make_page())
    cache.put("b", make_page())
    assert cache.clear() == 2
    assert cache.get("a") is None
    assert len(cache) == 0


def test_cache_key_ignores_key_order_but_not_values():
    a = build_cache_key({"filters": {"status": "X", "priority": "HIGH"}, "caller": {"id": "u1"}})
    b = build_cache_key({"caller": {"id": "u1"}, "filters": {"priority": "HIGH", "status": "X"}})
    c = build_cache_key({"caller": {"id": "u2"}, "filters": {"priority": "HIGH", "status": "X"}})
    assert a == b
    assert a != c
