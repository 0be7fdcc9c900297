"""
Unit tests for the tenant cache.
"""

import fnmatch
from decimal import Decimal

from stockorders.services.cache_service import CacheService, ORDERS_MODULE


class FakeRedis:
    """In-memory stand-in for the few Redis calls the cache makes."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def scan_iter(self, match, count=None):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)


def _cache():
    cache = CacheService()
    cache.client = FakeRedis()
    return cache


class TestCacheService:

    def test_without_redis_always_loads(self):
        cache = CacheService()
        calls = []

        for _ in range(2):
            cache.memoize(1, ORDERS_MODULE, 'stats', lambda: calls.append(1) or {'total': 1})

        assert not cache.is_available()
        assert len(calls) == 2

    def test_memoize_keeps_decimals(self):
        cache = _cache()
        calls = []

        def loader():
            calls.append(1)
            return {'total_revenue': Decimal('20.30')}

        first = cache.memoize(1, ORDERS_MODULE, 'stats', loader)
        second = cache.memoize(1, ORDERS_MODULE, 'stats', loader)

        assert first == second == {'total_revenue': Decimal('20.30')}
        assert isinstance(second['total_revenue'], Decimal)
        assert len(calls) == 1

    def test_invalidate_is_tenant_scoped(self):
        cache = _cache()
        cache.memoize(1, ORDERS_MODULE, 'stats', lambda: 1)
        cache.memoize(2, ORDERS_MODULE, 'stats', lambda: 2)

        assert cache.invalidate_module(1, ORDERS_MODULE) == 1
        assert list(cache.client.store) == [cache.key_for(2, ORDERS_MODULE, 'stats')]
