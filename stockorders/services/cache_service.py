"""
Redis cache for tenant-scoped read models (order statistics, reports).

Degrades to a no-op when Redis is disabled or unreachable: callers always
fall back to the database. Entries are dropped, never patched, when the
underlying orders change.
"""

import logging
import json
from decimal import Decimal
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask

logger = logging.getLogger(__name__)

ORDERS_MODULE = 'orders'

_DECIMAL_TAG = '__decimal__'


def _encode(value: Any) -> str:
    def fallback(obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return {_DECIMAL_TAG: str(obj)}
        if hasattr(obj, 'isoformat'):
            return obj.isoformat()
        raise TypeError(f"{type(obj).__name__} cannot be cached")
    return json.dumps(value, default=fallback)


def _decode(raw: str) -> Any:
    return json.loads(
        raw,
        object_hook=lambda d: Decimal(d[_DECIMAL_TAG]) if _DECIMAL_TAG in d else d
    )


class CacheService:
    """
    Tenant-scoped cache-aside store.

    Keys: {prefix}:tenant:{tenant_id}:{module}:{key}
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.prefix = 'stock'
        self.default_ttl = 60
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.prefix = app.config.get('CACHE_KEY_PREFIX', self.prefix)
        self.default_ttl = app.config.get('CACHE_DEFAULT_TTL', self.default_ttl)

        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] disabled by configuration")
            return

        url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True,
            health_check_interval=30
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] Redis unreachable at {url}: {e}. Running without cache.")
            return
        self.client = client
        logger.info(f"[CACHE] Redis connected: {url}")

    def is_available(self) -> bool:
        return self.client is not None

    def key_for(self, tenant_id: int, module: str, key: str) -> str:
        return f"{self.prefix}:tenant:{tenant_id}:{module}:{key}"

    def memoize(self, tenant_id: int, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or load it, store it and return it."""
        if not self.is_available():
            return loader_fn()

        full_key = self.key_for(tenant_id, module, key)
        try:
            raw = self.client.get(full_key)
        except RedisError as e:
            logger.warning(f"[CACHE] read failed for {full_key}: {e}")
            raw = None
        if raw is not None:
            return _decode(raw)

        value = loader_fn()
        try:
            self.client.setex(full_key, ttl or self.default_ttl, _encode(value))
        except RedisError as e:
            logger.warning(f"[CACHE] write failed for {full_key}: {e}")
        return value

    def invalidate_module(self, tenant_id: int, module: str) -> int:
        """Drop every key of a tenant/module. Returns how many were removed."""
        if not self.is_available():
            return 0

        pattern = self.key_for(tenant_id, module, '*')
        try:
            keys = list(self.client.scan_iter(match=pattern, count=100))
            removed = self.client.delete(*keys) if keys else 0
        except RedisError as e:
            logger.warning(f"[CACHE] invalidate failed for {pattern}: {e}")
            return 0
        if removed:
            logger.info(f"[CACHE] INVALIDATE: {pattern} ({removed} keys)")
        return removed


_cache_service: Optional[CacheService] = None


def init_cache(app: Flask) -> None:
    """Create the cache singleton for this app."""
    global _cache_service
    _cache_service = CacheService(app)
    app.extensions['cache'] = _cache_service


def get_cache() -> Optional[CacheService]:
    """Cache service instance, or None outside an initialized app."""
    return _cache_service


def invalidate_order_stats(tenant_id: int) -> None:
    """Drop cached order read models after a draft change or finalization."""
    cache = get_cache()
    if cache is not None:
        cache.invalidate_module(tenant_id, ORDERS_MODULE)
