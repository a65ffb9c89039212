"""
Caching utilities for the catalog listing and dashboard aggregates
Uses Redis when configured, the local-memory cache otherwise
"""
from django.conf import settings
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
DASHBOARD_CACHE_TTL = 60

PRODUCTS_LIST_PREFIX = "products_list"
DASHBOARD_PREFIX = "dashboard_stats"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def uses_redis():
    return settings.CACHES['default']['BACKEND'].startswith('django_redis')


def registry_key(prefix):
    return f"{prefix}:registry"


def track_cache_key(cache_key):
    """Remember a key under its prefix so non-Redis backends can invalidate it"""
    if uses_redis():
        return
    prefix = cache_key.split(':', 1)[0]
    keys = cache.get(registry_key(prefix)) or []
    if cache_key not in keys:
        keys.append(cache_key)
        cache.set(registry_key(prefix), keys, None)


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Redis matches keys with SCAN; other backends delete the keys tracked for the prefix
    """
    if not uses_redis():
        keys = cache.get(registry_key(pattern)) or []
        cache.delete_many(keys + [registry_key(pattern)])
        logger.debug(f"Invalidated {len(keys)} local cache keys for prefix: {pattern}")
        return

    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_products_list(filters_dict):
    """
    Get cached products list with filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(PRODUCTS_LIST_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    track_cache_key(cache_key)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_dashboard_stats(scope):
    cache_key = make_cache_key(DASHBOARD_PREFIX, scope)
    return cache.get(cache_key), cache_key


def cache_dashboard_stats(cache_key, data, ttl=DASHBOARD_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    track_cache_key(cache_key)
    logger.debug(f"Cached dashboard stats: {cache_key}")


def invalidate_products_cache():
    """Invalidate all products-related cache"""
    invalidate_cache_pattern(PRODUCTS_LIST_PREFIX)


def invalidate_dashboard_cache():
    """Invalidate dashboard stats cache"""
    invalidate_cache_pattern(DASHBOARD_PREFIX)
