"""
Read-through caching for list and dashboard queries

Keys are grouped by prefix. Every key written through this module is also
recorded in a per-prefix registry, so a whole group can be dropped on the
local-memory backend used in development and tests. On django-redis the
backend's delete_pattern also sweeps keys written by other processes.
"""
import hashlib
import logging
from functools import wraps

from django.core.cache import cache

logger = logging.getLogger('pawnsys.core')

CUSTOMER_LIST_CACHE_TTL = 120
DASHBOARD_CACHE_TTL = 60
STORAGE_SUMMARY_CACHE_TTL = 180
REGISTRY_TTL = 600

CUSTOMER_LIST = 'customer_list'
DASHBOARD_SUMMARY = 'dashboard_summary'
STORAGE_SUMMARY = 'storage_summary'


def make_cache_key(prefix, *args, **kwargs):
    digest = hashlib.sha1(repr((args, sorted(kwargs.items()))).encode()).hexdigest()[:16]
    return f"{prefix}:{digest}"


def remember_cache_key(prefix, cache_key, ttl):
    registry_key = f"cache_keys:{prefix}"
    keys = cache.get(registry_key) or []
    if cache_key not in keys:
        keys.append(cache_key)
        cache.set(registry_key, keys, max(ttl, REGISTRY_TTL))


def cached_query(cache_ttl=60, key_prefix='query'):
    """
    Cache a function's return value per argument set

        @cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix=DASHBOARD_SUMMARY)
        def build_dashboard(day):
            ...

    None results are not cached.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            key = make_cache_key(key_prefix, *args, **kwargs)
            result = cache.get(key)
            if result is not None:
                logger.debug(f"Cache hit {key}")
                return result
            result = func(*args, **kwargs)
            if result is not None:
                cache.set(key, result, cache_ttl)
                remember_cache_key(key_prefix, key, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(prefix):
    registry_key = f"cache_keys:{prefix}"
    keys = cache.get(registry_key) or []
    cache.delete_many(keys + [registry_key])

    if hasattr(cache, 'delete_pattern'):
        try:
            cache.delete_pattern(f"{prefix}:*")
        except Exception as e:
            logger.warning(f"Could not sweep cache keys for {prefix}: {e}")
    logger.debug(f"Invalidated {len(keys)} cached entries for {prefix}")


def invalidate_dashboard_cache():
    invalidate_cache_pattern(DASHBOARD_SUMMARY)
    invalidate_cache_pattern(STORAGE_SUMMARY)


def invalidate_customer_cache():
    invalidate_cache_pattern(CUSTOMER_LIST)


def invalidate_pawn_caches():
    """Drop everything a pledge, renewal or redemption can change"""
    invalidate_dashboard_cache()
    invalidate_customer_cache()
