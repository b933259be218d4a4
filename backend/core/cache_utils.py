"""
Caching helpers for read-heavy lookups (category list, low-stock overview).

Keys carry a per-prefix version number; bumping the version invalidates every
key under that prefix without scanning the backend, so the same code works on
Redis and on the local-memory cache.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging
import time

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
CATEGORIES_CACHE_TTL = 600  # 10 minutes
LOW_STOCK_CACHE_TTL = 120  # 2 minutes

CATEGORIES_PREFIX = 'categories_list'
LOW_STOCK_PREFIX = 'low_stock_list'


def _version_key(prefix):
    return f"{prefix}:version"


def _fresh_version():
    # Versions keep increasing even after the version key is evicted
    return time.time_ns()


def get_prefix_version(prefix):
    version = cache.get(_version_key(prefix))
    if version is None:
        cache.add(_version_key(prefix), _fresh_version(), None)
        version = cache.get(_version_key(prefix))
    return version


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique, versioned cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:v{get_prefix_version(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache the result of a query function

    Usage:
        @cached_query(cache_ttl=120, key_prefix="categories_list")
        def get_categories():
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_prefix(prefix):
    """Drop every cached entry stored under prefix"""
    try:
        cache.incr(_version_key(prefix))
    except ValueError:
        # Version key missing or evicted
        cache.set(_version_key(prefix), _fresh_version(), None)
    logger.info(f"Cache invalidated for prefix: {prefix}")
