"""
Cache utilities for the Prop Pool application
Caches read-only query results and drops them when scores change
"""

import functools

from flask import current_app

from proppool import cache


def make_query_cache_key(model_name, func_name, *args, **kwargs):
    """Build the cache key shared by cached_query and its invalidation"""
    args_str = "_".join(str(arg) for arg in args)
    kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
    return f"query_{model_name}_{func_name}_{args_str}_{kwargs_str}"


def cached_query(model_name, timeout=None, timeout_config_key=None):
    """
    Decorator for caching database query results

    Args:
        model_name: Name of the model for cache key generation
        timeout: Cache timeout in seconds
        timeout_config_key: Config key to read the timeout from at call time
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            cache_key = make_query_cache_key(model_name, f.__name__, *args, **kwargs)

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Query cache hit: {cache_key}")
                return result

            result = f(*args, **kwargs)

            ttl = timeout
            if timeout_config_key:
                ttl = current_app.config.get(timeout_config_key, ttl)
            cache.set(cache_key, result, timeout=ttl)
            current_app.logger.debug(f"Query cache set: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_leaderboard(pool_id):
    """
    Drop the cached leaderboard for a pool

    Args:
        pool_id: Pool whose scores changed
    """
    cache_key = make_query_cache_key("Pool", "get_leaderboard", pool_id)
    cache.delete(cache_key)
    current_app.logger.debug(f"Cache invalidated: {cache_key}")
