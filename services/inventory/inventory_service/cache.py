"""
Redis caching utilities for the Inventory service.

Caches dashboard statistics per owner. The cache is optional: with no
REDIS_URL configured, or when Redis is unreachable, every lookup is a miss.
"""
import json
import logging
from typing import Optional, Any
import redis

from .config import REDIS_URL

logger = logging.getLogger(__name__)

redis_client = redis.from_url(REDIS_URL, decode_responses=True) if REDIS_URL else None

# Cache TTLs (in seconds)
DASHBOARD_CACHE_TTL = 60  # 1 minute


def dashboard_key(owner_id: int) -> str:
    return f"dashboard:{owner_id}"


def get_cache(key: str) -> Optional[Any]:
    """
    Get a value from Redis cache.

    Args:
        key: Cache key

    Returns:
        Cached value or None if not found
    """
    if redis_client is None:
        return None
    try:
        value = redis_client.get(key)
        if value:
            return json.loads(value)
        return None
    except redis.RedisError as e:
        logger.warning(f"Cache get error: {e}")
        return None

def set_cache(key: str, value: Any, ttl: int = DASHBOARD_CACHE_TTL) -> bool:
    """
    Set a value in Redis cache with TTL.

    Args:
        key: Cache key
        value: Value to cache (will be JSON serialized)
        ttl: Time to live in seconds

    Returns:
        True if successful, False otherwise
    """
    if redis_client is None:
        return False
    try:
        redis_client.setex(key, ttl, json.dumps(value))
        return True
    except redis.RedisError as e:
        logger.warning(f"Cache set error: {e}")
        return False

def delete_cache(key: str) -> bool:
    """
    Delete a key from Redis cache.

    Args:
        key: Cache key to delete

    Returns:
        True if successful, False otherwise
    """
    if redis_client is None:
        return False
    try:
        redis_client.delete(key)
        return True
    except redis.RedisError as e:
        logger.warning(f"Cache delete error: {e}")
        return False

def invalidate_dashboard(owner_id: int) -> bool:
    """Drop the cached dashboard of an owner after a write."""
    return delete_cache(dashboard_key(owner_id))
