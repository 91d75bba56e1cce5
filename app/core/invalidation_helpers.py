import logging
from typing import Iterable, List, Optional
from redis.exceptions import RedisError
from .cache import redis_client

logger = logging.getLogger(__name__)

async def invalidate_dashboard_cache(user_ids: Optional[Iterable[int]] = None):
    """
    Drop every cached dashboard, analytics and report view that may hold
    stale numbers after a write.

    Args:
        user_ids: Users whose personal views changed. Admin-wide views are
            always dropped.
    """
    patterns = ["admin:*"]
    for user_id in user_ids or []:
        if user_id is None:
            continue
        patterns.extend([
            f"dashboard:stats:{user_id}",
            f"analytics:{user_id}",
            f"reports:{user_id}",
            f"user_info:{user_id}",
        ])

    try:
        for pattern in patterns:
            cursor = 0
            while True:
                cursor, keys = await redis_client.scan(cursor=cursor, match=pattern, count=100)
                if keys:
                    logger.info(f"Invalidating {len(keys)} cache keys matching pattern: {pattern}")
                    await redis_client.delete(*keys)
                if cursor == 0:
                    break
        logger.info("Dashboard cache invalidated successfully")
        return True
    except (RedisError, OSError) as e:
        logger.error(f"Error invalidating dashboard cache: {str(e)}")
        return False

async def invalidate_specific_cache(cache_keys: List[str]):
    """
    Delete the given cache keys.

    Args:
        cache_keys: Keys to delete
    """
    try:
        if cache_keys:
            await redis_client.delete(*cache_keys)
            logger.info(f"Invalidated specific cache keys: {cache_keys}")
        return True
    except (RedisError, OSError) as e:
        logger.error(f"Error invalidating specific cache keys: {str(e)}")
        return False
