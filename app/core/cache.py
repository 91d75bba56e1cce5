import logging
from typing import Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
from .config import REDIS_URL

logger = logging.getLogger(__name__)

redis_client = redis.from_url(REDIS_URL, decode_responses=True)

async def get_cache(key: str) -> Optional[str]:
    """
    Read a cached value. A Redis failure is reported as a cache miss.
    """
    try:
        return await redis_client.get(key)
    except (RedisError, OSError) as e:
        logger.warning(f"Cache read failed for {key}: {str(e)}")
        return None

async def set_cache(key: str, value: str, expire: int = 300) -> bool:
    """
    Store a value with a TTL in seconds.
    """
    try:
        await redis_client.set(key, value, ex=expire)
        return True
    except (RedisError, OSError) as e:
        logger.warning(f"Cache write failed for {key}: {str(e)}")
        return False
