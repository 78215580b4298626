# budtender/db/redis.py
import logging
import redis.asyncio as redis
from budtender.core.config import get_settings

logger = logging.getLogger(__name__)

redis_client: redis.Redis | None = None


async def connect():
    """
    Connect Redis when REDIS_URL is set. Redis only overlays tenant configs,
    so a missing or unreachable server is logged and the app keeps running.
    """
    global redis_client
    settings = get_settings()
    if not settings.REDIS_URL:
        logger.info("No REDIS_URL configured, skipping Redis connection.")
        redis_client = None
        return

    try:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await redis_client.ping()
        logger.info("✅ Redis connection successful")
    except Exception as e:
        logger.warning(f"⚠️ Failed to connect to Redis: {e}")
        redis_client = None  # fallback: tenant registry only


async def disconnect():
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis disconnected")


def get_redis() -> redis.Redis | None:
    """Redis client, or None when not configured / unavailable."""
    return redis_client
