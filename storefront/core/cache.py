import redis.asyncio as redis

from storefront.core.config import settings

redis_client: redis.Redis = redis.Redis.from_url(
    settings.redis_url,
    decode_responses=True,
    socket_timeout=5,
)


def get_redis() -> redis.Redis:
    return redis_client


async def close_redis() -> None:
    await redis_client.aclose()
