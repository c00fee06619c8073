"""Async Redis access for the signed-out token blacklist."""

import logging
from typing import AsyncGenerator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "culturalvault:revoked:"


async def get_redis() -> AsyncGenerator[aioredis.Redis, None]:
    """FastAPI dependency: yield a Redis client, close it on teardown."""
    client: aioredis.Redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


async def revoke_token(client: aioredis.Redis, jti: str, ttl_seconds: int) -> None:
    """Blacklist a token id until the token would have expired anyway."""
    await client.setex(f"{REVOKED_TOKEN_PREFIX}{jti}", ttl_seconds, "1")


async def is_token_revoked(client: aioredis.Redis, jti: str) -> bool:
    return await client.exists(f"{REVOKED_TOKEN_PREFIX}{jti}") == 1


async def ping_redis() -> bool:
    client: aioredis.Redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    try:
        return bool(await client.ping())
    except RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
    finally:
        await client.aclose()
