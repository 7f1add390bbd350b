from sqlalchemy import text

from oauthlogin.core.postgres import AsyncSessionLocal
from oauthlogin.core.redis import redis_client


async def check_database() -> None:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1"))


async def check_redis() -> None:
    if not redis_client.client:
        raise RuntimeError("Redis client is not initialized")
    await redis_client.client.ping()
