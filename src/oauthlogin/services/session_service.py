from abc import ABC, abstractmethod

import redis.asyncio as redis

from oauthlogin.auth_strategies.constants import (
    SESSION_AUTH_TOKEN_KEY,
    SESSION_PREFIX,
    SESSION_USER_ID_KEY,
    SESSION_USER_NAME_KEY,
)
from oauthlogin.models.account import AccountORM


class BaseSessionStore(ABC):
    """Per-caller session handle used by the login flow."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def set_authenticated_user(self, account: AccountORM) -> None:
        pass

    @abstractmethod
    async def authenticated_user_id(self) -> str | None:
        pass


class RedisSessionStore(BaseSessionStore):
    """
    Session data kept in one Redis hash per session id.

    Every write refreshes the TTL so the session (and the login state
    token inside it) lives as long as the caller stays active.
    """

    def __init__(self, redis_client: redis.Redis, session_id: str, ttl_seconds: int):
        self.redis = redis_client
        self.session_id = session_id
        self.ttl_seconds = ttl_seconds

    @property
    def key(self) -> str:
        return f"{SESSION_PREFIX}{self.session_id}"

    async def get(self, key: str) -> str | None:
        value = await self.redis.hget(self.key, key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str) -> None:
        await self.redis.hset(self.key, key, value)
        await self.redis.expire(self.key, self.ttl_seconds)

    async def set_authenticated_user(self, account: AccountORM) -> None:
        mapping = {
            SESSION_USER_ID_KEY: str(account.id),
            SESSION_USER_NAME_KEY: account.name,
        }
        if account.auth_token:
            mapping[SESSION_AUTH_TOKEN_KEY] = account.auth_token
        await self.redis.hset(self.key, mapping=mapping)
        await self.redis.expire(self.key, self.ttl_seconds)

    async def authenticated_user_id(self) -> str | None:
        return await self.get(SESSION_USER_ID_KEY)
