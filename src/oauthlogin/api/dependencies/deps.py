from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from oauthlogin.auth_strategies.oauth.client import OAuthClient
from oauthlogin.auth_strategies.oauth.transport import BaseTransport, HttpxTransport
from oauthlogin.core.config import Settings, settings
from oauthlogin.core.postgres import get_db
from oauthlogin.core.redis import get_redis
from oauthlogin.core.security import security
from oauthlogin.repositories.account_repo import AccountRepository
from oauthlogin.services.identity_service import IdentityService
from oauthlogin.services.login_service import LoginService
from oauthlogin.services.session_service import BaseSessionStore, RedisSessionStore


def get_settings() -> Settings:
    return settings


def get_transport() -> BaseTransport:
    return HttpxTransport()


def get_session_id(
    request: Request, app_settings: Settings = Depends(get_settings)
) -> str:
    """Session id from the cookie, or a new one the endpoint will set."""
    session_id = request.cookies.get(app_settings.SESSION_COOKIE_NAME)
    return session_id or security.generate_session_id()


async def get_session_store(
    session_id: str = Depends(get_session_id),
    redis_conn: Redis = Depends(get_redis),
    app_settings: Settings = Depends(get_settings),
) -> BaseSessionStore:
    return RedisSessionStore(redis_conn, session_id, app_settings.session_ttl_seconds)


async def get_login_service(
    db: AsyncSession = Depends(get_db),
    session: BaseSessionStore = Depends(get_session_store),
    transport: BaseTransport = Depends(get_transport),
    app_settings: Settings = Depends(get_settings),
) -> LoginService:
    account_repo = AccountRepository(db)
    return LoginService(
        settings=app_settings,
        oauth_client=OAuthClient(app_settings, transport),
        identity_service=IdentityService(account_repo, app_settings.allowed_domains),
        account_repo=account_repo,
        session=session,
    )
