"""Pytest configuration and fixtures."""

import json
import os
from collections.abc import AsyncGenerator, Mapping

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Point the module-level engine at memory BEFORE importing oauthlogin.core.postgres
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from oauthlogin.auth_strategies.oauth.client import OAuthClient
from oauthlogin.auth_strategies.oauth.transport import BaseTransport
from oauthlogin.core.config import Settings
from oauthlogin.core.postgres import Base
from oauthlogin.models import *  # noqa: F401,F403  Import all models to ensure they're registered
from oauthlogin.models.account import AccountORM
from oauthlogin.repositories.account_repo import AccountRepository
from oauthlogin.services.identity_service import IdentityService
from oauthlogin.services.login_service import LoginService
from oauthlogin.services.session_service import BaseSessionStore

AUTH_URL = "https://idp.example.org/oauth2/authorize"
TOKEN_URL = "https://idp.example.org/oauth2/token"
USERINFO_URL = "https://idp.example.org/oauth2/userinfo"
REDIRECT_URI = "https://wiki.example.org/api/v1/oauth/login"


class InMemorySessionStore(BaseSessionStore):
    """Dict-backed session used in place of Redis."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.authenticated: AccountORM | None = None

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def set_authenticated_user(self, account: AccountORM) -> None:
        self.authenticated = account
        self.data["oauthlogin-user-id"] = str(account.id)

    async def authenticated_user_id(self) -> str | None:
        return self.data.get("oauthlogin-user-id")


class ScriptedTransport(BaseTransport):
    """Returns canned bodies per (method, url) and records every call."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], str | Exception] = {}
        self.calls: list[dict] = []

    def add(self, method: str, url: str, body: str | dict | Exception) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        self.responses[(method, url)] = body

    async def request(
        self,
        method: str,
        url: str,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str] | None,
        timeout: float,
    ) -> str:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": dict(params or {}),
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        result = self.responses.get((method, url))
        if result is None:
            raise AssertionError(f"Unexpected request: {method} {url}")
        if isinstance(result, Exception):
            raise result
        return result


def make_settings(**overrides) -> Settings:
    values = {
        "OAUTHLOGIN_AUTH_URL": AUTH_URL,
        "OAUTHLOGIN_TOKEN_URL": TOKEN_URL,
        "OAUTHLOGIN_USERINFO_URL": USERINFO_URL,
        "OAUTHLOGIN_CLIENT_ID": "wiki-client",
        "OAUTHLOGIN_CLIENT_SECRET": "s3cret",
        "OAUTHLOGIN_REDIRECT_URI": REDIRECT_URI,
        "OAUTHLOGIN_SCOPE": "openid email profile",
        "OAUTHLOGIN_ALLOWED_DOMAINS": [],
        "OAUTHLOGIN_AUTO_CREATE": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def provider_settings() -> Settings:
    return make_settings()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session with automatic rollback."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def account_repo(db) -> AccountRepository:
    return AccountRepository(db)


@pytest.fixture
def make_login_service(provider_settings, transport, session_store, account_repo):
    """Factory fixture wiring a LoginService over the test doubles.

    Usage:
        service = make_login_service(OAUTHLOGIN_AUTO_CREATE=False)
    """

    def _make(**setting_overrides) -> LoginService:
        settings = make_settings(**setting_overrides) if setting_overrides else provider_settings
        return LoginService(
            settings=settings,
            oauth_client=OAuthClient(settings, transport),
            identity_service=IdentityService(account_repo, settings.allowed_domains),
            account_repo=account_repo,
            session=session_store,
        )

    return _make
