"""
LoginService: the per-session OAuth login state machine.

    IDLE ──begin──▶ AWAITING_PROVIDER_REDIRECT
    AWAITING_CALLBACK ──callback──▶ AUTHENTICATED | REJECTED

A begin mints a fresh state token into the session and hands back the
provider URL. A callback is only processed when its state equals the token
in the session; the check is a plain read, not a check-and-clear. Every
failure ends the attempt: nothing is retried, the caller starts over.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from oauthlogin.auth_strategies.constants import SESSION_STATE_KEY
from oauthlogin.auth_strategies.oauth.client import OAuthClient
from oauthlogin.core.config import Settings
from oauthlogin.core.exceptions import (
    AlreadyAuthenticatedError,
    InternalLoginError,
    MalformedCallbackError,
    NotConfiguredError,
    OAuthLoginException,
    ProviderDeniedError,
    StateMismatchError,
    message_key_for,
)
from oauthlogin.core.security import security
from oauthlogin.models.account import AccountORM
from oauthlogin.repositories.account_repo import AccountRepository
from oauthlogin.schemas.oauth import (
    BeginRequest,
    CallbackRequest,
    LoginRequest,
    MalformedCallbackRequest,
    ProviderErrorRequest,
)
from oauthlogin.services.identity_service import IdentityService
from oauthlogin.services.session_service import BaseSessionStore

logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    IDLE = "idle"
    AWAITING_PROVIDER_REDIRECT = "awaiting_provider_redirect"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass
class LoginOutcome:
    state: LoginState
    redirect_url: str | None = None
    account: AccountORM | None = None
    is_new_account: bool = False
    error: OAuthLoginException | None = None

    @property
    def message_key(self) -> str:
        if self.error is not None:
            return message_key_for(self.error.kind)
        if self.state == LoginState.AUTHENTICATED:
            return "oauthlogin-success-title"
        return "oauthlogin-redirecting"


class LoginService:
    def __init__(
        self,
        settings: Settings,
        oauth_client: OAuthClient,
        identity_service: IdentityService,
        account_repo: AccountRepository,
        session: BaseSessionStore,
    ):
        self.settings = settings
        self.oauth_client = oauth_client
        self.identity_service = identity_service
        self.account_repo = account_repo
        self.session = session
        self.state = LoginState.IDLE

    def _reject(self, error: OAuthLoginException) -> LoginOutcome:
        self.state = LoginState.REJECTED
        logger.warning(f"[oauthlogin] Login rejected: {error.error_code}: {error.message}")
        return LoginOutcome(state=self.state, error=error)

    def _fail(self) -> LoginOutcome:
        # Call from inside an except block so the traceback is logged
        logger.exception("[oauthlogin] Login failed unexpectedly")
        self.state = LoginState.REJECTED
        return LoginOutcome(state=self.state, error=InternalLoginError())

    async def _check_preconditions(self) -> None:
        if not self.settings.is_configured:
            raise NotConfiguredError()
        if await self.session.authenticated_user_id():
            raise AlreadyAuthenticatedError()

    async def handle(self, request: LoginRequest) -> LoginOutcome:
        """Dispatch one request to begin or callback processing."""
        if isinstance(request, BeginRequest):
            return await self.begin_login()

        try:
            await self._check_preconditions()
        except OAuthLoginException as e:
            return self._reject(e)
        except Exception:
            return self._fail()

        if isinstance(request, CallbackRequest):
            return await self.handle_callback(request.state, request.code)
        if isinstance(request, ProviderErrorRequest):
            return self._reject(ProviderDeniedError(request.error, request.error_description))
        if isinstance(request, MalformedCallbackRequest):
            return self._reject(MalformedCallbackError())
        raise TypeError(f"Unsupported login request: {request!r}")

    async def begin_login(self) -> LoginOutcome:
        """Mint a fresh state token and return the provider URL to redirect to."""
        try:
            await self._check_preconditions()
            state = security.generate_state_token()
            await self.session.set(SESSION_STATE_KEY, state)
        except OAuthLoginException as e:
            return self._reject(e)
        except Exception:
            return self._fail()

        authorization_url = self.oauth_client.build_authorization_url(state)

        self.state = LoginState.AWAITING_PROVIDER_REDIRECT
        logger.info(f"[oauthlogin] Initiating login, state={state[:8]}...")
        return LoginOutcome(state=self.state, redirect_url=authorization_url)

    async def handle_callback(self, state: str, code: str) -> LoginOutcome:
        """Verify state, run exchange → profile → resolve, then finalize the session."""
        self.state = LoginState.AWAITING_CALLBACK

        try:
            expected_state = await self.session.get(SESSION_STATE_KEY)
            if not expected_state or not security.constant_time_equals(expected_state, state):
                raise StateMismatchError()

            token = await self.oauth_client.exchange_code_for_token(code)
            profile = await self.oauth_client.fetch_user_info(token["access_token"])
            account, is_new_account = await self.identity_service.resolve(
                profile, auto_create_enabled=self.settings.OAUTHLOGIN_AUTO_CREATE
            )
            await self._finalize(account)
        except OAuthLoginException as e:
            return self._reject(e)
        except Exception:
            return self._fail()

        self.state = LoginState.AUTHENTICATED
        logger.info(
            f"[oauthlogin] Account '{account.name}' authenticated. new_account={is_new_account}"
        )
        return LoginOutcome(
            state=self.state, account=account, is_new_account=is_new_account
        )

    async def _finalize(self, account: AccountORM) -> None:
        if not account.auth_token:
            await self.account_repo.issue_auth_token(account)
        await self.account_repo.record_login(account)
        # The session only ever points at a committed account
        await self.account_repo.commit()
        await self.session.set_authenticated_user(account)
