import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from oauthlogin.api.dependencies.deps import (
    get_db,
    get_login_service,
    get_session_id,
    get_settings,
)
from oauthlogin.core.config import Settings
from oauthlogin.core.exceptions import convert_to_http_exception
from oauthlogin.schemas.oauth import (
    OAuthLoginErrorResponse,
    OAuthLoginResponse,
    parse_login_request,
)
from oauthlogin.services.login_service import LoginService, LoginState

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, session_id: str, app_settings: Settings) -> None:
    response.set_cookie(
        key=app_settings.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=app_settings.session_ttl_seconds,
        httponly=True,
        secure=app_settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@router.get(
    "/login",
    responses={
        status.HTTP_200_OK: {"model": OAuthLoginResponse},
        status.HTTP_302_FOUND: {"description": "Redirect to the provider"},
        status.HTTP_400_BAD_REQUEST: {"model": OAuthLoginErrorResponse},
    },
)
async def oauth_login(
    state: str | None = Query(default=None, description="CSRF state echoed by the provider"),
    code: str | None = Query(default=None, description="Authorization code from provider"),
    error: str | None = Query(default=None, description="Error from provider (user denied etc.)"),
    error_description: str | None = Query(default=None),
    login_service: LoginService = Depends(get_login_service),
    session_id: str = Depends(get_session_id),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
) -> Response:
    """
    Single login endpoint with two modes.

    Usage:
        Browser opens: GET /api/v1/oauth/login
        → redirected to the provider, which later calls back
        GET /api/v1/oauth/login?state=...&code=...
    """
    request = parse_login_request(state, code, error, error_description)
    outcome = await login_service.handle(request)

    response: Response
    if outcome.state == LoginState.AWAITING_PROVIDER_REDIRECT and outcome.redirect_url:
        response = RedirectResponse(url=outcome.redirect_url, status_code=status.HTTP_302_FOUND)
    elif outcome.state == LoginState.AUTHENTICATED and outcome.account is not None:
        account = outcome.account
        body = OAuthLoginResponse(
            username=account.name,
            display_name=account.display_name,
            email=account.email,
            is_new_account=outcome.is_new_account,
        )
        response = JSONResponse(content=body.model_dump(), status_code=status.HTTP_200_OK)
    else:
        await db.rollback()
        if outcome.error is None:
            logger.error(f"[oauthlogin] Login ended in {outcome.state} without an error")
            response = JSONResponse(
                content={"detail": "OAuth login failed. Please try again."},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        else:
            http_exc = convert_to_http_exception(outcome.error)
            body_err = OAuthLoginErrorResponse(
                error_code=outcome.error.error_code or "UNKNOWN",
                message_key=outcome.message_key,
                message=outcome.error.message,
            )
            response = JSONResponse(content=body_err.model_dump(), status_code=http_exc.status_code)

    _set_session_cookie(response, session_id, app_settings)
    return response
