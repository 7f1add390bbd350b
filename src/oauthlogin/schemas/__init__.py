from .oauth import (
    BeginRequest,
    CallbackRequest,
    LoginRequest,
    MalformedCallbackRequest,
    OAuthLoginErrorResponse,
    OAuthLoginResponse,
    Profile,
    ProviderErrorRequest,
    TokenResponse,
    parse_login_request,
)

__all__ = [
    "BeginRequest",
    "CallbackRequest",
    "LoginRequest",
    "MalformedCallbackRequest",
    "OAuthLoginErrorResponse",
    "OAuthLoginResponse",
    "Profile",
    "ProviderErrorRequest",
    "TokenResponse",
    "parse_login_request",
]
