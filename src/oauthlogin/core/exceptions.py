# core/exceptions.py

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class LoginErrorKind(str, Enum):
    NOT_CONFIGURED = "NOT_CONFIGURED"
    ALREADY_AUTHENTICATED = "ALREADY_AUTHENTICATED"
    STATE_MISMATCH = "STATE_MISMATCH"
    MALFORMED_CALLBACK = "MALFORMED_CALLBACK"
    PROVIDER_DENIED = "PROVIDER_DENIED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TOKEN_EXCHANGE_FAILED = "TOKEN_EXCHANGE_FAILED"
    PROFILE_FETCH_FAILED = "PROFILE_FETCH_FAILED"
    DOMAIN_REQUIRED = "DOMAIN_REQUIRED"
    DOMAIN_NOT_ALLOWED = "DOMAIN_NOT_ALLOWED"
    MISSING_IDENTIFIER = "MISSING_IDENTIFIER"
    INVALID_USERNAME = "INVALID_USERNAME"
    AUTO_CREATE_DISABLED = "AUTO_CREATE_DISABLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class OAuthLoginException(Exception):
    kind: LoginErrorKind | None = None

    def __init__(
        self, message: str, error_code: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.error_code = error_code or (self.kind.value if self.kind else None)
        self.details = details or {}
        super().__init__(self.message)


class NotConfiguredError(OAuthLoginException):
    kind = LoginErrorKind.NOT_CONFIGURED

    def __init__(self, message: str = "OAuth login is not configured"):
        super().__init__(message)


class AlreadyAuthenticatedError(OAuthLoginException):
    kind = LoginErrorKind.ALREADY_AUTHENTICATED

    def __init__(self, message: str = "You are already logged in"):
        super().__init__(message)


class StateMismatchError(OAuthLoginException):
    kind = LoginErrorKind.STATE_MISMATCH

    def __init__(self, message: str = "Login state does not match this session"):
        super().__init__(message)


class MalformedCallbackError(OAuthLoginException):
    kind = LoginErrorKind.MALFORMED_CALLBACK

    def __init__(self, message: str = "Callback requires both 'state' and 'code'"):
        super().__init__(message)


class ProviderDeniedError(OAuthLoginException):
    kind = LoginErrorKind.PROVIDER_DENIED

    def __init__(self, provider_error: str, description: str | None = None):
        super().__init__(
            f"Provider rejected the login: {provider_error}",
            details={"error": provider_error, "error_description": description},
        )


class TransportError(OAuthLoginException):
    kind = LoginErrorKind.TRANSPORT_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, details={"status_code": status_code})


class TokenExchangeError(OAuthLoginException):
    kind = LoginErrorKind.TOKEN_EXCHANGE_FAILED

    def __init__(self, message: str = "Token response is missing an access token"):
        super().__init__(message)


class ProfileFetchError(OAuthLoginException):
    kind = LoginErrorKind.PROFILE_FETCH_FAILED

    def __init__(self, message: str = "User info response is not a JSON object"):
        super().__init__(message)


class DomainRequiredError(OAuthLoginException):
    kind = LoginErrorKind.DOMAIN_REQUIRED

    def __init__(self, message: str = "An email address is required to check its domain"):
        super().__init__(message)


class DomainNotAllowedError(OAuthLoginException):
    kind = LoginErrorKind.DOMAIN_NOT_ALLOWED

    def __init__(self, domain: str):
        super().__init__(f"Email domain '{domain}' is not allowed", details={"domain": domain})


class MissingIdentifierError(OAuthLoginException):
    kind = LoginErrorKind.MISSING_IDENTIFIER

    def __init__(self, message: str = "Profile has no usable identifier"):
        super().__init__(message)


class InvalidUsernameError(OAuthLoginException):
    kind = LoginErrorKind.INVALID_USERNAME

    def __init__(self, username: str, reason: str = "invalid"):
        super().__init__(
            f"'{username}' is not a valid account name ({reason})",
            details={"username": username, "reason": reason},
        )


class AutoCreateDisabledError(OAuthLoginException):
    kind = LoginErrorKind.AUTO_CREATE_DISABLED

    def __init__(self, username: str):
        super().__init__(
            f"No account named '{username}' exists and automatic creation is disabled",
            details={"username": username},
        )


class AccountNameTakenError(OAuthLoginException):
    """Raised by the repository when another session inserted the same name first."""

    def __init__(self, username: str):
        super().__init__(
            f"Account name '{username}' is already taken",
            error_code="ACCOUNT_NAME_TAKEN",
            details={"username": username},
        )


class InternalLoginError(OAuthLoginException):
    kind = LoginErrorKind.INTERNAL_ERROR

    def __init__(self, message: str = "Login failed unexpectedly"):
        super().__init__(message)


# User-facing message categories, keyed by exact kind
MESSAGE_KEYS: dict[LoginErrorKind, str] = {
    LoginErrorKind.NOT_CONFIGURED: "oauthlogin-missing-config",
    LoginErrorKind.ALREADY_AUTHENTICATED: "oauthlogin-already-logged-in",
    LoginErrorKind.STATE_MISMATCH: "oauthlogin-error-state",
    LoginErrorKind.MALFORMED_CALLBACK: "oauthlogin-error-state",
    LoginErrorKind.PROVIDER_DENIED: "oauthlogin-error-denied",
    LoginErrorKind.TOKEN_EXCHANGE_FAILED: "oauthlogin-error-token",
    LoginErrorKind.PROFILE_FETCH_FAILED: "oauthlogin-error-userinfo",
    LoginErrorKind.DOMAIN_REQUIRED: "oauthlogin-error-domain",
    LoginErrorKind.DOMAIN_NOT_ALLOWED: "oauthlogin-error-domain",
}

GENERIC_MESSAGE_KEY = "oauthlogin-error-generic"


def message_key_for(kind: LoginErrorKind | None) -> str:
    if kind is None:
        return GENERIC_MESSAGE_KEY
    return MESSAGE_KEYS.get(kind, GENERIC_MESSAGE_KEY)


STATUS_MAP: dict[LoginErrorKind, int] = {
    LoginErrorKind.NOT_CONFIGURED: status.HTTP_503_SERVICE_UNAVAILABLE,
    LoginErrorKind.ALREADY_AUTHENTICATED: status.HTTP_409_CONFLICT,
    LoginErrorKind.STATE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    LoginErrorKind.MALFORMED_CALLBACK: status.HTTP_400_BAD_REQUEST,
    LoginErrorKind.PROVIDER_DENIED: status.HTTP_400_BAD_REQUEST,
    LoginErrorKind.TRANSPORT_ERROR: status.HTTP_502_BAD_GATEWAY,
    LoginErrorKind.TOKEN_EXCHANGE_FAILED: status.HTTP_502_BAD_GATEWAY,
    LoginErrorKind.PROFILE_FETCH_FAILED: status.HTTP_502_BAD_GATEWAY,
    LoginErrorKind.DOMAIN_REQUIRED: status.HTTP_403_FORBIDDEN,
    LoginErrorKind.DOMAIN_NOT_ALLOWED: status.HTTP_403_FORBIDDEN,
    LoginErrorKind.MISSING_IDENTIFIER: 422,
    LoginErrorKind.INVALID_USERNAME: 422,
    LoginErrorKind.AUTO_CREATE_DISABLED: status.HTTP_403_FORBIDDEN,
    LoginErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# HTTP Exception converters
def convert_to_http_exception(exc: OAuthLoginException) -> HTTPException:
    status_code = (
        STATUS_MAP.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if exc.kind
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    return HTTPException(
        status_code=status_code,
        detail={
            "message": exc.message,
            "error_code": exc.error_code,
            "message_key": message_key_for(exc.kind),
            "details": exc.details,
        },
    )
