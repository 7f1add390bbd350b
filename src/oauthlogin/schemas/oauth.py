from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

# Raw provider payloads. Only their top-level shape is validated.
TokenResponse = dict[str, Any]
Profile = dict[str, Any]


class BeginRequest(BaseModel):
    """An initial visit: no callback parameters were supplied."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["begin"] = "begin"


class CallbackRequest(BaseModel):
    """The provider redirected back with both callback parameters."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["callback"] = "callback"
    state: str
    code: str


class ProviderErrorRequest(BaseModel):
    """The provider redirected back with an error instead of a code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["provider_error"] = "provider_error"
    error: str
    error_description: str | None = None


class MalformedCallbackRequest(BaseModel):
    """Exactly one of 'state' and 'code' was supplied."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["malformed_callback"] = "malformed_callback"


LoginRequest = BeginRequest | CallbackRequest | ProviderErrorRequest | MalformedCallbackRequest


def parse_login_request(
    state: str | None,
    code: str | None,
    error: str | None = None,
    error_description: str | None = None,
) -> LoginRequest:
    """Classify the query parameters of a login request exactly once."""
    if error:
        return ProviderErrorRequest(error=error, error_description=error_description)
    if state and code:
        return CallbackRequest(state=state, code=code)
    if state or code:
        return MalformedCallbackRequest()
    return BeginRequest()


class OAuthLoginResponse(BaseModel):
    """Returned after a successful OAuth login."""

    status: Literal["authenticated"] = "authenticated"
    username: str
    display_name: str | None = None
    email: str | None = None
    is_new_account: bool


class OAuthLoginErrorResponse(BaseModel):
    """Returned when a login attempt is rejected."""

    status: Literal["rejected"] = "rejected"
    error_code: str
    message_key: str
    message: str
