# auth_strategies/oauth/client.py

import json
import logging
from typing import Any

from authlib.common.urls import add_params_to_uri
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri

from oauthlogin.auth_strategies.constants import HTTP_TIMEOUT_SECONDS
from oauthlogin.auth_strategies.oauth.transport import BaseTransport, HttpxTransport
from oauthlogin.core.config import Settings
from oauthlogin.core.exceptions import NotConfiguredError, ProfileFetchError, TokenExchangeError
from oauthlogin.schemas.oauth import Profile, TokenResponse

logger = logging.getLogger(__name__)


def _decode_object(body: str) -> dict[str, Any] | None:
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


class OAuthClient:
    """
    Protocol side of the authorization-code grant against a single provider.

    Flow:
        1. build_authorization_url()  : where to send the browser
        2. exchange_code_for_token()  : trade the callback code for an access token
        3. fetch_user_info()          : read the profile with that token

    Transport failures propagate as TransportError; malformed provider
    responses raise TokenExchangeError or ProfileFetchError.
    """

    def __init__(self, settings: Settings, transport: BaseTransport | None = None):
        self.settings = settings
        self.transport = transport or HttpxTransport()

    def _require(self, value: str | None, name: str) -> str:
        if not value:
            raise NotConfiguredError(f"OAuth login is not configured: {name} is missing")
        return value

    def build_authorization_url(self, state: str) -> str:
        """
        Compose the provider authorization URL for this login attempt.

        Args:
            state: Anti-forgery token already bound to the caller's session

        Returns:
            Authorization endpoint with response_type, client_id,
            redirect_uri, scope and state query parameters
        """
        scope = self.settings.OAUTHLOGIN_SCOPE
        uri = prepare_grant_uri(
            self._require(self.settings.OAUTHLOGIN_AUTH_URL, "OAUTHLOGIN_AUTH_URL"),
            client_id=self._require(self.settings.OAUTHLOGIN_CLIENT_ID, "OAUTHLOGIN_CLIENT_ID"),
            response_type="code",
            redirect_uri=self._require(
                self.settings.OAUTHLOGIN_REDIRECT_URI, "OAUTHLOGIN_REDIRECT_URI"
            ),
            scope=scope,
            state=state,
        )
        if not scope:
            # prepare_grant_uri drops an empty scope; the parameter is always sent
            uri = add_params_to_uri(uri, [("scope", "")])
        return uri

    async def exchange_code_for_token(self, code: str) -> TokenResponse:
        """
        Exchange the authorization code for provider tokens.

        Raises:
            TransportError: The token endpoint could not be reached or errored
            TokenExchangeError: The response has no usable access_token
        """
        params = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._require(
                self.settings.OAUTHLOGIN_REDIRECT_URI, "OAUTHLOGIN_REDIRECT_URI"
            ),
            "client_id": self._require(self.settings.OAUTHLOGIN_CLIENT_ID, "OAUTHLOGIN_CLIENT_ID"),
            "client_secret": self._require(
                self.settings.OAUTHLOGIN_CLIENT_SECRET, "OAUTHLOGIN_CLIENT_SECRET"
            ),
        }

        body = await self.transport.request(
            "POST",
            self._require(self.settings.OAUTHLOGIN_TOKEN_URL, "OAUTHLOGIN_TOKEN_URL"),
            params,
            {"Accept": "application/json"},
            HTTP_TIMEOUT_SECONDS,
        )

        data = _decode_object(body)
        if data is None:
            logger.warning("[oauthlogin] Token endpoint returned a non-object body")
            raise TokenExchangeError("Token response is not a JSON object")

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            logger.warning("[oauthlogin] Token response has no access_token")
            raise TokenExchangeError()

        return data

    async def fetch_user_info(self, access_token: str) -> Profile:
        """
        Fetch the user's profile with the provider access token.

        Raises:
            TransportError: The user-info endpoint could not be reached or errored
            ProfileFetchError: The response is not a JSON object
        """
        body = await self.transport.request(
            "GET",
            self._require(self.settings.OAUTHLOGIN_USERINFO_URL, "OAUTHLOGIN_USERINFO_URL"),
            {},
            {
                "Accept": "application/json",
                "Authorization": f"Bearer {access_token}",
            },
            HTTP_TIMEOUT_SECONDS,
        )

        data = _decode_object(body)
        if data is None:
            logger.warning("[oauthlogin] User info endpoint returned a non-object body")
            raise ProfileFetchError()

        return data
