from oauthlogin.auth_strategies.oauth.client import OAuthClient
from oauthlogin.auth_strategies.oauth.transport import BaseTransport, HttpxTransport

__all__ = [
    "BaseTransport",
    "HttpxTransport",
    "OAuthClient",
]
