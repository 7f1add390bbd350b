# auth_strategies/oauth/transport.py

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

import httpx

from oauthlogin.core.exceptions import TransportError

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """Outbound HTTP for the OAuth client. Returns the raw body or raises TransportError."""

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str] | None,
        timeout: float,
    ) -> str:
        pass


class HttpxTransport(BaseTransport):
    """
    httpx-backed transport.

    POST params are sent form-encoded in the body; GET params go in the
    query string. Any non-2xx status, timeout or connection failure is
    raised as TransportError.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    async def request(
        self,
        method: str,
        url: str,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str] | None,
        timeout: float,
    ) -> str:
        method = method.upper()
        kwargs: dict = {"headers": dict(headers or {}), "timeout": timeout}
        if method == "POST":
            kwargs["data"] = dict(params or {})
        elif params:
            kwargs["params"] = dict(params)

        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.warning(f"[oauthlogin] {method} {url} returned HTTP {status_code}")
            raise TransportError(f"http_error_{status_code}", status_code=status_code) from e
        except httpx.HTTPError as e:
            logger.warning(f"[oauthlogin] {method} {url} failed: {e.__class__.__name__}")
            raise TransportError(f"http_error_{e.__class__.__name__}") from e

        return response.text
