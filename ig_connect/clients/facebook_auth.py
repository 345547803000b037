"""
Facebook Login OAuth utilities.

These helpers build the consent dialog URL and run the two token exchanges
that turn an authorization code into a long-lived user access token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ig_connect.core.config import InstagramSettings
from ig_connect.utils.http import GraphAPIError, get_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    """Token endpoint response."""

    access_token: str
    token_type: str
    expires_in: Optional[int]


def _parse_token_payload(payload: Dict[str, Any], operation: str) -> TokenGrant:
    access_token = payload.get("access_token")
    if not access_token:
        raise GraphAPIError(operation, "Incomplete token payload returned from Facebook.")

    expires_in = payload.get("expires_in")
    try:
        expires_in = int(expires_in) if expires_in is not None else None
    except (TypeError, ValueError):
        expires_in = None

    return TokenGrant(
        access_token=access_token,
        token_type=payload.get("token_type") or "bearer",
        expires_in=expires_in,
    )


class FacebookOAuthClient:
    """Build Facebook authorization URLs and exchange authorization codes."""

    def __init__(
        self,
        settings: InstagramSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout, transport=self._transport
        )

    def build_authorization_url(self, state: str) -> str:
        """Construct the Facebook Login consent URL."""
        params = {
            "client_id": self._settings.app_id,
            "redirect_uri": self._settings.redirect_uri,
            "scope": ",".join(self._settings.scopes),
            "response_type": "code",
            "state": state,
        }
        return f"{self._settings.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for a short-lived user token."""
        params = {
            "client_id": self._settings.app_id,
            "client_secret": self._settings.app_secret,
            "redirect_uri": self._settings.redirect_uri,
            "code": code,
        }
        operation = "exchange authorization code"
        async with self._client() as client:
            payload = await get_json(
                client, self._settings.token_url, params=params, operation=operation
            )

        logger.info("Obtained short-lived Facebook access token")
        return _parse_token_payload(payload, operation)

    async def exchange_for_long_lived_token(self, short_lived_token: str) -> TokenGrant:
        """Upgrade a short-lived user token to its 60-day counterpart."""
        params = {
            "grant_type": "fb_exchange_token",
            "client_id": self._settings.app_id,
            "client_secret": self._settings.app_secret,
            "fb_exchange_token": short_lived_token,
        }
        operation = "get long-lived token"
        async with self._client() as client:
            payload = await get_json(
                client, self._settings.token_url, params=params, operation=operation
            )

        grant = _parse_token_payload(payload, operation)
        logger.info(
            "Obtained long-lived Facebook access token (expires in %s seconds)",
            grant.expires_in,
        )
        return grant


__all__ = ["FacebookOAuthClient", "TokenGrant"]
