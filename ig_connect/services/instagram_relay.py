"""
Relay read-only Instagram Graph queries for a connected user.

Every call resolves the user's linked business account and page token from
the token store first; the Graph response is returned untouched.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from ig_connect.clients import GraphAPIClient
from ig_connect.models.credentials import CredentialRecord
from ig_connect.services.token_store import AccountNotFoundError, TokenStore

VALID_INSIGHT_PERIODS = ("day", "week", "days_28")


class BusinessAccountNotConnectedError(Exception):
    """Raised when a user is connected but has no linked business account."""


class InstagramRelayService:
    """Pass-through access to the Graph API on behalf of a stored user."""

    def __init__(self, token_store: TokenStore, graph_client: GraphAPIClient) -> None:
        self._store = token_store
        self._graph = graph_client

    def _linked_record(self, user_id: str) -> CredentialRecord:
        record = self._store.get(user_id)
        if record is None:
            raise AccountNotFoundError(f"No valid token stored for user {user_id}.")
        if not record.business_account_id or not record.page_access_token:
            raise BusinessAccountNotConnectedError(
                f"User {user_id} has no Instagram Business Account connected."
            )
        return record

    def _linked_account(self, user_id: str) -> Tuple[str, str]:
        record = self._linked_record(user_id)
        return record.business_account_id, record.page_access_token  # type: ignore[return-value]

    def describe_account(self, user_id: str) -> Dict[str, str]:
        record = self._linked_record(user_id)
        return {
            "instagramAccountId": record.business_account_id or "",
            "instagramUsername": record.business_account_username or "",
        }

    async def media(self, user_id: str, *, limit: int = 10) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_media(account_id, token, limit)

    async def stories(self, user_id: str) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_stories(account_id, token)

    async def tagged_media(self, user_id: str, *, limit: int = 25) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_tagged_media(account_id, token, limit)

    async def business_discovery(self, user_id: str, *, username: str) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_business_discovery(
            account_id, token, username.lstrip("@")
        )

    async def search_hashtags(self, user_id: str, *, query: str) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.search_hashtags(account_id, token, query.lstrip("#"))

    async def hashtag_media(
        self, user_id: str, *, hashtag_id: str, edge: str, limit: int = 25
    ) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_hashtag_media(
            hashtag_id, account_id, token, edge=edge, limit=limit
        )

    async def recently_searched_hashtags(self, user_id: str) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_recently_searched_hashtags(account_id, token)

    async def media_comments(self, user_id: str, *, media_id: str) -> Dict[str, Any]:
        _, token = self._linked_account(user_id)
        return await self._graph.get_media_comments(media_id, token)

    async def carousel_children(self, user_id: str, *, media_id: str) -> Dict[str, Any]:
        _, token = self._linked_account(user_id)
        return await self._graph.get_carousel_children(media_id, token)

    async def media_insights(self, user_id: str, *, media_id: str) -> Dict[str, Any]:
        _, token = self._linked_account(user_id)
        return await self._graph.get_media_insights(media_id, token)

    async def account_insights(self, user_id: str, *, period: str = "day") -> Dict[str, Any]:
        if period not in VALID_INSIGHT_PERIODS:
            raise ValueError("Invalid period. Must be: day, week, or days_28")
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_account_insights(account_id, token, period)

    async def audience_insights(
        self, user_id: str, *, period: str = "lifetime"
    ) -> Dict[str, Any]:
        account_id, token = self._linked_account(user_id)
        return await self._graph.get_audience_insights(account_id, token, period)


__all__ = [
    "BusinessAccountNotConnectedError",
    "InstagramRelayService",
    "VALID_INSIGHT_PERIODS",
]
