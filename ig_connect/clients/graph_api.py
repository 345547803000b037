"""Thin async wrapper around the Facebook Graph API endpoints used for Instagram."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from ig_connect.core.config import InstagramSettings
from ig_connect.utils.http import GraphAPIError, get_json

logger = logging.getLogger(__name__)

MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,timestamp,like_count,comments_count"
STORY_FIELDS = "id,media_type,media_url,permalink,timestamp"
BUSINESS_ACCOUNT_FIELDS = (
    "id,username,name,profile_picture_url,followers_count,follows_count,media_count"
)
ENGAGEMENT_METRICS = (
    "reach,profile_views,website_clicks,accounts_engaged,"
    "total_interactions,likes,comments,shares,saves,replies"
)
PERIOD_METRICS = {
    "day": ENGAGEMENT_METRICS,
    "week": (
        "reach,follower_count,profile_views,website_clicks,accounts_engaged,"
        "total_interactions,likes,comments,shares,saves,replies"
    ),
    "days_28": (
        "reach,follower_count,profile_views,website_clicks,accounts_engaged,"
        "total_interactions,likes,comments,shares,saves,replies"
    ),
}
MEDIA_INSIGHT_METRICS = "views,reach,likes,comments,shares,saved,total_interactions"


class GraphAPIClient:
    """Issue read-only Graph API queries with a caller-supplied access token."""

    def __init__(
        self,
        settings: InstagramSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def _get(
        self, path: str, *, params: Dict[str, Any], operation: str
    ) -> Dict[str, Any]:
        url = f"{self._settings.graph_api_url}/{path.lstrip('/')}"
        async with httpx.AsyncClient(
            timeout=self._settings.http_timeout, transport=self._transport
        ) as client:
            return await get_json(client, url, params=params, operation=operation)

    # -- identity and account discovery -------------------------------------------------

    async def get_user(self, access_token: str, fields: str = "id,name") -> Dict[str, Any]:
        """Return the profile of the user owning ``access_token``."""
        user = await self._get(
            "me",
            params={"fields": fields, "access_token": access_token},
            operation="get user info",
        )
        if not user.get("id"):
            raise GraphAPIError("get user info", "Response did not include a user id")
        return user

    async def get_pages(self, access_token: str) -> List[Dict[str, Any]]:
        """List the Facebook Pages managed by the user."""
        payload = await self._get(
            "me/accounts",
            params={
                "fields": "id,name,access_token,instagram_business_account",
                "access_token": access_token,
            },
            operation="get Facebook Pages",
        )
        pages = payload.get("data") or []
        if not isinstance(pages, list) or not all(isinstance(page, dict) for page in pages):
            raise GraphAPIError(
                "get Facebook Pages", "Response data was not a list of pages"
            )
        logger.info("Found %d Facebook Pages", len(pages))
        return pages

    async def get_business_account(
        self, page_access_token: str, business_account_id: str
    ) -> Dict[str, Any]:
        """Fetch profile details for a linked Instagram business account."""
        return await self._get(
            business_account_id,
            params={"fields": BUSINESS_ACCOUNT_FIELDS, "access_token": page_access_token},
            operation="get Instagram Business Account",
        )

    # -- relay queries ------------------------------------------------------------------

    async def get_media(
        self, business_account_id: str, page_access_token: str, limit: int = 10
    ) -> Dict[str, Any]:
        return await self._get(
            f"{business_account_id}/media",
            params={
                "fields": MEDIA_FIELDS,
                "limit": str(limit),
                "access_token": page_access_token,
            },
            operation="get Instagram media",
        )

    async def get_stories(
        self, business_account_id: str, page_access_token: str
    ) -> Dict[str, Any]:
        return await self._get(
            f"{business_account_id}/stories",
            params={"fields": STORY_FIELDS, "access_token": page_access_token},
            operation="get stories",
        )

    async def get_tagged_media(
        self, business_account_id: str, page_access_token: str, limit: int = 25
    ) -> Dict[str, Any]:
        return await self._get(
            f"{business_account_id}/tags",
            params={
                "fields": MEDIA_FIELDS,
                "limit": str(limit),
                "access_token": page_access_token,
            },
            operation="get tagged media",
        )

    async def get_business_discovery(
        self, business_account_id: str, page_access_token: str, username: str
    ) -> Dict[str, Any]:
        """Look up another professional account by username."""
        fields = (
            f"business_discovery.username({username})"
            f"{{{BUSINESS_ACCOUNT_FIELDS},media{{{MEDIA_FIELDS}}}}}"
        )
        payload = await self._get(
            business_account_id,
            params={"fields": fields, "access_token": page_access_token},
            operation="get business discovery",
        )
        return payload.get("business_discovery") or {}

    async def search_hashtags(
        self, business_account_id: str, page_access_token: str, query: str
    ) -> Dict[str, Any]:
        return await self._get(
            "ig_hashtag_search",
            params={
                "user_id": business_account_id,
                "q": query,
                "access_token": page_access_token,
            },
            operation="search hashtags",
        )

    async def get_hashtag_media(
        self,
        hashtag_id: str,
        business_account_id: str,
        page_access_token: str,
        *,
        edge: str = "top_media",
        limit: int = 25,
    ) -> Dict[str, Any]:
        """Fetch ``top_media`` or ``recent_media`` for a hashtag node."""
        if edge not in {"top_media", "recent_media"}:
            raise ValueError(f"Unsupported hashtag edge: {edge}")
        return await self._get(
            f"{hashtag_id}/{edge}",
            params={
                "user_id": business_account_id,
                "fields": MEDIA_FIELDS,
                "limit": str(limit),
                "access_token": page_access_token,
            },
            operation=f"get hashtag {edge.replace('_', ' ')}",
        )

    async def get_recently_searched_hashtags(
        self, business_account_id: str, page_access_token: str
    ) -> Dict[str, Any]:
        return await self._get(
            f"{business_account_id}/recently_searched_hashtags",
            params={"access_token": page_access_token},
            operation="get recently searched hashtags",
        )

    async def get_media_comments(
        self, media_id: str, page_access_token: str
    ) -> Dict[str, Any]:
        return await self._get(
            f"{media_id}/comments",
            params={
                "fields": "id,text,username,timestamp,like_count",
                "access_token": page_access_token,
            },
            operation="get media comments",
        )

    async def get_carousel_children(
        self, media_id: str, page_access_token: str
    ) -> Dict[str, Any]:
        return await self._get(
            f"{media_id}/children",
            params={"fields": STORY_FIELDS, "access_token": page_access_token},
            operation="get carousel children",
        )

    async def get_media_insights(
        self, media_id: str, page_access_token: str
    ) -> Dict[str, Any]:
        # Every media type shares the same non-deprecated metric set.
        return await self._get(
            f"{media_id}/insights",
            params={"metric": MEDIA_INSIGHT_METRICS, "access_token": page_access_token},
            operation="get media insights",
        )

    async def get_account_insights(
        self, business_account_id: str, page_access_token: str, period: str = "day"
    ) -> Dict[str, Any]:
        """Account-level insights for ``day``, ``week`` or ``days_28``."""
        metrics = PERIOD_METRICS.get(period)
        if metrics is None:
            raise ValueError(
                f"Invalid period: {period}. Must be 'day', 'week', or 'days_28'"
            )
        params = {"metric": metrics, "period": period, "access_token": page_access_token}
        if period == "day":
            params["metric_type"] = "total_value"
        return await self._get(
            f"{business_account_id}/insights",
            params=params,
            operation="get account insights",
        )

    async def get_audience_insights(
        self, business_account_id: str, page_access_token: str, period: str = "lifetime"
    ) -> Dict[str, Any]:
        """Follower demographics; requires an account with 100+ followers."""
        params: Dict[str, Any] = {"period": period, "access_token": page_access_token}
        if period == "lifetime":
            params["metric"] = "follower_demographics,follower_count,online_followers"
            params["breakdown"] = "day"
        elif period == "day":
            params["metric"] = (
                "follower_count,engaged_audience_demographics,reached_audience_demographics"
            )
        else:
            params["metric"] = "follower_count"
        return await self._get(
            f"{business_account_id}/insights",
            params=params,
            operation="get audience insights",
        )


__all__ = ["GraphAPIClient", "PERIOD_METRICS"]
