"""
FastAPI routes for account management and the Instagram Graph relay.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Awaitable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ig_connect.dependencies import (
    get_app_settings,
    get_graph_api_client,
    get_instagram_oauth_service,
    get_instagram_relay_service,
    get_token_store,
)
from ig_connect.schemas import AccountResponse, TokenInfo, TokenListResponse, TokenSummary
from ig_connect.services import AccountNotFoundError, BusinessAccountNotConnectedError
from ig_connect.services.instagram_relay import VALID_INSIGHT_PERIODS

router = APIRouter()
logger = logging.getLogger(__name__)

NO_VALID_TOKEN = "No valid token found. Please connect your Instagram account."
NO_BUSINESS_ACCOUNT = (
    "No Instagram Business Account connected. "
    "Make sure your Instagram is linked to a Facebook Page."
)


def _require_params(**params: Optional[str]) -> None:
    missing = [name for name, value in params.items() if not value]
    if not missing:
        return
    noun = "parameter" if len(missing) == 1 else "parameters"
    raise HTTPException(
        status_code=HTTPStatus.BAD_REQUEST,
        detail=f"Missing required {noun}: {' and '.join(missing)}",
    )


async def _relay(call: Awaitable[Dict[str, Any]]) -> Dict[str, Any]:
    """Await a relay call, mapping missing-account conditions to HTTP errors."""
    try:
        return await call
    except AccountNotFoundError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail=NO_VALID_TOKEN
        ) from exc
    except BusinessAccountNotConnectedError as exc:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail=NO_BUSINESS_ACCOUNT
        ) from exc


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: Annotated[Any, Depends(get_app_settings)]) -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/me", response_model=AccountResponse)
async def get_connected_account(
    oauth_service: Annotated[Any, Depends(get_instagram_oauth_service)],
    graph_client: Annotated[Any, Depends(get_graph_api_client)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> AccountResponse:
    """Return the Facebook identity and token metadata for a connected user."""
    _require_params(userId=user_id)
    try:
        record = oauth_service.get_account_for_user(user_id)
    except AccountNotFoundError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail=NO_VALID_TOKEN
        ) from exc

    user_info = await graph_client.get_user(record.access_token)
    return AccountResponse(
        user=user_info,
        token_info=TokenInfo(
            expires_at=record.expires_at,
            created_at=record.created_at,
            permissions=record.permissions,
            instagram_username=record.business_account_username or "Not connected",
            instagram_account_id=record.business_account_id or "Not connected",
        ),
    )


@router.get("/tokens", response_model=TokenListResponse)
async def list_stored_tokens(
    settings: Annotated[Any, Depends(get_app_settings)],
    token_store: Annotated[Any, Depends(get_token_store)],
) -> TokenListResponse:
    """List stored tokens. Only available in development."""
    if not settings.is_development:
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="This endpoint is only available in development mode",
        )
    summaries = [TokenSummary.from_summary(item) for item in token_store.list_all()]
    return TokenListResponse(count=len(summaries), tokens=summaries)


@router.delete("/logout")
async def logout(
    oauth_service: Annotated[Any, Depends(get_instagram_oauth_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> dict:
    """Forget the stored credential for a user."""
    _require_params(userId=user_id)
    if not oauth_service.delete_account_for_user(user_id):
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="No token found for this user"
        )
    return {"success": True, "message": "Successfully logged out"}


@router.get("/instagram/media")
async def get_media(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: int = Query(default=10, ge=1, le=100),
) -> dict:
    _require_params(userId=user_id)
    media = await _relay(relay.media(user_id, limit=limit))
    account = relay.describe_account(user_id)
    return {
        "success": True,
        **account,
        "media": media.get("data") or [],
        "paging": media.get("paging"),
    }


@router.get("/instagram/insights")
async def get_account_insights(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> dict:
    _require_params(userId=user_id)
    insights = await _relay(relay.account_insights(user_id, period="day"))
    return {"success": True, "insights": insights.get("data") or []}


@router.get("/instagram/insights/period")
async def get_account_insights_for_period(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    period: str = Query(default="day"),
) -> dict:
    _require_params(userId=user_id)
    if period not in VALID_INSIGHT_PERIODS:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Invalid period. Must be: day, week, or days_28",
        )
    insights = await _relay(relay.account_insights(user_id, period=period))
    return {"success": True, "period": period, "insights": insights.get("data") or []}


@router.get("/instagram/stories")
async def get_stories(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> dict:
    _require_params(userId=user_id)
    stories = await _relay(relay.stories(user_id))
    return {"success": True, "stories": stories.get("data") or []}


@router.get("/instagram/tagged")
async def get_tagged_media(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: int = Query(default=25, ge=1, le=100),
) -> dict:
    _require_params(userId=user_id)
    tagged = await _relay(relay.tagged_media(user_id, limit=limit))
    return {"success": True, "tagged": tagged.get("data") or [], "paging": tagged.get("paging")}


@router.get("/instagram/business-discovery")
async def get_business_discovery(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    username: Optional[str] = Query(default=None),
) -> dict:
    _require_params(userId=user_id, username=username)
    account = await _relay(relay.business_discovery(user_id, username=username))
    return {"success": True, "account": account}


@router.get("/instagram/hashtag/search")
async def search_hashtags(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    query: Optional[str] = Query(default=None),
) -> dict:
    _require_params(userId=user_id, query=query)
    results = await _relay(relay.search_hashtags(user_id, query=query))
    return {"success": True, "hashtags": results.get("data") or []}


@router.get("/instagram/hashtag/top-media")
async def get_hashtag_top_media(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    hashtag_id: Optional[str] = Query(default=None, alias="hashtagId"),
    limit: int = Query(default=25, ge=1, le=50),
) -> dict:
    _require_params(userId=user_id, hashtagId=hashtag_id)
    media = await _relay(
        relay.hashtag_media(user_id, hashtag_id=hashtag_id, edge="top_media", limit=limit)
    )
    return {"success": True, "media": media.get("data") or [], "paging": media.get("paging")}


@router.get("/instagram/hashtag/recent-media")
async def get_hashtag_recent_media(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    hashtag_id: Optional[str] = Query(default=None, alias="hashtagId"),
    limit: int = Query(default=25, ge=1, le=50),
) -> dict:
    _require_params(userId=user_id, hashtagId=hashtag_id)
    media = await _relay(
        relay.hashtag_media(
            user_id, hashtag_id=hashtag_id, edge="recent_media", limit=limit
        )
    )
    return {"success": True, "media": media.get("data") or [], "paging": media.get("paging")}


@router.get("/instagram/hashtag/recently-searched")
async def get_recently_searched_hashtags(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> dict:
    _require_params(userId=user_id)
    hashtags = await _relay(relay.recently_searched_hashtags(user_id))
    return {"success": True, "hashtags": hashtags.get("data") or []}


@router.get("/instagram/media/comments")
async def get_media_comments(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    media_id: Optional[str] = Query(default=None, alias="mediaId"),
) -> dict:
    _require_params(userId=user_id, mediaId=media_id)
    comments = await _relay(relay.media_comments(user_id, media_id=media_id))
    return {
        "success": True,
        "comments": comments.get("data") or [],
        "paging": comments.get("paging"),
    }


@router.get("/instagram/media/children")
async def get_carousel_children(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    media_id: Optional[str] = Query(default=None, alias="mediaId"),
) -> dict:
    _require_params(userId=user_id, mediaId=media_id)
    children = await _relay(relay.carousel_children(user_id, media_id=media_id))
    return {"success": True, "children": children.get("data") or []}


@router.get("/instagram/media/insights")
async def get_media_insights(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    media_id: Optional[str] = Query(default=None, alias="mediaId"),
    media_type: str = Query(default="IMAGE", alias="mediaType"),
) -> dict:
    _require_params(userId=user_id, mediaId=media_id)
    insights = await _relay(relay.media_insights(user_id, media_id=media_id))
    return {
        "success": True,
        "mediaId": media_id,
        "mediaType": media_type,
        "insights": insights.get("data") or [],
    }


@router.get("/instagram/audience/insights")
async def get_audience_insights(
    relay: Annotated[Any, Depends(get_instagram_relay_service)],
    user_id: Optional[str] = Query(default=None, alias="userId"),
    period: str = Query(default="lifetime"),
) -> dict:
    _require_params(userId=user_id)
    insights = await _relay(relay.audience_insights(user_id, period=period))
    return {
        "success": True,
        "period": period,
        "note": "Requires 100+ followers. Demographic data may have up to 48-hour delay.",
        "insights": insights.get("data") or [],
    }


__all__ = ["router"]
