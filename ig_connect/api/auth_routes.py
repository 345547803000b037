"""
FastAPI routes for the Instagram Business OAuth flow via Facebook Login.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from ig_connect.dependencies import get_app_settings, get_instagram_oauth_service
from ig_connect.schemas import OAuthCallbackParams

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/instagram")
async def start_instagram_oauth_flow(
    oauth_service: Annotated[Any, Depends(get_instagram_oauth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> RedirectResponse:
    """Redirect the browser to the Facebook consent dialog."""
    try:
        redirect = oauth_service.start_authorization()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error initiating OAuth")
        query = urlencode({"error": "Failed to start Instagram connection"})
        return RedirectResponse(
            url=f"{settings.error_redirect_url}?{query}",
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )
    return RedirectResponse(url=redirect.url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


@router.get("/instagram/callback")
async def handle_instagram_oauth_callback(
    oauth_service: Annotated[Any, Depends(get_instagram_oauth_service)],
    code: Optional[str] = Query(default=None, description="Authorization code."),
    state: Optional[str] = Query(default=None, description="OAuth state token."),
    error: Optional[str] = Query(default=None),
    error_reason: Optional[str] = Query(default=None),
    error_description: Optional[str] = Query(default=None),
) -> RedirectResponse:
    """Complete the connection and redirect to the success or error page."""
    params = OAuthCallbackParams(
        code=code,
        state=state,
        error=error,
        error_reason=error_reason,
        error_description=error_description,
    )
    outcome = await oauth_service.complete_authorization(params)
    return RedirectResponse(
        url=outcome.redirect_url, status_code=HTTPStatus.TEMPORARY_REDIRECT
    )


__all__ = ["router"]
