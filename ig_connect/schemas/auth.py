"""Schemas related to the OAuth flow."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OAuthCallbackParams(BaseModel):
    """Query parameters Facebook sends back to the redirect URI."""

    code: Optional[str] = Field(None, description="Authorization code on success.")
    state: Optional[str] = Field(None, description="State token issued when starting OAuth.")
    error: Optional[str] = Field(None, description="Error code when the user declined.")
    error_reason: Optional[str] = None
    error_description: Optional[str] = None


__all__ = ["OAuthCallbackParams"]
