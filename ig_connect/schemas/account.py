"""Response models for account and token endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ig_connect.models.credentials import StoredCredentialSummary


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TokenInfo(_CamelModel):
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    permissions: List[str] = Field(default_factory=list)
    instagram_username: str = Field(
        "Not connected", serialization_alias="instagramUsername"
    )
    instagram_account_id: str = Field(
        "Not connected", serialization_alias="instagramAccountId"
    )


class AccountResponse(_CamelModel):
    success: bool = True
    user: Dict[str, Any]
    token_info: TokenInfo = Field(..., serialization_alias="tokenInfo")


class TokenSummary(_CamelModel):
    user_id: str = Field(..., serialization_alias="userId")
    instagram_account_id: str | None = Field(None, serialization_alias="instagramAccountId")
    instagram_username: str | None = Field(None, serialization_alias="instagramUsername")
    permissions: List[str] = Field(default_factory=list)
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    is_expired: bool = Field(..., serialization_alias="isExpired")

    @classmethod
    def from_summary(cls, summary: StoredCredentialSummary) -> "TokenSummary":
        return cls(
            user_id=summary.user_id,
            instagram_account_id=summary.business_account_id,
            instagram_username=summary.business_account_username,
            permissions=summary.permissions,
            expires_at=summary.expires_at,
            created_at=summary.created_at,
            is_expired=summary.is_expired,
        )


class TokenListResponse(_CamelModel):
    success: bool = True
    count: int
    tokens: List[TokenSummary]


__all__ = ["AccountResponse", "TokenInfo", "TokenListResponse", "TokenSummary"]
