"""
Domain models for delegated Instagram credentials.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class CredentialRecord(BaseModel):
    """A user's long-lived token plus the linked business account, if any."""

    user_id: str = Field(..., description="Facebook user identifier owning the token.")
    access_token: str = Field(..., repr=False)
    token_type: str = "bearer"
    expires_at: datetime
    created_at: datetime
    permissions: List[str] = Field(default_factory=list)
    user_name: Optional[str] = None
    business_account_id: Optional[str] = Field(
        None, description="Instagram business account discovered during authorization."
    )
    business_account_username: Optional[str] = None
    page_access_token: Optional[str] = Field(
        None,
        repr=False,
        description="Page-scoped token used for every relay call.",
    )

    @model_validator(mode="after")
    def _linked_account_is_complete(self) -> "CredentialRecord":
        if (self.business_account_id is None) != (self.page_access_token is None):
            raise ValueError(
                "business_account_id and page_access_token must be set together"
            )
        return self

    @property
    def has_business_account(self) -> bool:
        return self.business_account_id is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.expires_at


class StoredCredentialSummary(BaseModel):
    """Diagnostic view of a stored record; never carries secrets."""

    user_id: str
    business_account_id: Optional[str] = None
    business_account_username: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    expires_at: datetime
    created_at: datetime
    is_expired: bool


__all__ = ["CredentialRecord", "StoredCredentialSummary"]
