"""Public schema exports."""

from .account import AccountResponse, TokenInfo, TokenListResponse, TokenSummary
from .auth import OAuthCallbackParams

__all__ = [
    "AccountResponse",
    "OAuthCallbackParams",
    "TokenInfo",
    "TokenListResponse",
    "TokenSummary",
]
