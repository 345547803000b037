"""Service layer exports."""

from .instagram_oauth import (
    AuthorizationRedirect,
    InstagramOAuthService,
    OAuthFlowState,
    OAuthOutcome,
)
from .instagram_relay import BusinessAccountNotConnectedError, InstagramRelayService
from .oauth_state import OAuthStateRegistry, StateSweeper
from .token_cipher import TokenCipherService
from .token_store import AccountNotFoundError, TokenStore

__all__ = [
    "AccountNotFoundError",
    "AuthorizationRedirect",
    "BusinessAccountNotConnectedError",
    "InstagramOAuthService",
    "InstagramRelayService",
    "OAuthFlowState",
    "OAuthOutcome",
    "OAuthStateRegistry",
    "StateSweeper",
    "TokenCipherService",
    "TokenStore",
]
