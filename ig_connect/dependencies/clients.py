"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The state registry and token store are process-wide: each factory is cached
so every request sees the same instance.
"""

from functools import lru_cache

from ig_connect.clients import FacebookOAuthClient, GraphAPIClient
from ig_connect.core.config import get_settings
from ig_connect.services import (
    InstagramOAuthService,
    InstagramRelayService,
    OAuthStateRegistry,
    TokenCipherService,
    TokenStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_state_registry() -> OAuthStateRegistry:
    """Provide the process-wide CSRF state registry."""
    settings = _settings()
    return OAuthStateRegistry(ttl_seconds=settings.oauth.state_ttl_seconds)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.instagram.app_secret
    return TokenCipherService(secret=secret)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the process-wide credential store."""
    settings = _settings()
    return TokenStore(
        get_token_cipher_service(),
        default_ttl_seconds=settings.oauth.default_token_ttl_seconds,
    )


@lru_cache()
def get_facebook_oauth_client() -> FacebookOAuthClient:
    """Create a singleton Facebook Login OAuth client."""
    return FacebookOAuthClient(_settings().instagram)


@lru_cache()
def get_graph_api_client() -> GraphAPIClient:
    """Create a singleton Graph API client."""
    return GraphAPIClient(_settings().instagram)


def get_instagram_oauth_service() -> InstagramOAuthService:
    """Build the OAuth orchestrator from the shared stores and clients."""
    settings = _settings()
    return InstagramOAuthService(
        oauth_client=get_facebook_oauth_client(),
        graph_client=get_graph_api_client(),
        state_registry=get_oauth_state_registry(),
        token_store=get_token_store(),
        scopes=settings.instagram.scopes,
        success_redirect_url=settings.success_redirect_url,
        error_redirect_url=settings.error_redirect_url,
    )


def get_instagram_relay_service() -> InstagramRelayService:
    """Build the Graph relay service."""
    return InstagramRelayService(get_token_store(), get_graph_api_client())


__all__ = [
    "get_facebook_oauth_client",
    "get_graph_api_client",
    "get_instagram_oauth_service",
    "get_instagram_relay_service",
    "get_oauth_state_registry",
    "get_token_cipher_service",
    "get_token_store",
]
