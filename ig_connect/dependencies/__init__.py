"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_facebook_oauth_client,
    get_graph_api_client,
    get_instagram_oauth_service,
    get_instagram_relay_service,
    get_oauth_state_registry,
    get_token_cipher_service,
    get_token_store,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_facebook_oauth_client",
    "get_graph_api_client",
    "get_instagram_oauth_service",
    "get_instagram_relay_service",
    "get_oauth_state_registry",
    "get_token_cipher_service",
    "get_token_store",
]
