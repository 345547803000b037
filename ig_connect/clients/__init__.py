"""Expose constructed client wrappers."""

from .facebook_auth import FacebookOAuthClient, TokenGrant
from .graph_api import GraphAPIClient

__all__ = [
    "FacebookOAuthClient",
    "GraphAPIClient",
    "TokenGrant",
]
