"""
Orchestrates the Facebook Login flow that connects an Instagram Business account.

The flow is linear: ``start_authorization`` issues a state token and points
the browser at the consent dialog; ``complete_authorization`` validates the
callback, runs the token exchanges, discovers the linked business account and
stores the result. Both outcomes end in a redirect to a static page.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlencode

from ig_connect.clients import FacebookOAuthClient, GraphAPIClient
from ig_connect.models.credentials import CredentialRecord
from ig_connect.schemas.auth import OAuthCallbackParams
from ig_connect.services.oauth_state import OAuthStateRegistry
from ig_connect.services.token_store import AccountNotFoundError, TokenStore
from ig_connect.utils.http import GraphAPIError

logger = logging.getLogger(__name__)

SECURITY_VALIDATION_FAILED = "Security validation failed"
INVALID_CALLBACK_PARAMETERS = "Invalid callback parameters"
CONNECTION_FAILED = "Failed to complete Instagram connection"
AUTHORIZATION_FAILED = "Authorization failed"


class OAuthFlowState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthorizationRedirect:
    url: str
    state: str
    flow_state: OAuthFlowState = OAuthFlowState.AWAITING_CALLBACK


@dataclass(frozen=True)
class OAuthOutcome:
    """Terminal result of a callback, always rendered as a redirect."""

    flow_state: OAuthFlowState
    redirect_url: str
    record: Optional[CredentialRecord] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.flow_state is OAuthFlowState.COMPLETE


@dataclass(frozen=True)
class _LinkedAccount:
    business_account_id: Optional[str] = None
    username: Optional[str] = None
    page_access_token: Optional[str] = None


class InstagramOAuthService:
    """Drive the connect / callback handshake and persist the credential."""

    def __init__(
        self,
        *,
        oauth_client: FacebookOAuthClient,
        graph_client: GraphAPIClient,
        state_registry: OAuthStateRegistry,
        token_store: TokenStore,
        scopes: Sequence[str],
        success_redirect_url: str,
        error_redirect_url: str,
    ) -> None:
        self._oauth = oauth_client
        self._graph = graph_client
        self._states = state_registry
        self._store = token_store
        self._scopes = tuple(scopes)
        self._success_url = success_redirect_url
        self._error_url = error_redirect_url

    def start_authorization(self) -> AuthorizationRedirect:
        """Issue a state token and build the consent dialog URL."""
        state = self._states.issue()
        url = self._oauth.build_authorization_url(state=state)
        logger.info("Initiating Instagram Business OAuth flow via Facebook Login")
        return AuthorizationRedirect(url=url, state=state)

    async def complete_authorization(self, params: OAuthCallbackParams) -> OAuthOutcome:
        """Handle the callback and return the page the browser should land on."""
        if params.error:
            logger.warning(
                "OAuth error: %s - %s", params.error, params.error_description
            )
            return self._failed(
                params.error_description or params.error_reason or AUTHORIZATION_FAILED
            )

        if not params.code or not params.state:
            logger.error("Missing code or state parameter in callback")
            return self._failed(INVALID_CALLBACK_PARAMETERS)

        if not self._states.validate(params.state):
            logger.error("State validation failed - possible CSRF attack")
            return self._failed(SECURITY_VALIDATION_FAILED)

        try:
            record, expires_in = await self._connect(params.code)
        except GraphAPIError as exc:
            logger.error("Error in OAuth callback: %s", exc)
            return self._failed(CONNECTION_FAILED)
        except Exception:
            logger.exception("Unexpected error in OAuth callback")
            return self._failed(CONNECTION_FAILED)

        query = {
            "userId": record.user_id,
            "instagramUsername": record.business_account_username or "Not connected",
            "instagramAccountId": record.business_account_id or "none",
            "permissions": ",".join(record.permissions),
            "expiresIn": "" if expires_in is None else str(expires_in),
        }
        return OAuthOutcome(
            flow_state=OAuthFlowState.COMPLETE,
            redirect_url=f"{self._success_url}?{urlencode(query)}",
            record=record,
        )

    async def _connect(self, code: str) -> tuple[CredentialRecord, Optional[int]]:
        short_lived = await self._oauth.exchange_authorization_code(code)
        long_lived = await self._oauth.exchange_for_long_lived_token(
            short_lived.access_token
        )

        user = await self._graph.get_user(long_lived.access_token, fields="id,name")
        user_id = str(user["id"])
        logger.info("User authenticated: %s (ID: %s)", user.get("name", "Unknown"), user_id)

        pages = await self._graph.get_pages(long_lived.access_token)
        linked = await self._find_linked_account(pages)

        record = self._store.save(
            user_id,
            access_token=long_lived.access_token,
            token_type=long_lived.token_type,
            expires_in=long_lived.expires_in,
            permissions=self._scopes,
            user_name=user.get("name"),
            business_account_id=linked.business_account_id,
            business_account_username=linked.username,
            page_access_token=linked.page_access_token,
        )
        return record, long_lived.expires_in

    async def _find_linked_account(self, pages: Sequence[Dict[str, Any]]) -> _LinkedAccount:
        # First page carrying a linked business account wins.
        for page in pages:
            linked = page.get("instagram_business_account")
            if not isinstance(linked, dict):
                continue
            business_account_id = linked.get("id")
            page_token = page.get("access_token")
            if not business_account_id or not page_token:
                continue
            account = await self._graph.get_business_account(
                page_token, business_account_id
            )
            username = account.get("username")
            logger.info(
                "Found Instagram Business Account: @%s (ID: %s)",
                username,
                business_account_id,
            )
            return _LinkedAccount(
                business_account_id=str(business_account_id),
                username=username,
                page_access_token=page_token,
            )

        logger.info("No Instagram Business Account found on any Facebook Page")
        return _LinkedAccount()

    def _failed(self, message: str) -> OAuthOutcome:
        return OAuthOutcome(
            flow_state=OAuthFlowState.FAILED,
            redirect_url=f"{self._error_url}?{urlencode({'error': message})}",
            error_message=message,
        )

    def get_account_for_user(self, user_id: str) -> CredentialRecord:
        record = self._store.get(user_id)
        if record is None:
            raise AccountNotFoundError(f"No valid token stored for user {user_id}.")
        return record

    def delete_account_for_user(self, user_id: str) -> bool:
        return self._store.delete(user_id)


__all__ = [
    "AuthorizationRedirect",
    "InstagramOAuthService",
    "OAuthFlowState",
    "OAuthOutcome",
    "SECURITY_VALIDATION_FAILED",
]
