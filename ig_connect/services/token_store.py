"""
Process-local storage for delegated Instagram credentials.

Records live only as long as the process. Expiry is lazy: an expired record
is dropped the next time it is read rather than by a background job.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

from ig_connect.models.credentials import CredentialRecord, StoredCredentialSummary
from ig_connect.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 60 * 24 * 60 * 60


class AccountNotFoundError(Exception):
    """Raised when no unexpired credential is stored for a user."""


@dataclass
class _StoredCredential:
    record: CredentialRecord
    access_token_encrypted: str
    page_access_token_encrypted: Optional[str]


class TokenStore:
    """Map user identifiers to their current ``CredentialRecord``."""

    def __init__(
        self,
        token_cipher: TokenCipherService,
        *,
        default_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._cipher = token_cipher
        self._default_ttl = default_ttl_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: Dict[str, _StoredCredential] = {}
        self._lock = threading.Lock()

    def _resolve_ttl(self, expires_in: object) -> int:
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            return self._default_ttl
        if expires_in <= 0:
            return self._default_ttl
        return int(expires_in)

    def save(
        self,
        user_id: str,
        *,
        access_token: str,
        token_type: Optional[str] = None,
        expires_in: Optional[int] = None,
        permissions: Optional[Sequence[str]] = None,
        user_name: Optional[str] = None,
        business_account_id: Optional[str] = None,
        business_account_username: Optional[str] = None,
        page_access_token: Optional[str] = None,
    ) -> CredentialRecord:
        """
        Store a credential for ``user_id``, replacing any previous record.

        ``expires_in`` is the validity window in seconds; a missing or
        non-positive value falls back to the default (60 days).
        """
        ttl_seconds = self._resolve_ttl(expires_in)
        created_at = self._clock()
        record = CredentialRecord(
            user_id=user_id,
            access_token=access_token,
            token_type=token_type or "bearer",
            expires_at=created_at + timedelta(seconds=ttl_seconds),
            created_at=created_at,
            permissions=list(permissions or []),
            user_name=user_name,
            business_account_id=business_account_id,
            business_account_username=business_account_username,
            page_access_token=page_access_token,
        )
        stored = _StoredCredential(
            record=record.model_copy(
                update={"access_token": "", "page_access_token": None}
            ),
            access_token_encrypted=self._cipher.encrypt(access_token),
            page_access_token_encrypted=self._cipher.encrypt_optional(page_access_token),
        )
        with self._lock:
            self._records[user_id] = stored

        logger.info(
            "Token saved for user %s (expires in %d days)",
            user_id,
            ttl_seconds // (24 * 60 * 60),
        )
        return record

    def _reveal(self, stored: _StoredCredential) -> CredentialRecord:
        return stored.record.model_copy(
            update={
                "access_token": self._cipher.decrypt(stored.access_token_encrypted),
                "page_access_token": self._cipher.decrypt_optional(
                    stored.page_access_token_encrypted
                ),
            }
        )

    def get(self, user_id: str) -> Optional[CredentialRecord]:
        """Return the live record for ``user_id``, dropping it if it has expired."""
        now = self._clock()
        with self._lock:
            stored = self._records.get(user_id)
            if stored is None:
                return None
            if stored.record.is_expired(now):
                del self._records[user_id]
                logger.info("Token expired for user %s", user_id)
                return None
        return self._reveal(stored)

    def delete(self, user_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(user_id, None) is not None
        if removed:
            logger.info("Token deleted for user %s", user_id)
        return removed

    def list_all(self) -> List[StoredCredentialSummary]:
        """Summaries of every record, expired ones included. Diagnostics only."""
        now = self._clock()
        with self._lock:
            records = [stored.record for stored in self._records.values()]
        return [
            StoredCredentialSummary(
                user_id=record.user_id,
                business_account_id=record.business_account_id,
                business_account_username=record.business_account_username,
                permissions=list(record.permissions),
                expires_at=record.expires_at,
                created_at=record.created_at,
                is_expired=record.is_expired(now),
            )
            for record in records
        ]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
        logger.info("Cleared %d tokens from storage", removed)
        return removed


__all__ = ["AccountNotFoundError", "DEFAULT_TOKEN_TTL_SECONDS", "TokenStore"]
