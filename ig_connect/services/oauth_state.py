"""
One-time OAuth ``state`` tokens guarding the Facebook Login redirect.

Each authorization redirect gets a fresh, unguessable token that must come
back on the callback within the TTL. Tokens are consumed on first lookup, so
a replayed callback always fails. A background sweeper drops tokens from
flows that were abandoned before the callback arrived.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthStateRegistry:
    """Issue and validate single-use, time-limited CSRF state tokens."""

    def __init__(self, ttl_seconds: int = 600, clock: Optional[Clock] = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or _utcnow
        self._issued: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self) -> str:
        """Generate a new state token and remember when it was issued."""
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._issued[token] = self._clock()
        logger.debug("Issued OAuth state token")
        return token

    def validate(self, token: Optional[str]) -> bool:
        """
        Consume ``token`` and report whether it was live.

        Unknown tokens, empty tokens and tokens older than the TTL fail. A
        token that is found is removed whether or not it had expired.
        """
        if not token:
            logger.warning("State validation failed: no state provided")
            return False

        with self._lock:
            issued_at = self._issued.pop(token, None)

        if issued_at is None:
            logger.warning("State validation failed: state not found")
            return False

        if self._clock() - issued_at > self._ttl:
            logger.warning("State validation failed: state expired")
            return False

        logger.debug("State validated successfully")
        return True

    def sweep(self) -> int:
        """Drop every token older than the TTL and return how many were removed."""
        cutoff = self._clock() - self._ttl
        with self._lock:
            stale = [token for token, issued_at in self._issued.items() if issued_at < cutoff]
            for token in stale:
                del self._issued[token]
        if stale:
            logger.info("Cleaned up %d expired state parameters", len(stale))
        return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._issued)

    def clear(self) -> int:
        """Remove all tokens. Intended for tests."""
        with self._lock:
            removed = len(self._issued)
            self._issued.clear()
        logger.info("Cleared %d state parameters from storage", removed)
        return removed


class StateSweeper:
    """Periodically sweep an ``OAuthStateRegistry`` from an asyncio task."""

    def __init__(self, registry: OAuthStateRegistry, interval_seconds: float = 300) -> None:
        self._registry = registry
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="oauth-state-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._registry.sweep()
            except Exception:  # pylint: disable=broad-except
                logger.exception("OAuth state sweep failed")


__all__ = ["OAuthStateRegistry", "StateSweeper"]
