"""HTTP utilities shared by the Facebook Login and Graph API clients."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

import httpx

logger = logging.getLogger(__name__)


class GraphAPIError(Exception):
    """Raised when a Graph API or token endpoint call fails."""

    def __init__(
        self, operation: str, message: str, *, status_code: int | None = None
    ) -> None:
        super().__init__(f"Failed to {operation}: {message}")
        self.operation = operation
        self.message = message
        self.status_code = status_code


def extract_error_message(response: httpx.Response) -> str:
    """Pull the human readable message out of a Graph API error body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text or response.reason_phrase


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, Any],
    operation: str,
) -> Dict[str, Any]:
    """
    Issue a GET request and decode the JSON object it returns.

    Transport failures, non-2xx responses and non-object bodies all surface as
    ``GraphAPIError`` so callers only handle one failure type. Requests are
    never retried.
    """
    try:
        response = await client.get(url, params=dict(params))
    except httpx.HTTPError as exc:
        logger.error("Request to %s failed while trying to %s: %s", url, operation, exc)
        raise GraphAPIError(operation, str(exc) or type(exc).__name__) from exc

    if response.is_error:
        message = extract_error_message(response)
        logger.error(
            "Graph API returned %s while trying to %s: %s",
            response.status_code,
            operation,
            message,
        )
        raise GraphAPIError(operation, message, status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise GraphAPIError(operation, "Malformed JSON response") from exc
    if not isinstance(payload, dict):
        raise GraphAPIError(operation, "Unexpected response payload")
    return payload


__all__ = ["GraphAPIError", "extract_error_message", "get_json"]
