"""
Purpose: Post GraphQL documents to the AppSync endpoint.
One place for auth headers, timeouts and error normalization.

Auth: Cognito User Pool id token in the Authorization header
(userPool auth mode). The token is fetched per request so a refreshed
session is picked up without rebuilding the client.

Testing: httpx.MockTransport; assert payload shape and error mapping.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from core.errors import TaskApiError, TaskConflictError

logger = logging.getLogger(__name__)

_TIMEOUT = 15.0
_CONFLICT_ERROR_TYPES = {"ConflictUnhandled", "ConditionalCheckFailedException"}


class GraphQLClient:
    """Sync client for an AppSync GraphQL API.

    Usage:
        client = GraphQLClient(url, token_provider=auth.id_token)
        data = client.execute(queries.list_tasks, {"limit": 100})
    """

    def __init__(
        self,
        url: str,
        token_provider: Callable[[], str],
        *,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not url:
            raise TaskApiError("GraphQL endpoint URL is not configured")
        self._url = url
        self._token_provider = token_provider
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        """Run one operation and return its `data` object."""
        try:
            token = self._token_provider()
        except Exception as e:
            raise TaskApiError(f"Could not obtain an auth token: {e}") from e

        try:
            resp = self._client.post(
                self._url,
                json={"query": query, "variables": variables or {}},
                headers={"Authorization": token, "Content-Type": "application/json"},
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning("GraphQL HTTP %s from %s", e.response.status_code, self._url)
            raise TaskApiError(f"Task API returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("GraphQL transport error: %s", e)
            raise TaskApiError(f"Task API unreachable: {e}") from e
        except ValueError as e:
            raise TaskApiError("Task API returned a non-JSON response") from e

        errors = payload.get("errors") or []
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {}
            message = first.get("message") or "Unknown GraphQL error"
            error_type = first.get("errorType") or ""
            logger.warning("GraphQL error (%s): %s", error_type or "-", message)
            if error_type in _CONFLICT_ERROR_TYPES:
                raise TaskConflictError(message)
            raise TaskApiError(message)

        return payload.get("data") or {}

    def close(self) -> None:
        self._client.close()
