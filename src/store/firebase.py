"""Firebase Realtime Database client for status records.

Writes are REST ``PUT`` requests, which replace the node at the key's path:
sending the same document twice leaves the same state as sending it once.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from src.webhook.errors import PermanentPersistenceError, TransientPersistenceError

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    async def upsert(self, key: str, fields: dict[str, Any]) -> None:
        """Replace the document at ``key``; raise a PersistenceError on failure."""
        ...


class FirebaseStore:
    """Firebase Realtime Database REST client."""

    def __init__(
        self,
        database_url: str,
        auth_token: str | None = None,
        collection: str = "payments",
        timeout: float = 10.0,
    ) -> None:
        self._database_url = database_url.rstrip("/")
        self._auth_token = auth_token
        self._collection = collection.strip("/")
        self._timeout = timeout

    def document_url(self, key: str) -> str:
        """URL for ``key``, percent-encoded as a single path segment."""
        return f"{self._database_url}/{self._collection}/{quote(key, safe='')}.json"

    async def upsert(self, key: str, fields: dict[str, Any]) -> None:
        url = self.document_url(key)
        params = {"auth": self._auth_token} if self._auth_token else None

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.put(
                    url, json=fields, params=params, timeout=self._timeout,
                )
        except httpx.TransportError as exc:
            # ConnectError, TimeoutException, and friends
            raise TransientPersistenceError(f"Store unreachable: {type(exc).__name__}") from exc

        if resp.status_code < 400:
            return
        if self._should_retry(resp.status_code):
            raise TransientPersistenceError(f"Store returned {resp.status_code}")
        logger.error("Store rejected write with status %s", resp.status_code)
        raise PermanentPersistenceError(f"Store returned {resp.status_code}")

    @staticmethod
    def _should_retry(status_code: int) -> bool:
        """Only 429 (rate limit) and 5xx are transient."""
        return status_code == 429 or status_code >= 500
