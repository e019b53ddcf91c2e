"""Persistence relay: idempotent paid-status write with bounded retry."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from src.models import StatusRecord
from src.store.firebase import DocumentStore
from src.webhook.errors import TransientPersistenceError

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 4
_BACKOFF_BASE_SECONDS = 0.5
_BACKOFF_CAP_SECONDS = 8.0
_RETRY_DEADLINE_SECONDS = 20.0


class PersistenceRelay:
    """Writes StatusRecords to the document store.

    The write is an unconditional upsert of the same final value, never a
    read-modify-write, so redelivered or concurrent duplicate events converge
    on one record. Transient store failures are retried with capped
    exponential backoff; permanent ones propagate immediately.
    """

    def __init__(
        self,
        store: DocumentStore,
        max_attempts: int = _MAX_ATTEMPTS,
        backoff_base: float = _BACKOFF_BASE_SECONDS,
        backoff_cap: float = _BACKOFF_CAP_SECONDS,
        retry_deadline: float = _RETRY_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._max_attempts = max(1, max_attempts)
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._retry_deadline = retry_deadline
        self._clock = clock

    def _delay(self, attempt: int) -> float:
        return min(self._backoff_base * 2 ** attempt, self._backoff_cap)

    async def mark_paid(self, identifier: str) -> StatusRecord:
        record = StatusRecord(identifier=identifier)
        await self.upsert(record)
        return record

    async def upsert(self, record: StatusRecord) -> None:
        fields = record.store_fields()
        started = self._clock()

        for attempt in range(self._max_attempts):
            try:
                await self._store.upsert(record.identifier, fields)
                return
            except TransientPersistenceError as exc:
                delay = self._delay(attempt)
                elapsed = self._clock() - started
                if attempt + 1 >= self._max_attempts:
                    logger.error(
                        "Store write failed after %d attempts: %s",
                        attempt + 1, exc.detail,
                    )
                    raise
                if elapsed + delay > self._retry_deadline:
                    logger.error(
                        "Store write abandoned after %.1fs (deadline %.1fs): %s",
                        elapsed, self._retry_deadline, exc.detail,
                    )
                    raise
                logger.warning(
                    "Store write attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt + 1, self._max_attempts, exc.detail, delay,
                )
                await asyncio.sleep(delay)
