"""Shared test fixtures for the payment PIN webhook."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import WebhookConfig
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.webhook.errors import PersistenceError

SECRET = "s3cr3t"
SIGNATURE_HEADER = "x-razorpay-signature"


class FakeStore:
    """In-memory document store that records every upsert call.

    ``failures`` is consumed one item per call; an exception instance is
    raised, ``None`` lets the write through.
    """

    def __init__(self, failures: list[PersistenceError | None] | None = None) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._failures = list(failures or [])

    async def upsert(self, key: str, fields: dict[str, Any]) -> None:
        self.calls.append((key, dict(fields)))
        if self._failures:
            failure = self._failures.pop(0)
            if failure is not None:
                raise failure
        self.documents[key] = dict(fields)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


# --- Factory functions for test data ---


def sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def make_payment_body(
    pin: str | None = "ABC123",
    event: str = "payment.captured",
    notes: Any = None,
) -> bytes:
    """Gateway-shaped body. ``notes`` overrides the generated notes object."""
    if notes is None:
        notes = {} if pin is None else {"pin": pin}
    payload = {
        "event": event,
        "payload": {"payment": {"entity": {"id": "pay_29QQoUBi66xm2f", "notes": notes}}},
    }
    return json.dumps(payload).encode()


def make_config(**kwargs: Any) -> WebhookConfig:
    """Factory for WebhookConfig with fast retry settings."""
    defaults: dict[str, Any] = {
        "webhook_secret": SECRET,
        "database_url": "https://example-rtdb.firebaseio.com",
        "backoff_base": 0.0,
        "backoff_cap": 0.0,
    }
    defaults.update(kwargs)
    return WebhookConfig(**defaults)


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.SIGNATURE_REJECTED,
        "action": "payment_webhook",
        "result": "failure",
        "risk_level": RiskLevel.HIGH,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)
