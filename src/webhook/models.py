"""Data models for the payment webhook pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class InboundWebhookRequest:
    """Request exactly as received. ``raw_body`` is never re-encoded."""

    method: str
    headers: Mapping[str, str]
    raw_body: bytes
    source_ip: str | None = None

    @classmethod
    def capture(
        cls,
        method: str,
        headers: Mapping[str, str],
        raw_body: bytes,
        source_ip: str | None = None,
    ) -> InboundWebhookRequest:
        """Normalize method and header names; the body is kept byte-for-byte."""
        normalized = {k.lower(): v for k, v in headers.items()}
        return cls(
            method=method.upper(),
            headers=MappingProxyType(normalized),
            raw_body=bytes(raw_body),
            source_ip=source_ip,
        )


class SignatureCheck(str, Enum):
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class EventKind(str, Enum):
    RELEVANT = "relevant"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PaymentEvent:
    """Parsed view of an authenticated body."""

    event_type: str
    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookResponse:
    """Pipeline response to return to the gateway."""

    text: str
    status_code: int

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def to_body(self) -> dict[str, str]:
        return {"message": self.text} if self.ok else {"error": self.text}
