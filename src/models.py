"""Shared Pydantic data models for the payment PIN webhook."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class PaymentStatus(str, Enum):
    PAID = "paid"


class AuditEventType(str, Enum):
    SIGNATURE_REJECTED = "signature_rejected"
    PAYLOAD_REJECTED = "payload_rejected"
    EVENT_IGNORED = "event_ignored"
    PAYMENT_RECORDED = "payment_recorded"
    PERSISTENCE_FAILED = "persistence_failed"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


# --- Persistence Models ---


class StatusRecord(BaseModel):
    """A paid-status flag keyed by the caller-supplied PIN."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=1)
    status: PaymentStatus = PaymentStatus.PAID
    observed_at: str = Field(default_factory=_now_iso)  # ISO8601

    def store_fields(self) -> dict[str, str]:
        """Document written to the store; excludes observed_at so rewrites are identical."""
        return {"status": self.status.value}


# --- Audit Models ---


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    action: str
    result: str  # "success" | "failure" | "ignored"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
