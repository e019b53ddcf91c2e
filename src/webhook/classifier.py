"""Event classification and PIN extraction for authenticated bodies."""

from __future__ import annotations

import json
from typing import Any

from src.webhook.errors import MalformedPayloadError, MissingIdentifierError
from src.webhook.models import EventKind, PaymentEvent

PAYMENT_CAPTURED = "payment.captured"


def classify(raw_body: bytes) -> PaymentEvent:
    """Parse a verified body and decide whether it is a captured payment.

    Raises MalformedPayloadError when the body is not a JSON object with a
    string ``event`` field. Any other event type is IGNORED, not an error.
    """
    try:
        data = json.loads(raw_body)
    # ValueError also covers oversized int literals; deep nesting recurses.
    except (ValueError, RecursionError) as exc:
        raise MalformedPayloadError("Body is not valid JSON") from exc

    if not isinstance(data, dict):
        raise MalformedPayloadError("Body is not a JSON object")
    event_type = data.get("event")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedPayloadError("Missing event type")

    if event_type != PAYMENT_CAPTURED:
        return PaymentEvent(event_type=event_type, kind=EventKind.IGNORED)

    payload = data.get("payload")
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Missing payload")
    return PaymentEvent(event_type=event_type, kind=EventKind.RELEVANT, payload=payload)


def _payment_entity(payload: dict[str, Any]) -> dict[str, Any]:
    payment = payload.get("payment")
    entity = payment.get("entity") if isinstance(payment, dict) else None
    if not isinstance(entity, dict):
        raise MalformedPayloadError("Missing payment entity")
    return entity


def extract_identifier(event: PaymentEvent) -> str:
    """Return ``payload.payment.entity.notes.pin``.

    The gateway sends ``notes`` as an empty list when a payment has none, so
    a non-object ``notes`` counts as absent. The PIN is opaque: any non-empty
    string is accepted as-is.
    """
    entity = _payment_entity(event.payload)
    notes = entity.get("notes")
    pin = notes.get("pin") if isinstance(notes, dict) else None
    if not isinstance(pin, str) or not pin:
        raise MissingIdentifierError()
    return pin
