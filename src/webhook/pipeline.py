"""Payment webhook pipeline.

Runs one inbound request through its stages using direct function calls:

1. Method check (POST only)
2. Body size check
3. Signature verification over the raw bytes
4. Event classification (parse happens only after stage 3 succeeds)
5. PIN extraction
6. Idempotent paid-status write with bounded retry
7. Audit log and response mapping
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.models import AuditEvent, AuditEventType, RiskLevel
from src.webhook.classifier import classify, extract_identifier
from src.webhook.errors import (
    AuthenticationError,
    MalformedPayloadError,
    MissingIdentifierError,
    PayloadTooLargeError,
    PersistenceError,
    WebhookError,
    WebhookValidationError,
)
from src.webhook.models import (
    EventKind,
    InboundWebhookRequest,
    SignatureCheck,
    WebhookResponse,
)

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.webhook.persistence import PersistenceRelay
    from src.webhook.signature import SignatureVerifier

logger = logging.getLogger(__name__)

_MAX_BODY_SIZE = 1024 * 1024


class PaymentWebhookPipeline:
    """Authenticates payment-captured events and records the PIN as paid."""

    def __init__(
        self,
        verifier: SignatureVerifier,
        relay: PersistenceRelay,
        audit_logger: AuditLogger | None = None,
        max_body_size: int = _MAX_BODY_SIZE,
        signature_failure_status: int = AuthenticationError.status_code,
    ) -> None:
        self._verifier = verifier
        self._relay = relay
        self._audit = audit_logger
        self._max_body_size = max_body_size
        self._signature_failure_status = signature_failure_status

    async def handle(self, request: InboundWebhookRequest) -> WebhookResponse:
        """Run the full pipeline; every WebhookError becomes a response."""
        try:
            return await self._process(request)
        except WebhookError as exc:
            return self._respond_error(request, exc)

    async def _process(self, request: InboundWebhookRequest) -> WebhookResponse:
        # Stage 1: Method check
        if request.method != "POST":
            raise WebhookValidationError()

        # Stage 2: Body size check
        if len(request.raw_body) > self._max_body_size:
            raise PayloadTooLargeError()

        # Stage 3: Signature verification
        if self._verifier.verify(request) is SignatureCheck.REJECTED:
            raise AuthenticationError()

        # Stage 4: Classification
        event = classify(request.raw_body)
        if event.kind is EventKind.IGNORED:
            logger.info("Ignoring webhook event %r", event.event_type)
            self._log(
                request,
                AuditEventType.EVENT_IGNORED,
                result="ignored",
                risk_level=RiskLevel.INFO,
                details={"event": event.event_type},
            )
            return WebhookResponse(text="Event ignored", status_code=200)

        # Stage 5: PIN extraction
        identifier = extract_identifier(event)

        # Stage 6: Persist
        record = await self._relay.mark_paid(identifier)

        # Stage 7: Audit log
        logger.info("Recorded payment for PIN %r", identifier)
        self._log(
            request,
            AuditEventType.PAYMENT_RECORDED,
            result="success",
            risk_level=RiskLevel.INFO,
            details={
                "identifier": record.identifier,
                "status": record.status.value,
                "observed_at": record.observed_at,
            },
        )
        return WebhookResponse(text="PIN stored successfully", status_code=200)

    def _respond_error(
        self, request: InboundWebhookRequest, exc: WebhookError,
    ) -> WebhookResponse:
        status_code = exc.status_code

        if isinstance(exc, AuthenticationError):
            status_code = self._signature_failure_status
            logger.warning("Rejected webhook with invalid signature")
            self._log(
                request,
                AuditEventType.SIGNATURE_REJECTED,
                result="failure",
                risk_level=RiskLevel.HIGH,
                details={"header": self._verifier.header_name},
            )
        elif isinstance(exc, (MalformedPayloadError, MissingIdentifierError)):
            logger.info("Rejected webhook payload: %s", exc.detail)
            self._log(
                request,
                AuditEventType.PAYLOAD_REJECTED,
                result="failure",
                risk_level=RiskLevel.LOW,
                details={"reason": exc.detail},
            )
        elif isinstance(exc, PersistenceError):
            self._log(
                request,
                AuditEventType.PERSISTENCE_FAILED,
                result="failure",
                risk_level=RiskLevel.HIGH,
                details={"reason": exc.detail, "transient": exc.transient},
            )

        return WebhookResponse(text=exc.public_message, status_code=status_code)

    def _log(
        self,
        request: InboundWebhookRequest,
        event_type: AuditEventType,
        result: str,
        risk_level: RiskLevel,
        details: dict[str, Any] | None = None,
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                source_ip=request.source_ip,
                action="payment_webhook",
                result=result,
                risk_level=risk_level,
                details=details,
            ))
