"""FastAPI application exposing the payment webhook endpoint."""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from src.audit.logger import AuditLogger
from src.config import WebhookConfig
from src.store.firebase import DocumentStore, FirebaseStore
from src.webhook.models import InboundWebhookRequest
from src.webhook.persistence import PersistenceRelay
from src.webhook.pipeline import PaymentWebhookPipeline
from src.webhook.signature import SignatureVerifier

WEBHOOK_PATH = "/webhook"


def _too_large() -> JSONResponse:
    return JSONResponse({"error": "Request body too large"}, status_code=413)


async def _read_body(request: Request, limit: int) -> bytes | None:
    """Read the request body, or return None once it grows past ``limit``."""
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = WebhookConfig.from_env()
    audit_logger = None
    if config.audit_log_path:
        audit_logger = AuditLogger(
            config.audit_log_path,
            max_bytes=config.audit_max_bytes,
            backup_count=config.audit_backup_count,
        )
    return create_app(config, audit_logger=audit_logger)


def build_pipeline(
    config: WebhookConfig,
    store: DocumentStore | None = None,
    audit_logger: AuditLogger | None = None,
) -> PaymentWebhookPipeline:
    if store is None:
        store = FirebaseStore(
            database_url=config.database_url,
            auth_token=config.auth_token,
            collection=config.collection,
            timeout=config.store_timeout,
        )
    relay = PersistenceRelay(
        store,
        max_attempts=config.max_attempts,
        backoff_base=config.backoff_base,
        backoff_cap=config.backoff_cap,
        retry_deadline=config.retry_deadline,
    )
    return PaymentWebhookPipeline(
        verifier=SignatureVerifier(config.webhook_secret, config.signature_header),
        relay=relay,
        audit_logger=audit_logger,
        max_body_size=config.max_body_bytes,
        signature_failure_status=config.signature_failure_status,
    )


def create_app(
    config: WebhookConfig,
    store: DocumentStore | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the webhook app. ``store`` overrides the Firebase client."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    pipeline = build_pipeline(config, store=store, audit_logger=audit_logger)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # All methods are routed here so the pipeline decides on 405.
    @app.api_route(
        WEBHOOK_PATH, methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    )
    async def payment_webhook(request: Request) -> Response:
        raw_body = b""
        if request.method == "POST":
            # Refuse oversized POSTs before buffering past the limit.
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > config.max_body_bytes:
                return _too_large()
            body = await _read_body(request, config.max_body_bytes)
            if body is None:
                return _too_large()
            raw_body = body

        inbound = InboundWebhookRequest.capture(
            method=request.method,
            headers=dict(request.headers),
            raw_body=raw_body,
            source_ip=request.client.host if request.client else None,
        )
        result = await pipeline.handle(inbound)
        return JSONResponse(result.to_body(), status_code=result.status_code)

    return app
