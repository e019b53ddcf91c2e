"""Process-wide configuration, read once at startup and never mutated."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_SIGNATURE_HEADER = "x-razorpay-signature"


class ConfigError(Exception):
    """Raised when required settings are missing or invalid."""


class WebhookConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    webhook_secret: str = Field(min_length=1, repr=False)
    signature_header: str = DEFAULT_SIGNATURE_HEADER
    signature_failure_status: int = 401
    max_body_bytes: int = Field(default=1024 * 1024, gt=0)

    database_url: str = Field(min_length=1)
    auth_token: str | None = Field(default=None, repr=False)
    collection: str = "payments"
    store_timeout: float = Field(default=10.0, gt=0)

    max_attempts: int = Field(default=4, ge=1)
    backoff_base: float = Field(default=0.5, ge=0)
    backoff_cap: float = Field(default=8.0, ge=0)
    retry_deadline: float = Field(default=20.0, gt=0)

    audit_log_path: str | None = None
    audit_max_bytes: int = Field(default=10_485_760, gt=0)
    audit_backup_count: int = Field(default=5, ge=1)

    @field_validator("signature_header")
    @classmethod
    def _lower_header(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("signature_failure_status")
    @classmethod
    def _auth_status(cls, value: int) -> int:
        if value not in (400, 401):
            raise ValueError("signature failure status must be 400 or 401")
        return value

    @field_validator("database_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> WebhookConfig:
        env = os.environ if environ is None else environ
        mapping = {
            "webhook_secret": "RAZORPAY_WEBHOOK_SECRET",
            "signature_header": "WEBHOOK_SIGNATURE_HEADER",
            "signature_failure_status": "WEBHOOK_SIGNATURE_FAILURE_STATUS",
            "max_body_bytes": "WEBHOOK_MAX_BODY_BYTES",
            "database_url": "FIREBASE_DATABASE_URL",
            "auth_token": "FIREBASE_AUTH_TOKEN",
            "collection": "FIREBASE_COLLECTION",
            "store_timeout": "STORE_TIMEOUT_SECONDS",
            "max_attempts": "STORE_MAX_ATTEMPTS",
            "backoff_base": "STORE_BACKOFF_BASE_SECONDS",
            "backoff_cap": "STORE_BACKOFF_CAP_SECONDS",
            "retry_deadline": "STORE_RETRY_DEADLINE_SECONDS",
            "audit_log_path": "AUDIT_LOG_PATH",
            "audit_max_bytes": "AUDIT_LOG_MAX_BYTES",
            "audit_backup_count": "AUDIT_LOG_BACKUP_COUNT",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        for required in ("webhook_secret", "database_url"):
            if required not in values:
                raise ConfigError(f"{mapping[required]} is not set")
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid webhook configuration: {exc}") from exc
