"""Error taxonomy for the payment webhook pipeline.

Every error carries the HTTP status it maps to and a message that is safe to
return to the gateway. Only persistence errors are ever retried, and only the
transient kind.
"""

from __future__ import annotations


class WebhookError(Exception):
    """Base class for pipeline outcomes that end the request early."""

    status_code = 500
    public_message = "Error processing request"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.public_message
        super().__init__(self.detail)


class WebhookValidationError(WebhookError):
    """Raised when the request is rejected before its body is inspected."""

    status_code = 405
    public_message = "Method Not Allowed"


class PayloadTooLargeError(WebhookValidationError):
    status_code = 413
    public_message = "Request body too large"


class AuthenticationError(WebhookError):
    """Raised when the signature header is missing, malformed, or wrong."""

    status_code = 401
    public_message = "Invalid webhook signature"


class MalformedPayloadError(WebhookError):
    """Raised when an authenticated body is not the expected JSON envelope."""

    status_code = 400
    public_message = "Malformed webhook payload"


class MissingIdentifierError(WebhookError):
    """Raised when a captured payment carries no PIN in its notes."""

    status_code = 400
    public_message = "No PIN found in payment metadata"


class PersistenceError(WebhookError):
    """Raised when the document store could not record the status."""

    transient = False
    public_message = "Error recording payment"


class TransientPersistenceError(PersistenceError):
    """Network failure, timeout, 429 or 5xx from the store. Safe to retry."""

    transient = True


class PermanentPersistenceError(PersistenceError):
    """Store rejected the write (auth, bad request). Retrying cannot help."""
