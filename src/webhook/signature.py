"""Gateway signature verification over the raw request body.

The expected value is the lowercase hex HMAC-SHA256 of the exact bytes
received, keyed with the shared webhook secret. The body must not be parsed
or re-serialized before this check.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re

from src.config import DEFAULT_SIGNATURE_HEADER
from src.webhook.models import InboundWebhookRequest, SignatureCheck

logger = logging.getLogger(__name__)

_HEX_DIGEST = re.compile(r"[0-9a-fA-F]{64}")


def compute_signature(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class SignatureVerifier:
    """Authenticates webhook bodies against a header-supplied signature."""

    def __init__(
        self, secret: str, header_name: str = DEFAULT_SIGNATURE_HEADER,
    ) -> None:
        self._secret = secret.encode()
        self._header_name = header_name.lower()

    @property
    def header_name(self) -> str:
        return self._header_name

    def verify(self, request: InboundWebhookRequest) -> SignatureCheck:
        """Return AUTHENTICATED only on an exact match over the full digest.

        Missing header, non-hex value, wrong length, or an unset secret all
        fail closed. Comparison is constant-time via hmac.compare_digest.
        """
        if not self._secret:
            logger.warning("Webhook secret not configured; rejecting request")
            return SignatureCheck.REJECTED

        provided = request.headers.get(self._header_name, "").strip()
        # bytes.fromhex tolerates embedded whitespace; require a bare digest.
        if not _HEX_DIGEST.fullmatch(provided):
            return SignatureCheck.REJECTED
        provided_digest = bytes.fromhex(provided)

        expected = hmac.new(self._secret, request.raw_body, hashlib.sha256).digest()
        if hmac.compare_digest(expected, provided_digest):
            return SignatureCheck.AUTHENTICATED
        return SignatureCheck.REJECTED
