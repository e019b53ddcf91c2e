"""Click CLI for signing test deliveries and checking the audit trail."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO

import click

from src.audit.logger import validate_audit_chain
from src.config import DEFAULT_SIGNATURE_HEADER
from src.webhook.models import InboundWebhookRequest, SignatureCheck
from src.webhook.signature import SignatureVerifier, compute_signature


@click.group()
def cli() -> None:
    """Payment PIN webhook tools."""


@cli.command()
@click.option("--secret", envvar="RAZORPAY_WEBHOOK_SECRET", required=True,
              help="Shared webhook secret.")
@click.argument("body_file", type=click.File("rb"), default="-")
def sign(secret: str, body_file: BinaryIO) -> None:
    """Print the signature the gateway would send for BODY_FILE."""
    click.echo(compute_signature(secret, body_file.read()))


@cli.command()
@click.option("--secret", envvar="RAZORPAY_WEBHOOK_SECRET", required=True,
              help="Shared webhook secret.")
@click.option("--signature", required=True, help="Hex signature to check.")
@click.argument("body_file", type=click.File("rb"), default="-")
def verify(secret: str, signature: str, body_file: BinaryIO) -> None:
    """Exit 0 if SIGNATURE authenticates BODY_FILE, 1 otherwise."""
    request = InboundWebhookRequest.capture(
        method="POST",
        headers={DEFAULT_SIGNATURE_HEADER: signature},
        raw_body=body_file.read(),
    )
    result = SignatureVerifier(secret).verify(request)
    click.echo(result.value)
    if result is not SignatureCheck.AUTHENTICATED:
        sys.exit(1)


@cli.command("audit-verify")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def audit_verify(log_path: Path) -> None:
    """Validate the hash chain of an audit log."""
    result = validate_audit_chain(log_path)
    if not result.valid:
        click.echo(f"Chain broken at line {result.broken_at_line}", err=True)
        sys.exit(1)
    click.echo(f"Chain intact ({result.entries} entries)")
