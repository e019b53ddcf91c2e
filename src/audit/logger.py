"""Webhook audit trail: append-only JSON Lines with a SHA-256 hash chain.

Each line carries ``prev_hash``, the SHA-256 of the previous raw line, so a
removed or edited entry breaks the chain. Files rotate by size into
``<name>.1`` ... ``<name>.N``; the chain restarts in the fresh file.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path

from src.models import AuditEvent


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None
    entries: int = 0


def _line_hash(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every entry references the hash of the one before it."""
    text = log_path.read_text().strip()
    if not text:
        return ChainValidationResult(valid=True)

    lines = text.split("\n")
    expected: str | None = None
    for number, line in enumerate(lines, start=1):
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            return ChainValidationResult(valid=False, broken_at_line=number)
        if entry.get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        expected = _line_hash(line)

    return ChainValidationResult(valid=True, entries=len(lines))


class AuditLogger:
    """Append-only audit trail for webhook outcomes."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._prev_hash: str | None = None
        if self.log_path.exists():
            text = self.log_path.read_text().strip()
            if text:
                self._prev_hash = _line_hash(text.split("\n")[-1])

    def _backup(self, index: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.name}.{index}")

    def _rotate_if_needed(self) -> None:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return

        self._backup(self._backup_count).unlink(missing_ok=True)
        for index in range(self._backup_count - 1, 0, -1):
            if self._backup(index).exists():
                self._backup(index).rename(self._backup(index + 1))
        self.log_path.rename(self._backup(1))
        self._prev_hash = None

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")

        with open(lock_path, "w") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                self._rotate_if_needed()
                entry = event.model_dump(mode="json")
                entry["prev_hash"] = self._prev_hash
                line = json.dumps(entry, separators=(",", ":"))
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
                self._prev_hash = _line_hash(line)
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)
