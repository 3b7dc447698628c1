"""Audit log of confirmed role writes.

Every create or update the reconcile engine performs can be recorded as a
JSON line in a daily log file, for later review of who changed what.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rolesync.reconciliation.models import ReconcileResult


@dataclass
class AuditEntry:
    """A single audit log entry."""

    timestamp: str
    role: str
    operation: str
    resource_version: str = ""
    missing_rules: list[dict] = field(default_factory=list)
    extra_rules: list[dict] = field(default_factory=list)
    actor: str = ""


class AuditLogger:
    """File-based JSON audit logger.

    Entries are persisted as newline-delimited JSON in daily log files
    named ``YYYY-MM-DD.jsonl``.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def record(self, result: ReconcileResult, actor: str = "") -> AuditEntry:
        """Record a performed reconcile write and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            timestamp=now.isoformat(),
            role=result.role.name,
            operation=result.operation.value,
            resource_version=result.role.resource_version,
            missing_rules=[r.to_dict() for r in result.missing_rules],
            extra_rules=[r.to_dict() for r in result.extra_rules],
            actor=actor,
        )
        with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_entries(self, role: Optional[str] = None) -> list[AuditEntry]:
        """Read entries from all log files, oldest first, optionally for one role."""
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if not line.strip():
                    continue
                entry = AuditEntry(**json.loads(line))
                if role and entry.role != role:
                    continue
                entries.append(entry)
        return entries
