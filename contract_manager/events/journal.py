"""Event journal for committed registry calls.

Provides file-based JSON-lines recording of every notification a committed
call emitted, with filtering and export. This is the feed an off-chain
indexer or UI reads. Events are stored in ``events.jsonl`` inside the
network's state directory, in commit order.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from contract_manager.registry.events import Receipt, event_address

logger = logging.getLogger(__name__)


@dataclass
class JournalEntry:
    """A single journaled notification."""

    id: str
    call_id: str
    timestamp: str
    caller: str
    operation: str
    event: str
    args: dict[str, Any] = field(default_factory=dict)
    address: str = ""


class EventJournal:
    """Append-only JSON-lines journal of registry notifications."""

    JOURNAL_FILE = "events.jsonl"

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self._base_dir / self.JOURNAL_FILE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_all_entries(self) -> list[JournalEntry]:
        if not self.path.exists():
            return []
        entries: list[JournalEntry] = []
        text = self.path.read_text(encoding="utf-8")
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(JournalEntry(**json.loads(line)))
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Skipping unreadable journal line {lineno} in {self.path}: {e}")
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, receipt: Receipt) -> list[JournalEntry]:
        """Append every event of ``receipt``; usable directly as a registry listener."""
        timestamp = datetime.now(timezone.utc).isoformat()
        written = [
            JournalEntry(
                id=uuid.uuid4().hex[:16],
                call_id=receipt.call_id,
                timestamp=timestamp,
                caller=receipt.caller,
                operation=receipt.operation,
                event=event.name,
                args=event.args(),
                address=event_address(event) or "",
            )
            for event in receipt.events
        ]
        if not written:
            return written
        with self.path.open("a", encoding="utf-8") as fh:
            for entry in written:
                fh.write(json.dumps(asdict(entry)) + "\n")
        return written

    def get_events(
        self,
        *,
        event: Optional[str] = None,
        address: Optional[str] = None,
        call_id: Optional[str] = None,
        limit: int = 200,
        newest_first: bool = False,
    ) -> list[JournalEntry]:
        """Return filtered events in commit order (or newest first)."""
        entries = self._read_all_entries()

        if event:
            entries = [e for e in entries if e.event == event]
        if address:
            address = address.lower()
            entries = [e for e in entries if e.address == address]
        if call_id:
            entries = [e for e in entries if e.call_id == call_id]

        if newest_first:
            entries.reverse()
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export events in the specified format (``json`` or ``csv``)."""
        filters.setdefault("limit", 10000)
        entries = self.get_events(**filters)

        if fmt == "csv":
            lines = ["id,call_id,timestamp,caller,operation,event,address,args"]
            for e in entries:
                args = json.dumps(e.args).replace('"', '""')
                lines.append(
                    f'{e.id},{e.call_id},{e.timestamp},{e.caller},{e.operation},'
                    f'{e.event},{e.address},"{args}"'
                )
            return "\n".join(lines)

        return json.dumps([asdict(e) for e in entries], indent=2)
