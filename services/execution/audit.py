"""Append-only NDJSON journal of dispatched ledger commands."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson

from services.execution.types import CommandOutcome

_DUMP_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE


class CommandJournal:
    """Thread-safe journal; one JSON object per line, oldest first."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def record(self, outcome: CommandOutcome, **context: Any) -> Dict[str, Any]:
        """Journal one dispatch outcome and return the stored event."""

        event: Dict[str, Any] = {
            "ts": time.time(),
            "event": f"command_{outcome.status}",
            "command": outcome.command.to_dict(),
            "reason": outcome.reason or None,
            "order_id": outcome.order_id,
        }
        event.update(context)
        self.append(event)
        return event

    def append(self, event: Dict[str, Any]) -> None:
        line = orjson.dumps(event, option=_DUMP_OPTIONS)
        with self._lock:
            with self.path.open("ab") as handle:
                handle.write(line)

    def tail(self, n: int = 50, *, event: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return up to ``n`` of the latest events, optionally of one ``event`` type.

        Lines that fail to parse (a torn write after a crash) are skipped.
        """

        if n <= 0:
            return []
        with self._lock:
            if not self.path.exists():
                return []
            raw_lines = self.path.read_bytes().splitlines()

        events: List[Dict[str, Any]] = []
        for raw in reversed(raw_lines):
            if len(events) >= n:
                break
            raw = raw.strip()
            if not raw:
                continue
            try:
                payload = orjson.loads(raw)
            except orjson.JSONDecodeError:
                continue
            if not isinstance(payload, dict):
                continue
            if event is not None and payload.get("event") != event:
                continue
            events.append(payload)
        events.reverse()
        return events


__all__ = ["CommandJournal"]
