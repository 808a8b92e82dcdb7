from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import orjson


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class KillSwitch:
    """
    File-based operator halt for the ladder runner.
    - If 'path' is provided, use it.
    - Else if LADDER_KILL_SWITCH_FILE is set, use that.
    - Else default to './.ladder_kill'.

    The file holds a small JSON payload with the reason and timestamp. Any
    existing file counts as engaged, even if its content cannot be parsed.
    """

    def __init__(self, path: Optional[os.PathLike[str] | str] = None):
        env_path = os.getenv("LADDER_KILL_SWITCH_FILE")
        self.path = Path(path if path is not None else (env_path if env_path else ".ladder_kill"))

    def engage(self, reason: Optional[str] = None) -> None:
        payload = {
            "engaged": True,
            "reason": reason or "manual",
            "engaged_at": _iso_now(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(payload))

    def reset(self) -> None:
        self.path.unlink(missing_ok=True)

    def engaged(self) -> bool:
        return self.path.exists()

    def info(self) -> Dict[str, Any]:
        """Return metadata about the kill switch if available."""

        if not self.path.exists():
            return {"engaged": False, "reason": None, "engaged_at": None}
        try:
            data = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError):
            return {"engaged": True, "reason": None, "engaged_at": None}
        if not isinstance(data, dict):
            return {"engaged": True, "reason": None, "engaged_at": None}
        reason = data.get("reason") if isinstance(data.get("reason"), str) else None
        engaged_at = data.get("engaged_at") if isinstance(data.get("engaged_at"), str) else None
        return {"engaged": True, "reason": reason, "engaged_at": engaged_at}
