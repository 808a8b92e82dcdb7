"""Error taxonomy for the ladder controller."""

from __future__ import annotations

from typing import Any, Optional


class LadderError(Exception):
    """Base class for every ladder-specific failure."""


class ConfigError(LadderError):
    """Raised when the ladder configuration cannot be loaded or validated."""


class SnapshotUnavailable(LadderError):
    """No usable quote exists for the instrument; the cycle is suppressed."""

    def __init__(self, symbol: str, reason: str = "no_quote") -> None:
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class LedgerError(LadderError):
    """Base class for failures reported by the order/position ledger."""


class LedgerCommandRejected(LedgerError):
    """The venue refused a create, cancel or modify command."""

    def __init__(self, reason: str, command: Optional[Any] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.command = command


class InvariantViolation(LadderError):
    """Observed ledger state breaks a ladder invariant.

    These are not raised by the controller; they are collected per cycle,
    logged, and corrected by the normal clear-and-re-arm path.
    """

    def __init__(self, kind: str, detail: str) -> None:
        super().__init__(f"{kind}: {detail}")
        self.kind = kind
        self.detail = detail


__all__ = [
    "ConfigError",
    "InvariantViolation",
    "LadderError",
    "LedgerCommandRejected",
    "LedgerError",
    "SnapshotUnavailable",
]
