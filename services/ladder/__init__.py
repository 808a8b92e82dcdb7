"""Breakout ladder: domain types, pricing and trailing policy."""

from .errors import (  # noqa: F401
    ConfigError,
    InvariantViolation,
    LadderError,
    LedgerCommandRejected,
    LedgerError,
    SnapshotUnavailable,
)
from .pricing import LadderPrices, compute_ladder_prices, round_price  # noqa: F401
from .trailing import next_stop  # noqa: F401
from .types import (  # noqa: F401
    Instrument,
    LadderState,
    LedgerView,
    MarketSnapshot,
    PendingOrder,
    Position,
)
