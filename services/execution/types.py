"""Ledger command and dispatch result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from services.ladder.types import OrderSide

CommandKind = Literal["cancel", "create", "modify_stop"]


@dataclass(frozen=True, slots=True)
class CancelOrder:
    """Remove a resting order; absent orders are a successful no-op."""

    order_id: str
    kind: CommandKind = field(default="cancel", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "order_id": self.order_id}


@dataclass(frozen=True, slots=True)
class CreateOrder:
    """Place one ladder leg. No stop-loss is attached at creation."""

    symbol: str
    side: OrderSide
    trigger_price: float
    take_profit: Optional[float]
    lots: float
    owner_tag: str
    label: str = ""
    kind: CommandKind = field(default="create", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "symbol": self.symbol,
            "side": self.side,
            "trigger_price": self.trigger_price,
            "take_profit": self.take_profit,
            "lots": self.lots,
            "owner_tag": self.owner_tag,
            "label": self.label,
        }


@dataclass(frozen=True, slots=True)
class ModifyStop:
    """Move the protective stop of an open position."""

    position_id: str
    new_stop: float
    kind: CommandKind = field(default="modify_stop", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "position_id": self.position_id, "new_stop": self.new_stop}


LedgerCommand = Union[CancelOrder, CreateOrder, ModifyStop]


@dataclass(slots=True)
class CommandOutcome:
    """Result of executing one command against the ledger."""

    command: LedgerCommand
    status: Literal["ok", "rejected", "skipped"]
    reason: str = ""
    order_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass(slots=True)
class DispatchReport:
    """Ordered outcomes for one cycle's commands."""

    outcomes: List[CommandOutcome] = field(default_factory=list)

    @property
    def rejected(self) -> List[CommandOutcome]:
        return [o for o in self.outcomes if o.status == "rejected"]

    @property
    def skipped(self) -> List[CommandOutcome]:
        return [o for o in self.outcomes if o.status == "skipped"]

    @property
    def executed(self) -> List[CommandOutcome]:
        return [o for o in self.outcomes if o.ok]

    def __len__(self) -> int:
        return len(self.outcomes)


__all__ = [
    "CancelOrder",
    "CommandKind",
    "CommandOutcome",
    "CreateOrder",
    "DispatchReport",
    "LedgerCommand",
    "ModifyStop",
]
