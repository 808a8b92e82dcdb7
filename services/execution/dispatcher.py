"""Sequential sink that applies ladder commands to a ledger."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.interfaces import Ledger
from services.execution.audit import CommandJournal
from services.execution.types import (
    CancelOrder,
    CommandOutcome,
    CreateOrder,
    DispatchReport,
    LedgerCommand,
    ModifyStop,
)
from services.ladder.errors import LedgerError
from services.runtime.metrics import Metrics


class CommandDispatcher:
    """Apply commands in emitted order, absorbing venue rejections.

    A rejected command is logged, journaled and counted but never retried
    here; the next cycle re-derives what is still missing. When a cancel is
    rejected, the creates that follow it in the same batch are skipped so a
    leg that failed to clear never gets a third order stacked beside it.
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        journal: Optional[CommandJournal] = None,
        metrics: Optional[Metrics] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.ledger = ledger
        self.journal = journal
        self.metrics = metrics or Metrics()
        self.log = logger or logging.getLogger("ladder.dispatch")

    def execute(self, commands: Iterable[LedgerCommand]) -> DispatchReport:
        report = DispatchReport()
        cancel_failed = False
        for command in commands:
            if cancel_failed and isinstance(command, CreateOrder):
                outcome = CommandOutcome(command, "skipped", reason="cancel_rejected_this_cycle")
                self.log.info("dispatch.skipped", extra={"command": command.to_dict()})
            else:
                outcome = self._apply(command)
                if outcome.status == "rejected" and isinstance(command, CancelOrder):
                    cancel_failed = True
            report.outcomes.append(outcome)
            self._journal(outcome)
        return report

    def _apply(self, command: LedgerCommand) -> CommandOutcome:
        try:
            order_id = self._send(command)
        except LedgerError as exc:
            reason = getattr(exc, "reason", None) or str(exc)
            self.metrics.inc("rejections", kind=command.kind)
            self.log.warning(
                "dispatch.rejected",
                extra={"command": command.to_dict(), "reason": reason, "error": type(exc).__name__},
            )
            return CommandOutcome(command, "rejected", reason=reason)
        self.metrics.inc("commands", kind=command.kind)
        self.log.info("dispatch.ok", extra={"command": command.to_dict(), "order_id": order_id})
        return CommandOutcome(command, "ok", order_id=order_id)

    def _send(self, command: LedgerCommand) -> Optional[str]:
        if isinstance(command, CancelOrder):
            self.ledger.cancel_pending_order(command.order_id)
            return command.order_id
        if isinstance(command, CreateOrder):
            return self.ledger.create_pending_order(
                command.symbol,
                command.side,
                command.trigger_price,
                command.take_profit,
                command.lots,
                command.owner_tag,
                command.label,
            )
        if isinstance(command, ModifyStop):
            self.ledger.modify_stop_loss(command.position_id, command.new_stop)
            return None
        raise TypeError(f"unsupported ledger command: {command!r}")

    def _journal(self, outcome: CommandOutcome) -> None:
        if self.journal is not None:
            self.journal.record(outcome)


__all__ = ["CommandDispatcher"]
