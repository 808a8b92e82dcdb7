"""Command dispatch, journaling and the paper venue."""

from .audit import CommandJournal
from .dispatcher import CommandDispatcher
from .paper_ledger import ClosedTrade, PaperLedger
from .types import CancelOrder, CommandOutcome, CreateOrder, DispatchReport, LedgerCommand, ModifyStop

__all__ = [
    "CancelOrder",
    "ClosedTrade",
    "CommandDispatcher",
    "CommandJournal",
    "CommandOutcome",
    "CreateOrder",
    "DispatchReport",
    "LedgerCommand",
    "ModifyStop",
    "PaperLedger",
]
