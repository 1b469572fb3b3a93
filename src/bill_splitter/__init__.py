"""Bill Splitter - Split bills among friends and see who owes what."""

__version__ = "0.1.0"

from .builder import BillBuilder
from .calculator import calculate_amounts, calculate_bill_amounts
from .config import Settings, load_settings
from .db import Database
from .ledger import Ledger
from .models import (
    Bill,
    BillSplit,
    Discount,
    LedgerSnapshot,
    Participant,
    SettlementSummary,
)
from .service import LedgerService
from .summary import summarize

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Bill",
    "BillSplit",
    "Discount",
    "LedgerSnapshot",
    "Participant",
    "SettlementSummary",
    "BillBuilder",
    "Ledger",
    "calculate_amounts",
    "calculate_bill_amounts",
    "summarize",
    "LedgerService",
]
