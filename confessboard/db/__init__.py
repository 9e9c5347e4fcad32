"""confessboard Database Module - SQLite local ledger."""

from .connection import Database
from .ledger import LedgerRepository
from .models import Snapshot, BoardSlot, BoardCounters, DerivedView, VoteDirection

__all__ = [
    "Database", "LedgerRepository", "Snapshot", "BoardSlot", "BoardCounters",
    "DerivedView", "VoteDirection",
]
