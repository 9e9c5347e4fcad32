"""
confessboard Transition Drivers

Turn an intention (post, vote) into a committed board transition and
return the resulting snapshot. Each driver serializes the transitions it
commits, so the state machine itself needs no locking.
"""

import logging
import threading
from typing import Optional

from ..db.ledger import LedgerRepository
from ..db.models import (
    Snapshot, Intention, PostIntention, VoteIntention, TransitionKind,
)
from .board import BoardStateMachine, apply_intention

logger = logging.getLogger(__name__)


class TransitionDriver:
    """
    Commit mechanism for one board.

    submit() returns the committed snapshot or raises. Board precondition
    errors (AlreadyOccupiedError, NoActiveConfessionError) and malformed
    input leave the committed state untouched; driver-level errors are
    passed through unchanged.
    """

    @property
    def address(self) -> str:
        raise NotImplementedError

    def submit(self, intention: Intention) -> Snapshot:
        raise NotImplementedError

    def latest(self) -> Snapshot:
        raise NotImplementedError


class MemoryTransitionDriver(TransitionDriver):
    """In-process driver around a BoardStateMachine, for local simulation."""

    def __init__(self, snapshot: Optional[Snapshot] = None, address: str = "memory"):
        self._machine = BoardStateMachine(snapshot)
        self._address = address
        self._lock = threading.Lock()
        self.sequence = 0

    @property
    def address(self) -> str:
        return self._address

    def submit(self, intention: Intention) -> Snapshot:
        with self._lock:
            snapshot = self._machine.apply(intention)
            self.sequence += 1
            return snapshot

    def latest(self) -> Snapshot:
        with self._lock:
            return self._machine.snapshot


class LedgerTransitionDriver(TransitionDriver):
    """
    Driver committing transitions to the local SQLite ledger.

    Each submit loads the latest snapshot, applies the transition and
    writes the result inside one immediate transaction. A rejected
    transition rolls back, so the stored board is never half-updated.
    """

    def __init__(self, db, address: str):
        """
        Args:
            db: Initialized Database
            address: Address of an existing board

        Raises:
            LookupError: If no board exists at address
        """
        self.db = db
        self.repo = LedgerRepository(db)

        board = self.repo.get_board(address)
        if board is None:
            raise LookupError(f"No board at address {address}")
        self._address = board.address

    @property
    def address(self) -> str:
        return self._address

    def submit(self, intention: Intention) -> Snapshot:
        kind = TransitionKind.POST if isinstance(intention, PostIntention) else TransitionKind.VOTE

        with self.db.transaction():
            board = self.repo.get_board(self._address)
            if board is None:
                raise LookupError(f"No board at address {self._address}")

            current = self.repo.load_snapshot(self._address)
            snapshot = apply_intention(current, intention)

            self.repo.save_snapshot(self._address, snapshot)
            record = self.repo.record_transition(
                board,
                kind,
                intention.direction if isinstance(intention, VoteIntention) else None
            )

        logger.info(
            f"Transition committed: board={self._address[:8]} "
            f"kind={kind.value} sequence={record.sequence}"
        )
        return snapshot

    def latest(self) -> Snapshot:
        snapshot = self.repo.load_snapshot(self._address)
        if snapshot is None:
            raise LookupError(f"No board at address {self._address}")
        return snapshot
