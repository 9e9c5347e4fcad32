"""
confessboard Ledger Repository

Database operations for boards, their latest snapshots and the log of
committed transitions.
"""

import secrets
import time
import logging
from typing import Optional

from .models import (
    BoardSlot, BoardCounters, Snapshot, BoardRecord, TransitionRecord,
    TransitionKind, VoteDirection,
)

logger = logging.getLogger(__name__)


ADDRESS_BYTES = 16


class LedgerRepository:
    """Repository for board ledger operations."""

    def __init__(self, db):
        self.db = db

    def create_board(self, snapshot: Optional[Snapshot] = None) -> BoardRecord:
        """
        Register a new board at genesis state.

        Returns:
            The board record with its freshly drawn address
        """
        snapshot = snapshot or Snapshot.genesis()
        address = secrets.token_hex(ADDRESS_BYTES)
        now_us = int(time.time() * 1_000_000)

        with self.db.transaction():
            cursor = self.db.execute("""
                INSERT INTO boards (address, created_at_us, sequence)
                VALUES (?, ?, 0)
            """, (address, now_us))
            self.save_snapshot(address, snapshot)

        logger.info(f"Board created: {address}")

        return BoardRecord(
            id=cursor.lastrowid,
            address=address,
            created_at_us=now_us,
            sequence=0
        )

    def get_board(self, address: str) -> Optional[BoardRecord]:
        """Get board by address."""
        row = self.db.fetchone(
            "SELECT id, address, created_at_us, sequence FROM boards WHERE address = ?",
            (address.lower(),)
        )
        return self._row_to_board(row) if row else None

    def list_boards(self) -> list[BoardRecord]:
        """Get all boards, oldest first."""
        rows = self.db.fetchall(
            "SELECT id, address, created_at_us, sequence FROM boards ORDER BY id"
        )
        return [self._row_to_board(row) for row in rows]

    def load_snapshot(self, address: str) -> Optional[Snapshot]:
        """Load the latest committed snapshot of a board."""
        row = self.db.fetchone(
            "SELECT * FROM boards WHERE address = ?",
            (address.lower(),)
        )
        return self._row_to_snapshot(row) if row else None

    def save_snapshot(self, address: str, snapshot: Snapshot) -> bool:
        """Overwrite the stored snapshot of a board."""
        slot = snapshot.slot
        cursor = self.db.execute("""
            UPDATE boards
            SET occupied = ?, content = ?, author_tag = ?, upvotes = ?,
                downvotes = ?, posted_at = ?, total_posts = ?
            WHERE address = ?
        """, (
            1 if slot.occupied else 0,
            slot.content,
            slot.author_tag,
            str(slot.upvotes),
            str(slot.downvotes),
            str(slot.posted_at) if slot.posted_at is not None else None,
            str(snapshot.total_posts),
            address.lower()
        ))
        return cursor.rowcount > 0

    def record_transition(
        self,
        board: BoardRecord,
        kind: TransitionKind,
        direction: Optional[VoteDirection] = None
    ) -> TransitionRecord:
        """Append a transition to the log and advance the board sequence."""
        now_us = int(time.time() * 1_000_000)
        sequence = board.sequence + 1

        cursor = self.db.execute("""
            INSERT INTO transitions (board_id, sequence, kind, direction, committed_at_us)
            VALUES (?, ?, ?, ?, ?)
        """, (
            board.id,
            sequence,
            kind.value,
            direction.value if direction else None,
            now_us
        ))
        self.db.execute(
            "UPDATE boards SET sequence = ? WHERE id = ?",
            (sequence, board.id)
        )
        board.sequence = sequence

        return TransitionRecord(
            id=cursor.lastrowid,
            board_id=board.id,
            sequence=sequence,
            kind=kind,
            direction=direction,
            committed_at_us=now_us
        )

    def get_transitions(self, address: str, limit: int = 100) -> list[TransitionRecord]:
        """Get the most recent transitions of a board, newest first."""
        rows = self.db.fetchall("""
            SELECT t.* FROM transitions t
            JOIN boards b ON b.id = t.board_id
            WHERE b.address = ?
            ORDER BY t.sequence DESC
            LIMIT ?
        """, (address.lower(), limit))
        return [self._row_to_transition(row) for row in rows]

    def _row_to_board(self, row) -> BoardRecord:
        """Convert database row to BoardRecord object."""
        return BoardRecord(
            id=row["id"],
            address=row["address"],
            created_at_us=row["created_at_us"],
            sequence=row["sequence"]
        )

    def _row_to_snapshot(self, row) -> Snapshot:
        """Convert database row to Snapshot object."""
        slot = BoardSlot(
            occupied=bool(row["occupied"]),
            content=row["content"],
            author_tag=bytes(row["author_tag"]) if row["author_tag"] is not None else None,
            upvotes=int(row["upvotes"]),
            downvotes=int(row["downvotes"]),
            posted_at=int(row["posted_at"]) if row["posted_at"] is not None else None
        )
        return Snapshot(
            slot=slot,
            counters=BoardCounters(total_posts=int(row["total_posts"]))
        )

    def _row_to_transition(self, row) -> TransitionRecord:
        """Convert database row to TransitionRecord object."""
        return TransitionRecord(
            id=row["id"],
            board_id=row["board_id"],
            sequence=row["sequence"],
            kind=TransitionKind(row["kind"]),
            direction=VoteDirection(row["direction"]) if row["direction"] else None,
            committed_at_us=row["committed_at_us"]
        )
