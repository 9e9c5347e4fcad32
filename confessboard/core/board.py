"""
confessboard Board State Machine

Single-slot board transitions: post a confession into an empty slot,
vote on the occupied slot.

The transition functions are pure. They either return a complete new
Snapshot or raise before anything is produced, so a failed transition
can never leave a half-applied state behind.
"""

import logging
from dataclasses import replace
from typing import Optional

from ..db.models import (
    U64_MAX, BoardSlot, BoardCounters, Snapshot, VoteDirection,
    Intention, PostIntention, VoteIntention,
)
from .identity import derive_author_tag, validate_credential

logger = logging.getLogger(__name__)


STATE_EMPTY = "empty"
STATE_OCCUPIED = "occupied"


class BoardError(Exception):
    """Base class for board precondition violations."""


class AlreadyOccupiedError(BoardError):
    """Raised when posting to a board that already holds a confession."""

    def __init__(self, message: str = "Board already has a confession"):
        super().__init__(message)


class NoActiveConfessionError(BoardError):
    """Raised when voting on a board with no confession."""

    def __init__(self, message: str = "No confession to vote on"):
        super().__init__(message)


def _check_u64(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if value < 0 or value > U64_MAX:
        raise ValueError(f"{name} must fit in an unsigned 64-bit integer")
    return value


def apply_post(
    snapshot: Snapshot,
    content: str,
    timestamp: int,
    credential: bytes
) -> Snapshot:
    """
    Post a confession into the empty slot.

    The author tag is derived from the credential and the ordinal of the
    new post, which is the value of total_posts before the increment.

    Args:
        snapshot: Latest committed board state
        content: Confession text
        timestamp: Milliseconds since epoch, supplied by the caller
        credential: Poster's 32-byte private credential

    Returns:
        New snapshot with the slot occupied

    Raises:
        AlreadyOccupiedError: If the slot already holds a confession
        TypeError, ValueError, OverflowError: On malformed input
    """
    if not isinstance(content, str):
        raise TypeError("Content must be a string")
    _check_u64(timestamp, "Timestamp")
    credential = validate_credential(credential)

    if snapshot.occupied:
        raise AlreadyOccupiedError()

    slot_id = snapshot.total_posts
    if slot_id >= U64_MAX:
        raise OverflowError("total_posts would exceed an unsigned 64-bit integer")

    slot = BoardSlot(
        occupied=True,
        content=content,
        author_tag=derive_author_tag(credential, slot_id),
        upvotes=0,
        downvotes=0,
        posted_at=timestamp,
    )
    counters = BoardCounters(total_posts=slot_id + 1)

    return Snapshot(slot=slot, counters=counters)


def apply_vote(snapshot: Snapshot, direction: VoteDirection) -> Snapshot:
    """
    Vote on the current confession.

    Raises:
        NoActiveConfessionError: If the slot is empty
        TypeError: If direction is not a VoteDirection
        OverflowError: If the tally would exceed an unsigned 64-bit integer
    """
    if not isinstance(direction, VoteDirection):
        raise TypeError("Direction must be a VoteDirection")

    if not snapshot.occupied:
        raise NoActiveConfessionError()

    slot = snapshot.slot
    if direction is VoteDirection.UP:
        if slot.upvotes >= U64_MAX:
            raise OverflowError("upvotes would exceed an unsigned 64-bit integer")
        slot = replace(slot, upvotes=slot.upvotes + 1)
    else:
        if slot.downvotes >= U64_MAX:
            raise OverflowError("downvotes would exceed an unsigned 64-bit integer")
        slot = replace(slot, downvotes=slot.downvotes + 1)

    return replace(snapshot, slot=slot)


def apply_intention(snapshot: Snapshot, intention: Intention) -> Snapshot:
    """Apply an intention to a snapshot with the board transition rules."""
    if isinstance(intention, PostIntention):
        return apply_post(
            snapshot, intention.content, intention.timestamp, intention.credential
        )
    if isinstance(intention, VoteIntention):
        return apply_vote(snapshot, intention.direction)
    raise TypeError(f"Unknown intention: {type(intention).__name__}")


class BoardStateMachine:
    """
    Holder for the latest snapshot of one board.

    Applies one transition at a time; callers that share an instance
    across threads must serialize access themselves.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot if snapshot is not None else Snapshot.genesis()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def state(self) -> str:
        return STATE_OCCUPIED if self._snapshot.occupied else STATE_EMPTY

    def post(self, content: str, timestamp: int, credential: bytes) -> Snapshot:
        """Post a confession. See apply_post."""
        self._snapshot = apply_post(self._snapshot, content, timestamp, credential)
        logger.debug(
            f"Confession posted: slot={self._snapshot.total_posts - 1}, "
            f"length={len(content)}"
        )
        return self._snapshot

    def vote(self, direction: VoteDirection) -> Snapshot:
        """Vote on the current confession. See apply_vote."""
        self._snapshot = apply_vote(self._snapshot, direction)
        logger.debug(f"Vote recorded: {direction.value}")
        return self._snapshot

    def apply(self, intention: Intention) -> Snapshot:
        """Apply a post or vote intention. See apply_intention."""
        self._snapshot = apply_intention(self._snapshot, intention)
        logger.debug(
            f"Applied {type(intention).__name__}: total_posts={self._snapshot.total_posts}"
        )
        return self._snapshot
