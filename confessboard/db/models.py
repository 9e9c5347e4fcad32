"""
confessboard Data Models

Dataclasses representing board state, intentions and ledger records.
"""

from dataclasses import dataclass, field
from typing import Optional, Union
from enum import Enum


U64_MAX = 2**64 - 1


class VoteDirection(Enum):
    """Vote direction enumeration."""
    UP = "up"
    DOWN = "down"


class TransitionKind(Enum):
    """Kind of committed board transition."""
    POST = "post"
    VOTE = "vote"


@dataclass(frozen=True)
class BoardSlot:
    """The single confession position of a board."""
    occupied: bool = False
    content: Optional[str] = None
    author_tag: Optional[bytes] = None  # 32 bytes when occupied
    upvotes: int = 0
    downvotes: int = 0
    posted_at: Optional[int] = None  # ms since epoch, caller-supplied


@dataclass(frozen=True)
class BoardCounters:
    """Board-wide monotonic counters."""
    total_posts: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Complete public state of a board at a point in time."""
    slot: BoardSlot = field(default_factory=BoardSlot)
    counters: BoardCounters = field(default_factory=BoardCounters)

    @classmethod
    def genesis(cls) -> "Snapshot":
        """Empty board as created at deployment."""
        return cls(slot=BoardSlot(), counters=BoardCounters())

    @property
    def occupied(self) -> bool:
        return self.slot.occupied

    @property
    def content(self) -> Optional[str]:
        return self.slot.content

    @property
    def author_tag(self) -> Optional[bytes]:
        return self.slot.author_tag

    @property
    def upvotes(self) -> int:
        return self.slot.upvotes

    @property
    def downvotes(self) -> int:
        return self.slot.downvotes

    @property
    def posted_at(self) -> Optional[int]:
        return self.slot.posted_at

    @property
    def total_posts(self) -> int:
        return self.counters.total_posts


@dataclass(frozen=True)
class DerivedView:
    """
    Per-participant projection of a snapshot.

    Combines the public board state with authorship knowledge that only
    the holder of the matching credential can compute.
    """
    total_posts: int
    current_slot_id: Optional[int]
    occupied: bool
    content: Optional[str]
    posted_at: Optional[int]
    upvotes: int
    downvotes: int
    author_tag: Optional[bytes]
    is_author: bool

    @property
    def author_hex(self) -> Optional[str]:
        """Anonymous author identifier as hex, if a confession is posted."""
        return self.author_tag.hex() if self.author_tag is not None else None


@dataclass(frozen=True)
class PostIntention:
    """Request to post a confession."""
    content: str
    timestamp: int
    credential: bytes

    def __repr__(self) -> str:
        # Keep the credential out of logs and tracebacks
        return f"PostIntention(content_length={len(self.content)}, timestamp={self.timestamp})"


@dataclass(frozen=True)
class VoteIntention:
    """Request to vote on the current confession."""
    direction: VoteDirection


Intention = Union[PostIntention, VoteIntention]


@dataclass
class BoardRecord:
    """A board registered in the local ledger."""
    id: Optional[int] = None
    address: str = ""
    created_at_us: int = 0
    sequence: int = 0


@dataclass
class TransitionRecord:
    """One committed transition in the local ledger log."""
    id: Optional[int] = None
    board_id: int = 0
    sequence: int = 0
    kind: TransitionKind = TransitionKind.POST
    direction: Optional[VoteDirection] = None
    committed_at_us: int = 0
