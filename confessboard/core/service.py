"""
confessboard Confession Service

High-level access to one board: post, vote, and follow the board state
as seen by the local participant.

State updates are delivered two ways:
- push: listeners registered with subscribe() receive every new view
  through a pypubsub topic owned by the service
- poll: watch() is an async generator yielding a view whenever the
  committed snapshot changes
"""

import asyncio
import secrets
import time
import logging
from typing import Optional, AsyncIterator

from pubsub import pub

from ..db.ledger import LedgerRepository
from ..db.models import (
    Snapshot, DerivedView, PostIntention, VoteIntention, VoteDirection,
)
from .board import BoardError
from .driver import TransitionDriver, LedgerTransitionDriver
from .reconciler import reconcile

logger = logging.getLogger(__name__)


DEFAULT_MAX_CONTENT_LENGTH = 2000
DEFAULT_POLL_INTERVAL = 2.0

TOPIC_PREFIX = "confessboard_"


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


class ConfessionService:
    """
    Confession board service for one participant on one board.

    Features:
    - Anonymous posting with a locally held credential
    - Up/down voting
    - Authorship recognition ("is this mine?") without revealing identity
    - Push (pypubsub) and poll (async) state delivery
    """

    def __init__(
        self,
        driver: TransitionDriver,
        store,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ):
        """
        Args:
            driver: Commit mechanism bound to the board
            store: Credential store with get_or_create_credential()
            max_content_length: Longest accepted confession, 0 for no limit
            poll_interval: Default seconds between polls in watch()
        """
        self.driver = driver
        self.store = store
        self.max_content_length = max_content_length
        self.poll_interval = poll_interval
        # Views carry per-participant authorship, so each service gets its own topic
        self.topic = f"{TOPIC_PREFIX}{driver.address}_{secrets.token_hex(4)}"

        self._credential = store.get_or_create_credential()
        self._last_snapshot: Optional[Snapshot] = None

    @classmethod
    def deploy(cls, db, store, **kwargs) -> "ConfessionService":
        """Create a new board in the local ledger and bind to it."""
        board = LedgerRepository(db).create_board()
        logger.info(f"Deployed confession board {board.address}")
        return cls(LedgerTransitionDriver(db, board.address), store, **kwargs)

    @classmethod
    def join(cls, db, store, address: str, **kwargs) -> "ConfessionService":
        """
        Bind to an existing board.

        Raises:
            LookupError: If no board exists at address
        """
        driver = LedgerTransitionDriver(db, address)
        logger.info(f"Joined confession board {driver.address}")
        return cls(driver, store, **kwargs)

    @property
    def address(self) -> str:
        return self.driver.address

    def state(self) -> DerivedView:
        """Reconcile the latest committed snapshot with our credential."""
        return reconcile(self.driver.latest(), self._credential)

    def post_confession(
        self,
        content: str,
        timestamp: Optional[int] = None
    ) -> tuple[Optional[DerivedView], str]:
        """
        Post a confession to the board.

        Args:
            content: Confession text
            timestamp: Milliseconds since epoch (default: now)

        Returns:
            (DerivedView, "") on success
            (None, error_message) on failure
        """
        if not content or not content.strip():
            return None, "Confession cannot be empty."

        if self.max_content_length and len(content) > self.max_content_length:
            return None, f"Confession too long (max {self.max_content_length} chars)."

        if timestamp is None:
            timestamp = now_ms()

        logger.info(f"Posting confession: length={len(content)}, timestamp={timestamp}")

        intention = PostIntention(
            content=content, timestamp=timestamp, credential=self._credential
        )
        return self._submit(intention)

    def vote(self, direction: VoteDirection) -> tuple[Optional[DerivedView], str]:
        """
        Vote on the current confession.

        Returns:
            (DerivedView, "") on success
            (None, error_message) on failure
        """
        logger.info(f"Voting: {direction.value}")
        return self._submit(VoteIntention(direction=direction))

    def upvote(self) -> tuple[Optional[DerivedView], str]:
        return self.vote(VoteDirection.UP)

    def downvote(self) -> tuple[Optional[DerivedView], str]:
        return self.vote(VoteDirection.DOWN)

    def _submit(self, intention) -> tuple[Optional[DerivedView], str]:
        try:
            snapshot = self.driver.submit(intention)
        except BoardError as e:
            logger.info(f"Transition rejected: {e}")
            return None, f"{e}."

        return self._observe(snapshot), ""

    # === State delivery ===

    def subscribe(self, listener):
        """
        Register a listener called as listener(view=DerivedView).

        pypubsub keeps weak references, so the caller must hold on to the
        listener for as long as it should receive updates.
        """
        pub.subscribe(listener, self.topic)

    def unsubscribe(self, listener):
        """Stop delivering updates to a listener."""
        topic = pub.getDefaultTopicMgr().getTopic(self.topic, okIfNone=True)
        if topic is not None and topic.hasListener(listener):
            pub.unsubscribe(listener, self.topic)

    def refresh(self) -> DerivedView:
        """
        Read the latest snapshot and publish it if it changed.

        Picks up transitions committed by other processes.
        """
        return self._observe(self.driver.latest())

    async def watch(self, poll_interval: Optional[float] = None) -> AsyncIterator[DerivedView]:
        """
        Yield the current view, then a new view on every snapshot change.

        The driver is read in a worker thread. Runs until the consumer
        stops iterating.
        """
        interval = poll_interval if poll_interval is not None else self.poll_interval
        last: Optional[Snapshot] = None

        while True:
            snapshot = await asyncio.to_thread(self.driver.latest)
            if snapshot != last:
                last = snapshot
                yield self._observe(snapshot)
            await asyncio.sleep(interval)

    def _observe(self, snapshot: Snapshot) -> DerivedView:
        """Reconcile a snapshot and publish it to listeners if it is new."""
        view = reconcile(snapshot, self._credential)

        if snapshot != self._last_snapshot:
            self._last_snapshot = snapshot
            logger.debug(
                f"Board state changed: total_posts={view.total_posts}, "
                f"occupied={view.occupied}, up={view.upvotes}, down={view.downvotes}"
            )
            self._publish(view)

        return view

    def _publish(self, view: DerivedView):
        topic = pub.getDefaultTopicMgr().getTopic(self.topic, okIfNone=True)
        if topic is None or not topic.hasListeners():
            return
        pub.sendMessage(self.topic, view=view)
