"""
Tests for confessboard State Reconciler
"""

import pytest

from confessboard.core.board import BoardStateMachine, apply_post
from confessboard.core.identity import generate_credential
from confessboard.core.reconciler import reconcile, current_slot_id
from confessboard.db.models import Snapshot, BoardCounters, VoteDirection


class TestCurrentSlotId:
    """Tests for slot ordinal computation."""

    def test_none_before_first_post(self):
        assert current_slot_id(Snapshot.genesis()) is None

    def test_last_ordinal(self):
        assert current_slot_id(Snapshot(counters=BoardCounters(total_posts=3))) == 2


class TestReconcile:
    """Tests for deriving per-participant views."""

    def setup_method(self):
        self.alice = generate_credential()
        self.bob = generate_credential()
        self.board = BoardStateMachine()

    def test_empty_board(self):
        """Test an empty board has no author and no slot."""
        view = reconcile(self.board.snapshot, self.alice)

        assert view.occupied is False
        assert view.is_author is False
        assert view.current_slot_id is None
        assert view.total_posts == 0
        assert view.content is None
        assert view.author_hex is None

    def test_author_recognised(self):
        """Test the poster sees is_author, others do not (scenario D)."""
        self.board.post("it was me", 1000, self.alice)

        alice_view = reconcile(self.board.snapshot, self.alice)
        bob_view = reconcile(self.board.snapshot, self.bob)

        assert alice_view.current_slot_id == 0
        assert alice_view.is_author is True
        assert bob_view.is_author is False

    def test_passthrough_fields(self):
        """Test public fields are copied from the snapshot."""
        self.board.post("hello", 1234, self.alice)
        self.board.vote(VoteDirection.UP)
        self.board.vote(VoteDirection.DOWN)
        snapshot = self.board.snapshot

        view = reconcile(snapshot, self.bob)

        assert view.content == "hello"
        assert view.posted_at == 1234
        assert view.upvotes == 1
        assert view.downvotes == 1
        assert view.total_posts == 1
        assert view.author_tag == snapshot.author_tag
        assert view.author_hex == snapshot.author_tag.hex()

    def test_authorship_survives_votes(self):
        self.board.post("hello", 1, self.alice)
        self.board.vote(VoteDirection.DOWN)

        assert reconcile(self.board.snapshot, self.alice).is_author is True

    @pytest.mark.parametrize("slot_id", [0, 1, 2, 17])
    def test_author_across_slots(self, slot_id):
        """Test recognition works for any slot ordinal."""
        start = Snapshot(counters=BoardCounters(total_posts=slot_id))
        snapshot = apply_post(start, "post", slot_id, self.alice)

        assert reconcile(snapshot, self.alice).current_slot_id == slot_id
        assert reconcile(snapshot, self.alice).is_author is True
        assert reconcile(snapshot, self.bob).is_author is False

    def test_successive_posts_by_different_authors(self):
        """Test each slot is claimed only by its own author."""
        first = apply_post(Snapshot.genesis(), "alice", 1, self.alice)
        # Start the next slot from an empty board carrying the same counters
        second = apply_post(Snapshot(counters=first.counters), "bob", 2, self.bob)

        assert reconcile(first, self.alice).is_author is True
        assert reconcile(second, self.alice).is_author is False
        assert reconcile(second, self.bob).is_author is True

    def test_tag_from_other_slot_not_claimed(self):
        """Test a tag is only valid for the slot it was derived for."""
        posted = apply_post(Snapshot.genesis(), "hello", 1, self.alice)
        # Same tag, but the board now claims a different slot ordinal
        moved = Snapshot(slot=posted.slot, counters=BoardCounters(total_posts=2))

        assert reconcile(moved, self.alice).is_author is False

    def test_tags_unlinkable_across_slots(self):
        """Test the same author gets different tags in different slots."""
        first = apply_post(Snapshot.genesis(), "a", 1, self.alice)
        second = apply_post(Snapshot(counters=first.counters), "b", 2, self.alice)

        assert first.author_tag != second.author_tag

    def test_stateless(self):
        """Test repeated calls give equal views."""
        self.board.post("hello", 1, self.alice)

        assert reconcile(self.board.snapshot, self.alice) == reconcile(self.board.snapshot, self.alice)

    def test_rejects_bad_credential(self):
        with pytest.raises(ValueError):
            reconcile(self.board.snapshot, b"\x00")
