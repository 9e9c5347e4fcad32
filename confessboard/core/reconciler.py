"""
confessboard State Reconciler

Combines a public snapshot with a local credential into a DerivedView.
Holds no state; every call recomputes from its two inputs.
"""

import hmac
from typing import Optional

from ..db.models import Snapshot, DerivedView
from .identity import derive_author_tag, validate_credential


def current_slot_id(snapshot: Snapshot) -> Optional[int]:
    """Ordinal of the most recent post, or None before the first one."""
    if snapshot.total_posts == 0:
        return None
    return snapshot.total_posts - 1


def reconcile(snapshot: Snapshot, credential: bytes) -> DerivedView:
    """
    Project a snapshot for the holder of a credential.

    is_author is True only when the board is occupied and the tag derived
    from the credential for the current slot matches the stored tag.
    """
    credential = validate_credential(credential)
    slot_id = current_slot_id(snapshot)

    is_author = False
    if snapshot.occupied and slot_id is not None and snapshot.author_tag is not None:
        expected = derive_author_tag(credential, slot_id)
        is_author = hmac.compare_digest(expected, snapshot.author_tag)

    return DerivedView(
        total_posts=snapshot.total_posts,
        current_slot_id=slot_id,
        occupied=snapshot.occupied,
        content=snapshot.content,
        posted_at=snapshot.posted_at,
        upvotes=snapshot.upvotes,
        downvotes=snapshot.downvotes,
        author_tag=snapshot.author_tag,
        is_author=is_author,
    )
