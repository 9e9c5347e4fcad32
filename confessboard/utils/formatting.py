"""
confessboard Formatting Utilities

Helper functions for formatting board state as text.
"""

from datetime import datetime
from typing import Optional

from ..db.models import DerivedView


def format_timestamp(timestamp_ms: Optional[int]) -> str:
    """
    Format millisecond timestamp to human-readable string.

    Args:
        timestamp_ms: Milliseconds since epoch

    Returns:
        Formatted string like "2025-12-10 14:32", or the raw value when it
        is outside the range the platform can represent
    """
    if timestamp_ms is None:
        return "Never"

    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000)
    except (OverflowError, OSError, ValueError):
        return f"{timestamp_ms} ms"
    return dt.strftime("%Y-%m-%d %H:%M")


def short_hex(value: str) -> str:
    """Shorten a hex string to "abcdef...1234" form."""
    if len(value) <= 12:
        return value

    return f"{value[:6]}...{value[-4:]}"


def short_address(address: str) -> str:
    """Shorten a board address for display."""
    if len(address) <= 16:
        return address

    return f"{address[:8]}...{address[-8:]}"


def format_author(view: DerivedView) -> Optional[str]:
    """Author label for a view, marked "(you)" for our own confession."""
    if view.author_hex is None:
        return None

    label = short_hex(view.author_hex)
    return f"{label} (you)" if view.is_author else label


def format_view(view: DerivedView, address: Optional[str] = None) -> str:
    """
    Render a derived view as a multi-line text card.

    Args:
        view: Board state as seen by the local participant
        address: Board address for the header line

    Returns:
        Text ready to print
    """
    header = f"Board {short_address(address)}" if address else "Board"
    lines = [f"{header}  #{view.total_posts}"]

    if not view.occupied:
        lines.append("No confession yet. Be the first to share one.")
        return "\n".join(lines)

    lines.append(view.content or "")
    lines.append(f"by {format_author(view)}  at {format_timestamp(view.posted_at)}")
    lines.append(f"up {view.upvotes}  down {view.downvotes}")

    return "\n".join(lines)
