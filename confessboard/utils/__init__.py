"""confessboard Utilities Module."""

from .formatting import format_timestamp, format_view

__all__ = ["format_timestamp", "format_view"]
