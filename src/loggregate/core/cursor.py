"""Cursor over the paginated log feed."""

from __future__ import annotations

from loggregate.core.models import END_OF_STREAM, FeedResponse, progress_fraction
from loggregate.exceptions import InvalidCursorAdvance


class StreamCursor:
    """Next position to request plus the upper bound captured at scan start.

    The feed is assumed monotone but is not trusted: a position that does
    not move forward raises `InvalidCursorAdvance`.
    """

    __slots__ = ("_position", "_upper_bound")

    def __init__(self, position: int, upper_bound: int) -> None:
        if position < 0:
            raise ValueError("position must be >= 0")
        self._position = position
        self._upper_bound = upper_bound

    @property
    def position(self) -> int:
        return self._position

    @property
    def upper_bound(self) -> int:
        return self._upper_bound

    def check_advance(self, next_position: int) -> None:
        """Raise `InvalidCursorAdvance` unless `next_position` moves strictly forward."""
        if next_position <= self._position:
            reason = "feed made no progress" if next_position == self._position else "feed reported a position behind the cursor"
            raise InvalidCursorAdvance(
                reason,
                {"position": self._position, "next_position": next_position},
                last_position=self._position,
            )

    def advance(self, next_position: int) -> None:
        self.check_advance(next_position)
        self._position = next_position

    def progress(self) -> float:
        """Fraction of the captured range covered, clamped to 1.0."""
        return progress_fraction(self._position, self._upper_bound)

    @staticmethod
    def is_exhausted(response: FeedResponse) -> bool:
        """The feed signals exhaustion with a sentinel, never with an empty batch."""
        return response is END_OF_STREAM

    def __repr__(self) -> str:
        return f"StreamCursor(position={self._position}, upper_bound={self._upper_bound})"
