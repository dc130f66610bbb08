"""Completion marker detection."""

from __future__ import annotations

from collections.abc import Iterable

from sift.types import Turn

DEFAULT_COMPLETION_MARKERS = ("analysis complete", "final result")


class CompletionDetector:
    """Decide whether a turn signals that the worker is done.

    Plain case-insensitive substring matching; phrases like "no final result
    yet" match too.
    """

    def __init__(self, markers: Iterable[str] = DEFAULT_COMPLETION_MARKERS) -> None:
        self._markers = tuple(marker.casefold() for marker in markers if marker.strip())

    @property
    def markers(self) -> tuple[str, ...]:
        return self._markers

    def is_complete(self, turn: Turn) -> bool:
        if not turn.text:
            return False
        text = turn.text.casefold()
        return any(marker in text for marker in self._markers)
