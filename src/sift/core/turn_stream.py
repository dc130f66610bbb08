"""Deadline-bounded reading of streamed worker turns."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from sift.core.completion import CompletionDetector
from sift.core.deadline import Deadline
from sift.types import RemoteReply, Turn


class StopReason(StrEnum):
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    BUDGET = "budget"
    TIMEOUT = "timeout"
    ERROR = "error"


class DeadlineReached(Exception):
    """Raised by the reader when the deadline fires while waiting for a turn."""


@dataclass(frozen=True)
class StreamRead:
    """Everything one read observed, and why it stopped."""

    turns: tuple[Turn, ...]
    stop: StopReason
    error: Exception | None = None


class TurnStreamReader:
    """Pull-based, single-use view over a transport's replies."""

    def __init__(self, replies: AsyncIterable[RemoteReply]) -> None:
        self._replies = replies
        self._iterator: AsyncIterator[RemoteReply] | None = None
        self._count = 0
        self._exhausted = False
        self._closed = False

    @property
    def count(self) -> int:
        return self._count

    async def next_turn(self, deadline: Deadline) -> Turn | None:
        """Return the next turn, or None once the remote side has closed."""
        if self._closed:
            raise RuntimeError("turn stream is closed")
        if self._exhausted:
            return None
        if self._iterator is None:
            self._iterator = aiter(self._replies)

        timeout = asyncio.timeout_at(deadline.when)
        try:
            async with timeout:
                reply = await anext(self._iterator)
        except StopAsyncIteration:
            self._exhausted = True
            return None
        except TimeoutError:
            if timeout.expired():
                raise DeadlineReached from None
            raise

        self._count += 1
        return Turn(
            role=reply.role,
            sequence=self._count,
            text=reply.text,
            attachment_ids=tuple(reply.attachment_ids),
        )

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._iterator, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception:
            logger.opt(exception=True).debug("turns.stream.close_failed")


async def read_turns(
    reader: TurnStreamReader,
    *,
    deadline: Deadline,
    max_turns: int,
    detector: CompletionDetector,
) -> StreamRead:
    """Read turns until timeout, budget, completion marker or stream end.

    Checks run in that order on every iteration. The budget is exceeded only
    when a turn beyond ``max_turns`` arrives; that turn is dropped. A stream
    that closes right after ``max_turns`` turns ends normally.
    """
    turns: list[Turn] = []
    while True:
        if deadline.expired():
            logger.warning("turns.timeout turns={}", len(turns))
            return StreamRead(tuple(turns), StopReason.TIMEOUT)

        try:
            turn = await reader.next_turn(deadline)
        except DeadlineReached:
            logger.warning("turns.timeout turns={}", len(turns))
            return StreamRead(tuple(turns), StopReason.TIMEOUT)
        except Exception as exc:
            logger.opt(exception=exc).error("turns.stream.error turns={} error={!s}", len(turns), exc)
            return StreamRead(tuple(turns), StopReason.ERROR, exc)

        if turn is None:
            logger.info("turns.exhausted turns={}", len(turns))
            return StreamRead(tuple(turns), StopReason.EXHAUSTED)

        if len(turns) >= max_turns:
            logger.warning("turns.budget_exceeded max_turns={} output may be truncated", max_turns)
            logger.debug("turns.dropped sequence={}", turn.sequence)
            return StreamRead(tuple(turns), StopReason.BUDGET)

        turns.append(turn)
        logger.debug("turns.received sequence={} role={}", turn.sequence, turn.role)
        if detector.is_complete(turn):
            logger.info("turns.completion_detected sequence={}", turn.sequence)
            return StreamRead(tuple(turns), StopReason.COMPLETED)
