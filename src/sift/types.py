"""Shared value types for one analysis invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class TurnRole(StrEnum):
    REQUESTER = "requester"
    WORKER = "worker"
    TOOL = "tool"
    SYSTEM = "system"


class InvocationStatus(StrEnum):
    COMPLETED = "completed"
    TURN_BUDGET_EXCEEDED = "turn_budget_exceeded"
    TIMED_OUT = "timed_out"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class RemoteReply:
    """One raw reply yielded by a turn transport, before sequencing."""

    role: TurnRole
    text: str | None = None
    attachment_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Turn:
    """One unit of streamed output, numbered in arrival order from 1."""

    role: TurnRole
    sequence: int
    text: str | None = None
    attachment_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisRequest:
    """Dataset plus the question to ask about it."""

    data: bytes
    question: str
    file_name: str = "dataset.csv"
    inline: bool = False


@dataclass(frozen=True)
class InvocationOutcome:
    """Result of one invocation. Every path after acquisition ends here."""

    status: InvocationStatus
    assembled_text: str
    used_fallback: bool = False
    turns: tuple[Turn, ...] = ()
    model: str = ""
    error: str | None = None
    release_errors: tuple[str, ...] = ()
    attachments: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return self.status in (InvocationStatus.DEGRADED, InvocationStatus.FAILED)

    @property
    def complete(self) -> bool:
        """False when the caller should warn that output may be partial."""
        return self.status is InvocationStatus.COMPLETED
