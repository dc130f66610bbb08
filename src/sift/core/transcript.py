"""Human-readable transcript for one invocation."""

from __future__ import annotations

from collections.abc import Iterable

from sift.types import Turn, TurnRole

HEADER = "CSV Analysis Results:"
RULE = "=" * 50

ROLE_LABELS = {
    TurnRole.WORKER: "Agent",
    TurnRole.TOOL: "Tool",
    TurnRole.REQUESTER: "User",
    TurnRole.SYSTEM: "System",
}


class Transcript:
    """Append-only text builder, owned by one call."""

    def __init__(self, question: str) -> None:
        self._lines: list[str] = [HEADER, RULE, f"Question: {question}", "Response:"]

    def add_turns(self, turns: Iterable[Turn]) -> None:
        for turn in turns:
            if turn.text:
                self._lines.append(f"{ROLE_LABELS[turn.role]}: {turn.text}")

    def add_note(self, text: str) -> None:
        self._lines.append("")
        self._lines.append(text)

    def render(self) -> str:
        return "\n".join(self._lines).rstrip() + "\n"
