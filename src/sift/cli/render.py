"""CLI renderer for Sift."""

from rich.console import Console
from rich.markup import escape

from sift.types import InvocationOutcome, InvocationStatus

STATUS_STYLES = {
    InvocationStatus.COMPLETED: "bold green",
    InvocationStatus.TURN_BUDGET_EXCEEDED: "bold yellow",
    InvocationStatus.TIMED_OUT: "bold yellow",
    InvocationStatus.DEGRADED: "bold magenta",
    InvocationStatus.FAILED: "bold red",
}


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()

    def plain(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def outcome(self, outcome: InvocationOutcome) -> None:
        """Render one invocation outcome with its transcript."""
        style = STATUS_STYLES[outcome.status]
        header = f"[{style}]{outcome.status.value}[/{style}]"
        if outcome.model:
            header += f" [dim]model={escape(outcome.model)}[/dim]"
        if outcome.used_fallback:
            header += " [dim](fallback analysis)[/dim]"
        self.console.print(header)
        self.console.print(escape(outcome.assembled_text))
        for path in outcome.attachments:
            self.console.print(f"[bold]Saved:[/bold] [cyan]{escape(str(path))}[/cyan]")
        for problem in outcome.release_errors:
            self.console.print(f"[dim]cleanup warning: {escape(problem)}[/dim]")


def create_cli_renderer() -> Renderer:
    """Create and return a Renderer instance."""
    return Renderer()
