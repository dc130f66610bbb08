"""CLI main module for Sift."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from sift.cli.render import create_cli_renderer
from sift.config import get_settings
from sift.core import FallbackAnalyzer, InvocationOrchestrator
from sift.errors import AcquisitionError, ConfigurationError
from sift.logging_utils import configure_logging
from sift.remote.openai_backend import build_remote
from sift.types import AnalysisRequest

app = typer.Typer(
    name="sift",
    help="Ask a remote analyst about a CSV file, with a local fallback.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _read_dataset(path: Path) -> bytes:
    if not path.is_file():
        create_cli_renderer().error(f"CSV file not found: {path}")
        raise typer.Exit(1)
    return path.read_bytes()


@app.command()
def analyze(
    path: Path = typer.Argument(..., help="CSV file to analyze"),  # noqa: B008
    question: list[str] | None = typer.Option(None, "--question", "-q", help="Question to ask, repeatable"),  # noqa: B008
    inline: bool = typer.Option(False, "--inline", help="Send the data inside the message instead of uploading it"),
    model: str | None = typer.Option(None, "--model", help="Worker model override"),
    deadline: float | None = typer.Option(None, "--deadline", help="Deadline in seconds"),
    max_turns: int | None = typer.Option(None, "--max-turns", help="Maximum turns per question"),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Save generated files here"),  # noqa: B008
) -> None:
    """Run the remote analyst over one dataset."""

    renderer = create_cli_renderer()
    data = _read_dataset(path)
    try:
        settings = get_settings(
            model=model,
            deadline_seconds=deadline,
            max_turns=max_turns,
            output_dir=output_dir,
        )
        configure_logging(profile="cli", level=settings.log_level)
        remote = build_remote(settings)
    except ConfigurationError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc

    orchestrator = InvocationOrchestrator(remote, settings)
    request = AnalysisRequest(data=data, question="", file_name=path.name, inline=inline)
    try:
        outcomes = asyncio.run(orchestrator.invoke_many(request, question or []))
    except AcquisitionError as exc:
        renderer.error(f"could not start the remote session ({exc.stage}): {exc}")
        raise typer.Exit(1) from exc

    for outcome in outcomes:
        renderer.outcome(outcome)


@app.command()
def inspect(
    path: Path = typer.Argument(..., help="CSV file to inspect"),  # noqa: B008
    question: str = typer.Option("", "--question", "-q", help="Question shown in the summary"),
) -> None:
    """Summarize a dataset locally, without the remote analyst."""

    renderer = create_cli_renderer()
    data = _read_dataset(path)
    settings = get_settings()
    result = FallbackAnalyzer(settings.delimiter).analyze(data, question)
    renderer.plain(result.text)
    if not result.ok:
        raise typer.Exit(1)
