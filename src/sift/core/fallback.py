"""Local structural summary of a CSV dataset.

Used when the remote worker cannot answer. Nothing here talks to the network
and nothing here raises: every failure turns into a smaller summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from sift.config import is_visualization_request

MAX_LISTED_COLUMNS = 20
MAX_SAMPLE_VALUES = 10
MAX_HISTOGRAM_COLUMNS = 5
FINANCIAL_HINTS = ("total", "amount", "tax", "price")
TEMPORAL_HINTS = ("date", "created", "invoice")
QUOTE_CHARS = "\"'"


@dataclass(frozen=True)
class DegradedResult:
    """Fallback summary. ``ok`` is False when not even a header was found."""

    text: str
    ok: bool
    columns: tuple[str, ...] = ()
    row_count: int = 0
    financial_columns: tuple[str, ...] = ()
    temporal_columns: tuple[str, ...] = ()
    sample: dict[str, str] = field(default_factory=dict)


def _decode(raw: bytes | str) -> str:
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8-sig", errors="replace")


def _lines(raw: bytes | str) -> list[str]:
    return [line for line in _decode(raw).splitlines() if line.strip()]


def _clean(value: str) -> str:
    return value.strip().strip(QUOTE_CHARS).strip()


def _matching(columns: tuple[str, ...], hints: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(column for column in columns if any(hint in column.casefold() for hint in hints))


class FallbackAnalyzer:
    """Derive a best-effort summary straight from the raw dataset."""

    def __init__(self, delimiter: str = ",") -> None:
        self._delimiter = delimiter

    def analyze(self, raw: bytes | str, question: str) -> DegradedResult:
        try:
            logger.info("fallback.start bytes={}", len(raw))
            return self._analyze(raw, question)
        except Exception as exc:
            logger.opt(exception=exc).error("fallback.error error={!s}", exc)
            return DegradedResult(text=f"Fallback analysis error: {exc}", ok=False)

    def _analyze(self, raw: bytes | str, question: str) -> DegradedResult:
        lines = _lines(raw)
        parts = ["Fallback CSV Analysis", "(Basic analysis while the remote analyst is unavailable)", ""]
        if not lines:
            parts.append("Unable to parse CSV headers")
            return DegradedResult(text="\n".join(parts), ok=False)

        columns = tuple(_clean(header) for header in lines[0].split(self._delimiter))
        rows = lines[1:]
        financial = _matching(columns, FINANCIAL_HINTS)
        temporal = _matching(columns, TEMPORAL_HINTS)

        parts.extend([
            "Dataset Overview:",
            f"  - Total columns: {len(columns)}",
            f"  - Total rows: {len(rows)}",
            "",
            "Column Names:",
        ])
        parts.extend(f"  - {column}" for column in columns[:MAX_LISTED_COLUMNS])
        if len(columns) > MAX_LISTED_COLUMNS:
            parts.append(f"  - ... and {len(columns) - MAX_LISTED_COLUMNS} more columns")
        parts.append("")

        if financial:
            parts.append("Financial Columns Detected:")
            parts.extend(f"  - {column}" for column in financial)
            parts.append("")
        if temporal:
            parts.append("Date Columns Detected:")
            parts.extend(f"  - {column}" for column in temporal)
            parts.append("")

        if is_visualization_request(question):
            parts.extend(self._visualization_section(financial, len(rows)))

        sample: dict[str, str] = {}
        if rows:
            values = rows[0].split(self._delimiter)[: min(MAX_SAMPLE_VALUES, len(columns))]
            for column, value in zip(columns, values, strict=False):
                cleaned = _clean(value)
                if cleaned:
                    sample[column] = cleaned
            parts.append("Sample Data (First Row):")
            parts.extend(f"  - {column}: {value}" for column, value in sample.items())
            parts.append("")

        parts.extend([
            f"Question: {question}",
            "Note: This is a degraded analysis. Calculations and charts need the remote analyst.",
            "",
            "Recommendations:",
            "  - Try the question again, the remote analyst may be temporarily unavailable",
            "  - Simplify the request if it is very complex",
            "  - For histograms, make sure the data contains numeric columns",
        ])
        return DegradedResult(
            text="\n".join(parts),
            ok=True,
            columns=columns,
            row_count=len(rows),
            financial_columns=financial,
            temporal_columns=temporal,
            sample=sample,
        )

    @staticmethod
    def _visualization_section(financial: tuple[str, ...], row_count: int) -> list[str]:
        section = [
            "Visualization Request Detected:",
            "  - Charts and histograms need the remote analyst",
            "  - Once available it can plot distributions, monthly totals and comparisons",
            "",
        ]
        if financial:
            section.append("Available Data for Histograms:")
            section.extend(f"  - {column}: {row_count} data points" for column in financial[:MAX_HISTOGRAM_COLUMNS])
            section.append("")
        return section

    def basic_summary(self, raw: bytes | str, question: str) -> str:
        """Last-resort note: line and column counts only."""
        try:
            lines = _lines(raw)
            columns = len(lines[0].split(self._delimiter)) if lines else 0
            return "\n".join([
                "Basic CSV Information:",
                f"  - Total lines: {len(lines)}",
                f"  - Estimated columns: {columns}",
                f"  - Question: {question}",
                "  - The remote analyst is required for a full analysis",
            ])
        except Exception as exc:
            logger.opt(exception=exc).error("fallback.basic.error error={!s}", exc)
            return f"Complete analysis failure. Question: {question}"
