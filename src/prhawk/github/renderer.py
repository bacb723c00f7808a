"""Markdown renderer for the complexity report comment.

Generates a GitHub-flavored markdown comment with:
  - A count of analyzed files
  - One table row per file: lines, complexity before/after, change
"""

from __future__ import annotations

from prhawk.analysis.models import FileAnalysisResult
from prhawk.analysis.scoring import delta

DEFAULT_TITLE = "Codehawk Complexity Report"

TABLE_HEADER = "| File | Total Lines | Complexity (before) | Complexity (after) | Change |"
TABLE_DIVIDER = "|:-----|:-----------:|:-------------------:|:------------------:|:------:|"


def analyzed_results(results: list[FileAnalysisResult]) -> list[FileAnalysisResult]:
    """Keep only results that carry metrics, preserving order."""
    return [r for r in results if r.analyzed]


def render_complexity_comment(
    results: list[FileAnalysisResult],
    title: str = DEFAULT_TITLE,
) -> str:
    """Render the per-file complexity comparison as a GitHub markdown comment.

    Raises:
        ValueError: If no result carries metrics.
    """
    rows = analyzed_results(results)
    if not rows:
        raise ValueError("No analyzed files to report")

    sections: list[str] = []

    # Header
    sections.append(f"## {title}")
    sections.append("")
    sections.append(f"**{_files_changed(len(rows))}**")
    sections.append("")

    sections.append(TABLE_HEADER)
    sections.append(TABLE_DIVIDER)
    for result in rows:
        sections.append(_render_row(result))
    sections.append("")

    sections.append(_footer())
    return "\n".join(sections)


def _render_row(result: FileAnalysisResult) -> str:
    metrics = result.metrics
    previous = result.previous_metrics
    change = delta(metrics.score, previous.score if previous is not None else None)
    filename = result.filename.replace("|", "\\|")
    return (
        f"| `{filename}` | "
        f"{metrics.total_lines} | "
        f"{change.previous_display} | "
        f"{change.current_display} | "
        f"{change.change_text} |"
    )


def _files_changed(count: int) -> str:
    noun = "file" if count == 1 else "files"
    return f"{count} {noun} changed"


def _footer() -> str:
    return (
        "---\n"
        "*Complexity is `100 - maintainability`: higher means harder to maintain. "
        "Posted by PRHawk*"
    )
