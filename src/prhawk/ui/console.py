"""Rich-powered console output for PRHawk."""

from __future__ import annotations

import logging

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from prhawk.analysis.models import FileAnalysisResult, RunOutcome
from prhawk.analysis.scoring import delta


class Console:
    """Terminal output for PRHawk using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_results(self, results: list[FileAnalysisResult]) -> None:
        """Display every changed file, analyzed or not."""
        table = Table(title="Changed Files", border_style="cyan")
        table.add_column("File", style="bold")
        table.add_column("Lines", justify="right")
        table.add_column("Before", justify="right")
        table.add_column("After", justify="right")
        table.add_column("Change", justify="right")

        for result in results:
            if not result.analyzed:
                reason = "flow (unsupported)" if result.is_flow else "skipped"
                table.add_row(result.filename, "", "", "", f"[dim]{reason}[/dim]")
                continue
            previous = result.previous_metrics
            change = delta(
                result.metrics.score,
                previous.score if previous is not None else None,
            )
            table.add_row(
                result.filename,
                str(result.metrics.total_lines),
                change.previous_display,
                change.current_display,
                change.change_text,
            )

        self.console.print(table)

    def show_outcome(self, outcome: RunOutcome) -> None:
        """Display the result of one event run."""
        color = "green" if outcome.posted else "yellow"
        status = (
            f"posted (comment {outcome.comment_id})" if outcome.posted
            else "skipped, nothing to analyze"
        )
        self.console.print(
            Panel(
                f"[bold]Event:[/bold] {outcome.event}\n"
                f"[bold]Pull request:[/bold] {outcome.repository}#{outcome.pull_number}\n"
                f"[bold]Files changed:[/bold] {outcome.files_changed}\n"
                f"[bold]Files analyzed:[/bold] {outcome.files_analyzed}\n"
                f"[bold]Comment:[/bold] [{color}]{status}[/{color}]",
                title="[bold]PRHawk Run[/bold]",
                border_style=color,
            )
        )


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
