"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
Uses Rich for spinners, colored output and formatted summaries. Supports
verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from src.spec_parser.cypress_parser import SpecSuite

from .models import PublishSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Published 3 results")
        >>> with handler.spinner("Publishing..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while remote work is in progress.

        Example:
            >>> with handler.spinner("Publishing results..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    def print_summary(self, summary: PublishSummary, action: str = "Published") -> None:
        """Display publish summary with color coding.

        Args:
            summary: Counts of the run
            action: Verb describing what happened to successful tests
        """
        if summary.published_count == 0 and summary.is_complete:
            self.console.print("[dim]Nothing to publish[/dim]")
            return

        self.console.print("")
        self.console.print("[bold]Summary:[/bold]")
        if summary.published_count > 0:
            self.console.print(f"  [green]{action}:[/green] {summary.published_count} test(s)")
        if summary.skipped_count > 0:
            self.console.print(f"  [yellow]Skipped:[/yellow] {summary.skipped_count} test(s)")
        if summary.failed_count > 0:
            self.console.print(f"  [red]Failed:[/red] {summary.failed_count} test(s)")
        for problem in summary.problems:
            self.console.print(f"    - {escape(problem)}")

    def print_suites(self, suites: List[SpecSuite], epic: str = "") -> None:
        """Print parsed suites as a tree (dry run of the import).

        Each suite is shown as the user story its new test cases would be
        filed below; with an empty epic no requirements are created.
        """
        indent = ""
        if epic:
            self.console.print(f"[bold]Epic:[/bold] {escape(epic)}")
            indent = "  "
        for suite in suites:
            self.console.print(
                f"{indent}[bold]User Story:[/bold] {escape(suite.name)} [dim]({escape(suite.file_path)})[/dim]"
            )
            for test_case in suite.test_cases:
                external_id = escape(f"[{test_case.external_id}]") if test_case.external_id else "[red]no external id[/red]"
                self.console.print(f"{indent}  Test Case: {escape(test_case.name)} {external_id}")
                for step in test_case.test_steps:
                    self.console.print(f"{indent}    Test Step: {escape(step)}")
