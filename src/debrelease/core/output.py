from __future__ import annotations

"""Centralized output handling for lookup commands."""

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from debrelease.plugins.deb.models import ComponentOutcome, ReleaseResult


class OutputLevel(Enum):
    """Output verbosity level."""

    QUIET = 0  # Only errors and results
    NORMAL = 1  # Standard
    VERBOSE = 2  # All details


class LookupOutputter:
    """Centralized output handler for release lookups.

    Renders results as rich tables or JSON and handles quiet/normal/verbose modes.
    """

    def __init__(self, level: OutputLevel = OutputLevel.NORMAL, console: Console | None = None):
        """Initialize lookup outputter.

        Args:
            level: Output verbosity level
            console: Console for regular output (default: stdout)
        """
        self.level = level
        self.console = console or Console()
        self.err_console = Console(stderr=True)

    def header(self, package_name: str, registry_url: str, **kwargs: Any) -> None:
        """Show lookup header.

        Args:
            package_name: Package being looked up
            registry_url: Repository registry URL
            **kwargs: Additional key-value pairs to display
        """
        if self.level == OutputLevel.QUIET:
            return

        self.console.print(f"Looking up {package_name}", style="bold")
        self.console.print(f"Registry URL: {registry_url}", markup=False)

        for key, value in kwargs.items():
            display_key = key.replace("_", " ").title()
            self.console.print(f"{display_key}: {value}")

    def components(self, outcomes: list[ComponentOutcome]) -> None:
        """Show per-component status (verbose only)."""
        if self.level != OutputLevel.VERBOSE:
            return

        styles = {"found": "green", "not-found": "dim", "failed": "red"}
        for outcome in outcomes:
            line = f"  → {outcome.component_url}: {outcome.status}"
            if outcome.error:
                line += f" ({outcome.error})"
            self.console.print(line, style=styles[outcome.status], markup=False)

    def result(self, package_name: str, result: ReleaseResult | None) -> None:
        """Render a lookup result as a table."""
        if result is None:
            self.console.print(f"Package {package_name} not found", style="yellow")
            return

        table = Table(title=f"Releases of {package_name}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Version", style="cyan")
        for number, version in enumerate(result.versions, start=1):
            table.add_row(str(number), version)

        self.console.print(table)
        self.console.print(f"Homepage: {result.homepage or '-'}", markup=False)

    @staticmethod
    def to_json(results: dict[str, ReleaseResult | None]) -> str:
        """Serialize lookup results, keyed by registry URL or repository ID."""
        payload = {
            key: result.model_dump() if result is not None else None
            for key, result in results.items()
        }
        return json.dumps(payload, indent=2)

    def info(self, message: str) -> None:
        """Show info message."""
        if self.level == OutputLevel.QUIET:
            return

        self.console.print(message)

    def warning(self, message: str) -> None:
        """Show warning message."""
        if self.level == OutputLevel.QUIET:
            return

        self.console.print(f"⚠️  {message}", style="yellow")

    def error(self, message: str) -> None:
        """Show error message (always shown, even in quiet mode).

        Args:
            message: Error message
        """
        self.err_console.print(f"✗ {message}", style="red", markup=False)
