"""Rich-based console output for the ``switchtext`` command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.theme import Theme

SWITCHTEXT_THEME = Theme({
    "gold": "bold #FFD700",
    "info": "dim",
    "success": "bold bright_green",
    "warn": "bold bright_yellow",
    "err": "bold bright_red",
})


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route library logging through rich on stderr."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


class CliPrinter:
    """Status and diagnostics for the CLI, always on stderr.

    Results are written separately so that stdout stays pipeable.
    """

    def __init__(
        self,
        name: str,
        icon: str = "",
        verbose: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        self.name = name
        self.icon = icon
        self.verbose = verbose
        self.console = console or Console(stderr=True, theme=SWITCHTEXT_THEME, soft_wrap=True)

    def header(self, fields: Dict[str, Any]) -> None:
        body = "\n".join(f"[bold]{k}:[/] {v}" for k, v in fields.items())
        self.console.print(
            Panel(body, title=f"{self.icon} {self.name}".strip(), border_style="gold")
        )

    def status(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[info]{message}[/]")

    def warning(self, message: str) -> None:
        self.console.print(f"[warn]⚠ {message}[/]")

    def error(self, message: str) -> None:
        self.console.print(f"[err]✖ {message}[/]")

    def file_written(self, path: Path) -> None:
        self.console.print(f"[success]✔ Wrote[/] [bright_cyan]{path}[/]")

    def stats(self, fields: Dict[str, Any], elapsed: Optional[float] = None) -> None:
        parts = [f"{k}: [bold]{v}[/]" for k, v in fields.items()]
        if elapsed is not None:
            parts.append(f"[info]{elapsed * 1000:.1f} ms[/]")
        self.console.print("  ".join(parts))
