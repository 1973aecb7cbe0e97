"""Rich-based logging setup and terminal output for infralint."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from infralint.core.models import Diagnostic, Severity

__all__ = [
    "console",
    "err_console",
    "configure_logging",
    "print_success",
    "print_warning",
    "print_error",
    "format_diagnostic",
    "create_table",
    "create_panel",
]

_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "info": "bold cyan",
        "muted": "dim",
        "accent": "bold magenta",
    }
)

_SEVERITY_STYLES = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "info",
}

console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


def print_success(message: str) -> None:
    """Report a clean run on stdout."""
    console.print(f"[success]✔[/success] {message}")


def print_warning(message: str) -> None:
    """Report a run that found only warnings or suggestions."""
    console.print(f"[warning]⚠[/warning] {message}")


def print_error(message: str) -> None:
    """Report errors and fatal run failures on stderr."""
    err_console.print(f"[error]✖[/error] {message}")


def format_diagnostic(diagnostic: Diagnostic) -> Text:
    """Render ``[SEVERITY] path:line:column: message (rule-id)`` with styling."""
    text = Text(diagnostic.format())
    text.stylize(_SEVERITY_STYLES[diagnostic.severity], 0, len(diagnostic.severity.value) + 2)
    text.append(f" ({diagnostic.rule_id})", style="muted")
    return text


def create_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
) -> Table:
    """Build a table from (header, style) column specs, one row per rule."""
    table = Table(title=title, show_lines=True, expand=True)
    for header, style in columns:
        table.add_column(header, style=style)
    for row in rows:
        table.add_row(*row)
    return table


def create_panel(
    content: str,
    title: str,
    style: str = "cyan",
) -> Panel:
    """Wrap *content* in a bordered panel, used for the lint summary."""
    return Panel(
        Text(content),
        title=title,
        border_style=style,
        expand=True,
        padding=(1, 2),
    )
