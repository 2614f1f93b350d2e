"""Reusable Rich UI components for vertex-setup.

Pre-configured panels, tables and progress displays so every stage renders
with the same look.
"""

from typing import Any, Dict, List, Optional

from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from vertex_setup.core.models import StageResult, StageStatus

STATUS_STYLES = {
    StageStatus.OK: ("green", "✓ OK"),
    StageStatus.FAILED: ("red", "✗ FAILED"),
    StageStatus.SKIPPED: ("yellow", "⚠ SKIPPED"),
}


def create_panel(
    content: Any,
    title: str = "",
    border_style: str = "blue",
    padding: tuple = (1, 2),
    expand: bool = False,
    subtitle: str = "",
) -> Panel:
    """Create a styled panel with content.

    Args:
        content: Content to display in the panel (can be any Rich renderable)
        title: Panel title
        border_style: Rich style for the border
        padding: Tuple of (vertical, horizontal) padding
        expand: Whether to expand panel to fill width
        subtitle: Panel subtitle (displayed at bottom)

    Returns:
        Panel: Configured Rich Panel instance
    """
    return Panel(
        content,
        title=title,
        border_style=border_style,
        padding=padding,
        expand=expand,
        subtitle=subtitle,
    )


def create_table(
    headers: List[str],
    rows: List[List[str]],
    title: Optional[str] = None,
    show_header: bool = True,
    header_style: str = "bold",
    border_style: str = "bright_black",
    caption: Optional[str] = None,
) -> Table:
    """Create a formatted table from headers and string rows."""
    table = Table(
        title=title,
        show_header=show_header,
        header_style=header_style,
        border_style=border_style,
        caption=caption,
        caption_style="dim italic",
    )

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*row)

    return table


def create_key_value_table(data: Dict[str, Any], title: Optional[str] = None) -> Table:
    """Create a two-column table for key-value pairs."""
    table = Table(
        title=title,
        show_header=False,
        border_style="bright_black",
        padding=(0, 1),
    )

    table.add_column("Key", style="cyan bold", no_wrap=True)
    table.add_column("Value", style="green")

    for key, value in data.items():
        table.add_row(str(key), str(value))

    return table


def create_stage_table(results: List[StageResult], title: str = "Setup Summary") -> Table:
    """Create a status table with one colored row per stage result.

    Args:
        results: Stage results in execution order
        title: Table title

    Returns:
        Table: Configured Rich Table with status indicators
    """
    table = create_table(
        headers=["Stage", "Status", "Details"],
        rows=[],
        title=title,
        border_style="blue",
    )

    for result in results:
        color, label = STATUS_STYLES[result.status]
        table.add_row(result.stage.value, f"[{color}]{label}[/{color}]", escape(result.summary))

    return table


def create_spinner(console: Any) -> Progress:
    """Create a transient spinner for a single indeterminate task."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def create_syntax(code: str, language: str = "python") -> Syntax:
    """Create a syntax-highlighted code block."""
    return Syntax(code.strip("\n"), language, theme="monokai", word_wrap=True)


def create_error_panel(error: str, details: Optional[str] = None) -> Panel:
    """Create an error panel with optional details."""
    content = f"[bold red]{escape(error)}[/bold red]"
    if details:
        content += f"\n\n[dim]{escape(details)}[/dim]"

    return create_panel(
        content, title="[bold red]Error[/bold red]", border_style="red", padding=(1, 2)
    )


def create_success_panel(message: str, details: Optional[str] = None) -> Panel:
    """Create a success panel with optional details."""
    content = f"[bold green]✓[/bold green] {escape(message)}"
    if details:
        content += f"\n\n[dim]{escape(details)}[/dim]"

    return create_panel(
        content,
        title="[bold green]Success[/bold green]",
        border_style="green",
        padding=(1, 2),
    )


def create_warning_panel(message: str, details: Optional[str] = None) -> Panel:
    """Create a warning panel with optional details."""
    content = f"[bold yellow]⚠[/bold yellow] {escape(message)}"
    if details:
        content += f"\n\n[dim]{escape(details)}[/dim]"

    return create_panel(
        content,
        title="[bold yellow]Warning[/bold yellow]",
        border_style="yellow",
        padding=(1, 2),
    )
