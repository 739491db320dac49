import logging
from datetime import datetime
from typing import Optional
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text
from ...output.base import WriteResult
from ...sheets.range_builder import OutputPlan

class ConsoleUIManager:
    """A console-based UI manager that prints progress and results with rich."""

    def __init__(self, console: Optional[Console] = None, preview_rows: int = 20):
        """Initialize Console UI Manager.

        Args:
            console: Console to print to, a new stdout console if omitted
            preview_rows: Maximum number of data rows shown by show_preview
        """
        self.logger = logging.getLogger(__name__)
        self.console = console or Console()  # For colored output
        self.preview_rows = preview_rows

    def add_status(self, message: str, level: str = "info"):
        """Print a timestamped status message."""
        time = datetime.now().strftime("%H:%M:%S")
        style = {
            "debug": "dim",
            "info": "white",
            "warning": "yellow",
            "error": "red bold",
            "critical": "red bold reverse"
        }.get(level, "white")

        msg = Text()
        msg.append(f"[{time}] ", style="cyan")
        msg.append(message, style=style)

        self.console.print(msg)

    def info(self, message: str):
        self.add_status(message, "info")

    def warning(self, message: str):
        self.add_status(message, "warning")

    def error(self, message: str):
        self.add_status(message, "error")

    def debug(self, message: str):
        self.add_status(message, "debug")

    def show_preview(self, plan: OutputPlan):
        """Print the grid that would be written, header row first."""
        table = Table(box=box.ROUNDED, title=f"Range {plan.range}", show_lines=False)
        for header in plan.grid[0]:
            table.add_column(Text(str(header)), style="bold")

        for row in plan.grid[1:self.preview_rows + 1]:
            table.add_row(*(Text("" if value is None else str(value)) for value in row))

        self.console.print(table)
        hidden = plan.data_rows - self.preview_rows
        if hidden > 0:
            self.console.print(f"... {hidden} more rows", style="dim")

    def print_summary(self, result: WriteResult):
        """Print where the results went."""
        title = "📊 Dry run summary" if result.dry_run else "📊 Output summary"
        self.console.print(f"\n{title}", style="green bold")
        self.console.print("─" * 40, style="dim")
        self.console.print(f"Container: {result.container}", style="cyan")
        self.console.print(f"Sheet: {result.sheet}", style="cyan")
        self.console.print(f"Range: {result.range}", style="cyan")
        self.console.print(f"Rows written: {result.rows_written}", style="cyan")
        if result.hook_error is not None:
            self.console.print(f"Post-processing hook: {result.hook_error}", style="yellow")
