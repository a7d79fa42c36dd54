import json
import typer
from typing import Any, Dict, Optional
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

# Create a stderr console for logging
error_console = Console(stderr=True)


class OutputFormatter:
    """
    Handles output formatting for the CLI and the runtime.
    Ensures separation of concerns between System Logs (stderr) and Data (stdout).
    """

    show_debug: bool = False

    @classmethod
    def configure(cls, log_level: str) -> None:
        cls.show_debug = log_level.strip().upper() == "DEBUG"

    @classmethod
    def log(cls, message: str, severity: str = "info") -> None:
        """
        Print system messages to stderr with color coding.
        """
        style = "white"
        prefix = "[SYSTEM]"

        if severity == "debug":
            if not cls.show_debug:
                return
            style = "dim"
            prefix = "[DEBUG]"
        elif severity == "warning":
            style = "yellow"
        elif severity == "error":
            style = "red"
        elif severity == "critical":
            style = "bold red"
        elif severity == "success":
            style = "green"

        # Tool output can contain square brackets; keep rich from reading them as markup.
        error_console.print(f"{prefix} {message}", style=style, markup=False, highlight=False)

    @staticmethod
    def print_statuses(statuses: Dict[str, Optional[str]]) -> None:
        table = Table(title="Pressdock Status", header_style="bold")
        table.add_column("Component", style="bold")
        table.add_column("Status")

        for axis, status in statuses.items():
            color = "green" if status == "ready" else "yellow"
            if status is None:
                color = "dim"
            table.add_row(axis, f"[{color}]{status or 'idle'}[/{color}]")

        error_console.print(table)

    @staticmethod
    def print_data(data: Any) -> None:
        """
        Print a result to stdout.
        """
        if isinstance(data, str):
            typer.echo(data, nl=not data.endswith("\n"))
            return

        def json_serializer(obj):
            if isinstance(obj, BaseModel):
                return obj.model_dump(mode='json')
            return str(obj)

        try:
            output = json.dumps(data, indent=2, default=json_serializer)
            typer.echo(output)
        except TypeError as e:
            OutputFormatter.log(f"JSON Serialization failed: {e}", severity="error")
            typer.echo(str(data))
