import typer
from rich.console import Console
from rich.markup import escape

# Create a stderr console for logging
error_console = Console(stderr=True)

SEVERITY_RANK = {
    "debug": 10,
    "info": 20,
    "success": 20,
    "warning": 30,
    "error": 40,
    "critical": 50,
}

SEVERITY_STYLE = {
    "debug": "dim",
    "info": "white",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "critical": "bold red",
}


class OutputFormatter:
    """
    Handles output formatting for the CLI.
    Ensures separation of concerns between System Logs (stderr) and Data (stdout).
    """

    threshold: int = SEVERITY_RANK["info"]

    @classmethod
    def set_level(cls, level: str) -> None:
        """Set the minimum severity shown; accepts logging-style names."""
        name = level.strip().lower()
        if name == "warn":
            name = "warning"
        cls.threshold = SEVERITY_RANK.get(name, SEVERITY_RANK["info"])

    @classmethod
    def log(cls, message: str, severity: str = "info") -> None:
        """
        Print system messages to stderr with color coding.
        """
        if SEVERITY_RANK.get(severity, SEVERITY_RANK["info"]) < cls.threshold:
            return

        style = SEVERITY_STYLE.get(severity, "white")
        prefix = "[DBCTL]"
        error_console.print(f"[{style}]{prefix} {escape(message)}[/{style}]", highlight=False)

    @classmethod
    def progress(cls, marker: str = ".") -> None:
        """Print a poll-progress marker without a trailing newline."""
        if cls.threshold > SEVERITY_RANK["info"]:
            return
        error_console.print(marker, end="", highlight=False)

    @classmethod
    def end_progress(cls) -> None:
        if cls.threshold > SEVERITY_RANK["info"]:
            return
        error_console.print(highlight=False)

    @staticmethod
    def print_data(data: str) -> None:
        """
        Print a result payload to stdout.
        """
        typer.echo(data)
