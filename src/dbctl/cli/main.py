import typer
from pathlib import Path
from typing import Callable, Dict, Optional

from dbctl.cli.formatter import OutputFormatter
from dbctl.config.loader import load_settings
from dbctl.core.models import DbctlConfig, LifecycleOutcome
from dbctl.runtime.controller import LifecycleController
from dbctl.utils.diagnostics import ConfigurationError

app = typer.Typer(name="dbctl", help="Supervise a single database server daemon.", rich_markup_mode=None)

ACTIONS = ("start", "stop", "restart", "reload", "force-reload", "status")

USAGE = "Usage: dbctl [--config PATH] start|stop|restart|reload|force-reload|status"


def _build_controller(config: DbctlConfig) -> LifecycleController:
    return LifecycleController(config)


def _actions(controller: LifecycleController) -> Dict[str, Callable[[], LifecycleOutcome]]:
    return {
        "start": controller.start,
        "stop": controller.stop,
        "restart": controller.restart,
        "reload": controller.reload,
        "force-reload": controller.reload,
        "status": controller.status,
    }


@app.command()
def dbctl(
    action: Optional[str] = typer.Argument(
        None, help="One of start, stop, restart, reload, force-reload, status."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to dbctl.yaml (defaults to $DBCTL_CONFIG or /etc/dbctl/dbctl.yaml)."
    ),
):
    """Start, stop, restart, reload or report on the supervised server."""
    if action not in ACTIONS:
        typer.echo(USAGE)
        raise typer.Exit(code=1)

    try:
        settings = load_settings(config)
    except ConfigurationError as exc:
        OutputFormatter.log(str(exc), severity="error")
        raise typer.Exit(code=1)

    OutputFormatter.set_level(settings.settings.log_level)
    controller = _build_controller(settings)

    outcome = _actions(controller)[action]()
    if action == "status":
        OutputFormatter.print_data(outcome.detail)

    raise typer.Exit(code=outcome.exit_code)


if __name__ == "__main__":
    app()
