"""Main CLI application."""

from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from . import common
from .graph import graph_command
from .init import init_command
from .run import run_command
from .runs import runs_command

app = typer.Typer(
    name="civicmerge",
    help="Find and merge duplicate citizen problem reports",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Find and merge duplicate citizen problem reports."""
    common.log_level_override = log_level


# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.command("graph")(graph_command)
app.command("runs")(runs_command)


if __name__ == "__main__":
    app()
