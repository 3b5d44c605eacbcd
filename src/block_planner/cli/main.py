"""
CLI entry point using Typer.

Provides commands for training block planning:
- plan: Generate or update the plan of a block
- show: Display the stored plan
- complete-session: Mark a session complete
"""

from typing import Annotated

import typer

from .app import app, setup_logging
from .commands import planning  # noqa: F401  (registers commands on app)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show planner debug logs on stderr"),
    ] = False,
) -> None:
    """
    Periodization planner for resistance-training blocks.
    """
    setup_logging(verbose)


if __name__ == "__main__":
    app()
