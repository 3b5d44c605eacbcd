"""Shared Typer app object, shared option types, logging setup and store utility."""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger

from ..io.plan_store import PlanStore, get_default_store_path

# Shared --catalog / --store options used across commands
CatalogOption = Annotated[
    Path,
    typer.Option("--catalog", "-c", help="Path to catalog YAML (block, exercises, equipment, calibrations)"),
]
StoreOption = Annotated[
    Optional[Path],
    typer.Option("--store", "-s", help="Path to plan JSON store (default: ~/.block-planner/plan.json)"),
]

app = typer.Typer(
    name="block-planner",
    help="Periodization planner for resistance-training blocks.",
    no_args_is_help=True,
)


def get_store(store_path: Path | None) -> PlanStore:
    """Get plan store from path or default location."""
    if store_path is None:
        store_path = get_default_store_path()
    return PlanStore(store_path)


def setup_logging(verbose: bool = False) -> None:
    """Send planner logs to stderr; warnings only unless verbose."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | {message} | {extra}",
        level="DEBUG" if verbose else "WARNING",
        colorize=True,
    )
