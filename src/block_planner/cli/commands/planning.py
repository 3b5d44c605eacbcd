"""Planning commands: plan, show, complete-session."""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.engine.config_loader import load_planner_settings
from ...core.errors import PlanningError
from ...core.planner import generate_or_update_block
from ...io.serializers import Catalog, ValidationError, load_catalog
from .. import views
from ..app import CatalogOption, StoreOption, app, get_store


def _load_catalog_or_exit(catalog_path: Path) -> Catalog:
    """Load the catalog, printing the problem and exiting on failure."""
    try:
        return load_catalog(catalog_path)
    except FileNotFoundError:
        views.print_error(f"Catalog file not found: {catalog_path}")
        raise typer.Exit(1)
    except ValidationError as e:
        views.print_error(f"Invalid catalog: {e}")
        raise typer.Exit(1)


def _parse_start_date(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        views.print_error(f"Invalid start date: {value}. Expected YYYY-MM-DD")
        raise typer.Exit(1)


@app.command()
def plan(
    catalog_path: CatalogOption,
    store_path: StoreOption = None,
    start_date: Annotated[
        Optional[str],
        typer.Option("--start-date", "-d", help="First microcycle date (YYYY-MM-DD) when nothing is kept"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the changes without writing them"),
    ] = False,
) -> None:
    """
    Generate or update the block's plan.

    Completed microcycles are kept, untouched ones are regenerated, and new
    microcycles are added until the block has its planned count.
    """
    catalog = _load_catalog_or_exit(catalog_path)
    start = _parse_start_date(start_date)
    store = get_store(store_path)

    try:
        snapshot = store.load_snapshot(catalog.block.id)
        settings = load_planner_settings()
        changes = generate_or_update_block(
            catalog.block,
            catalog.calibrations,
            catalog.exercises,
            catalog.equipment,
            snapshot.microcycles,
            snapshot.sessions,
            snapshot.session_exercises,
            snapshot.sets,
            start_date=start,
            settings=settings,
        )
    except ValidationError as e:
        views.print_error(f"Invalid plan store: {e}")
        raise typer.Exit(1)
    except PlanningError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.console.print(views.format_changes_table(changes))

    if changes.is_empty():
        views.print_info("Plan is up to date.")
        return
    if dry_run:
        views.print_info("Dry run: nothing written.")
        return

    if not store.exists():
        views.print_warning(f"Creating new plan store: {store.store_path}")
    store.init()
    store.apply_changes(changes)
    views.print_success(f"Plan saved to {store.store_path}")


@app.command()
def show(
    catalog_path: CatalogOption,
    store_path: StoreOption = None,
) -> None:
    """Show every planned microcycle with its sessions and sets."""
    catalog = _load_catalog_or_exit(catalog_path)
    store = get_store(store_path)

    if not store.exists():
        views.print_error(f"Plan store not found: {store.store_path}")
        views.print_info("Run 'plan' first to create it.")
        raise typer.Exit(1)

    try:
        snapshot = store.load_snapshot(catalog.block.id)
    except ValidationError as e:
        views.print_error(f"Invalid plan store: {e}")
        raise typer.Exit(1)

    views.print_block_plan(snapshot, catalog.exercises)


@app.command("complete-session")
def complete_session(
    session_id: Annotated[str, typer.Option("--session", help="Id of the session to mark")],
    store_path: StoreOption = None,
    undo: Annotated[
        bool,
        typer.Option("--undo", help="Mark the session as not complete instead"),
    ] = False,
) -> None:
    """Mark a planned session as complete (or not complete with --undo)."""
    store = get_store(store_path)

    if not store.exists():
        views.print_error(f"Plan store not found: {store.store_path}")
        raise typer.Exit(1)

    try:
        session = store.mark_session_complete(session_id, complete=not undo)
    except KeyError:
        views.print_error(f"Session not found: {session_id}")
        raise typer.Exit(1)
    except ValidationError as e:
        views.print_error(f"Invalid plan store: {e}")
        raise typer.Exit(1)

    state = "not complete" if undo else "complete"
    views.print_success(f"{session.title} marked {state}.")
