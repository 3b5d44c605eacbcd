"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of planner results and stored plans.
"""

from rich.console import Console
from rich.table import Table

from ..core.adaptation import needs_review
from ..core.models import BlockPlanChanges, Exercise
from ..io.plan_store import PlanSnapshot

console = Console()

COLLECTION_LABELS: dict[str, str] = {
    "microcycles": "Microcycles",
    "sessions": "Sessions",
    "session_exercises": "Session exercises",
    "sets": "Sets",
}


def format_changes_table(changes: BlockPlanChanges) -> Table:
    """
    Create a Rich table summarising a planner result.

    Args:
        changes: Planner output

    Returns:
        Rich Table object
    """
    table = Table(title="Plan changes")

    table.add_column("Collection", style="cyan")
    table.add_column("Create", justify="right", style="green")
    table.add_column("Update", justify="right")
    table.add_column("Delete", justify="right", style="red")

    for name, ops in changes.by_collection().items():
        table.add_row(
            COLLECTION_LABELS[name],
            str(len(ops.create)),
            str(len(ops.update)),
            str(len(ops.delete)),
        )

    return table


def _fmt_weight(weight: float | None) -> str:
    if weight is None:
        return "-"
    return f"{weight:g}"


def format_microcycle_table(
    index: int,
    snapshot: PlanSnapshot,
    microcycle_id: str,
    exercises: dict[str, Exercise],
) -> Table:
    """
    Create a Rich table for one stored microcycle.

    One row per session exercise; sets of an exercise share their targets,
    so they are shown as a count.
    """
    microcycle = next(m for m in snapshot.microcycles if m.id == microcycle_id)
    sessions = {s.id: s for s in snapshot.sessions}
    session_exercises = {se.id: se for se in snapshot.session_exercises}
    sets = {s.id: s for s in snapshot.sets}

    table = Table(
        title=(
            f"Microcycle {index + 1}: {microcycle.start_date:%Y-%m-%d} → "
            f"{microcycle.end_date:%Y-%m-%d}"
        )
    )
    table.add_column("Date", style="cyan")
    table.add_column("Session", style="magenta")
    table.add_column("Exercise", style="green")
    table.add_column("Sets", justify="right")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("RIR", justify="right")
    table.add_column("Status")

    for session_id in microcycle.session_order:
        session = sessions.get(session_id)
        if session is None:
            continue
        status = "[green]done[/green]" if session.complete else "planned"
        if not session.session_exercise_order:
            table.add_row(f"{session.start_time:%Y-%m-%d}", session.title, "-", "0", "-", "-", "-", status)
            continue
        for se_id in session.session_exercise_order:
            se = session_exercises.get(se_id)
            if se is None:
                continue
            se_sets = [sets[sid] for sid in se.set_order if sid in sets]
            first = se_sets[0] if se_sets else None
            exercise = exercises.get(se.exercise_id)
            name = exercise.name if exercise is not None else se.exercise_id
            if se.is_recovery_exercise:
                name += " [yellow](recovery)[/yellow]"
            row_status = status
            if session.complete and needs_review(se, se_sets):
                row_status = "[yellow]needs review[/yellow]"
            table.add_row(
                f"{session.start_time:%Y-%m-%d}",
                session.title,
                name,
                str(len(se_sets)),
                _fmt_weight(first.planned_weight if first else None),
                str(first.planned_reps) if first and first.planned_reps is not None else "-",
                str(first.planned_rir) if first and first.planned_rir is not None else "-",
                row_status,
            )

    return table


def print_block_plan(snapshot: PlanSnapshot, exercises: list[Exercise]) -> None:
    """Print every stored microcycle of a block, in date order."""
    if not snapshot.microcycles:
        print_info("No microcycles planned yet. Run 'plan' first.")
        return
    by_id = {e.id: e for e in exercises}
    ordered = sorted(snapshot.microcycles, key=lambda m: m.start_date)
    for index, microcycle in enumerate(ordered):
        console.print(format_microcycle_table(index, snapshot, microcycle.id, by_id))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
