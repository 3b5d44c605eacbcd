"""
Block plan generation.

generate_or_update_block() is the single entry point of the engine. It
compares the persisted microcycles of a block against the block's
configuration and returns the documents to create and delete so that the
block ends up with exactly its planned number of microcycles, the last
one being the deload.

Existing microcycles are handled in start-date order:

  complete      every session in session_order exists and is complete → kept
  not started   empty session_order, or no session complete            → deleted
                (with its sessions, session exercises and sets) and regenerated
  started       some but not all sessions complete                     → DataIntegrityError

Completed history is never modified, so the engine only ever creates and
deletes; update lists are always empty. FreeForm blocks are never planned.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal, Sequence

from loguru import logger

from .config import DEFAULT_SETTINGS, PlannerSettings
from .context import PlanContext, PlanDraft
from .errors import DataIntegrityError
from .models import (
    BlockPlanChanges,
    DocumentOperations,
    EquipmentType,
    Exercise,
    ExerciseCalibration,
    Microcycle,
    Session,
    SessionExercise,
    TrainingBlock,
    WorkoutSet,
    new_id,
)
from .progression import target_rir_for_microcycle
from .sessions import SessionGenerator, session_start_times
from .volume import VolumePlanner

MicrocycleState = Literal["complete", "not_started", "started"]


@dataclass
class MicrocycleReview:
    """Outcome of comparing persisted microcycles against completion state."""

    kept: list[Microcycle] = field(default_factory=list)
    regenerated: list[Microcycle] = field(default_factory=list)


@dataclass
class CascadeDeletes:
    """Ids to delete, per collection, in cascade order."""

    microcycles: list[str] = field(default_factory=list)
    sessions: list[str] = field(default_factory=list)
    session_exercises: list[str] = field(default_factory=list)
    sets: list[str] = field(default_factory=list)


def classify_microcycle(context: PlanContext, microcycle: Microcycle) -> MicrocycleState:
    """Decide whether a persisted microcycle is complete, untouched, or in progress."""
    if not microcycle.session_order:
        return "not_started"
    sessions = [context.sessions.get(sid) for sid in microcycle.session_order]
    completed = [s for s in sessions if s is not None and s.complete]
    if len(completed) == len(sessions):
        return "complete"
    if not completed:
        return "not_started"
    return "started"


def review_microcycles(context: PlanContext) -> MicrocycleReview:
    """
    Split the block's persisted microcycles into kept and regenerated.

    Raises:
        DataIntegrityError: If a microcycle has started but is not complete,
            or a complete microcycle follows one that must be regenerated
    """
    review = MicrocycleReview()
    for microcycle in context.existing_microcycles:
        state = classify_microcycle(context, microcycle)
        logger.debug("Reviewed microcycle", microcycle_id=microcycle.id, state=state)
        if state == "started":
            raise DataIntegrityError(f"Microcycle {microcycle.id} has started but is not complete.")
        if state == "complete":
            if review.regenerated:
                raise DataIntegrityError(
                    f"Microcycle {microcycle.id} is complete but follows microcycle "
                    f"{review.regenerated[0].id}, which has not started."
                )
            review.kept.append(microcycle)
        else:
            review.regenerated.append(microcycle)
    return review


def collect_cascade_deletes(context: PlanContext, microcycles: Sequence[Microcycle]) -> CascadeDeletes:
    """
    Walk microcycle → session → session exercise → set for the given microcycles.

    Children are found both through the parent's order list and through
    their parent id; only documents present in the snapshot are returned.
    """
    deletes = CascadeDeletes()
    microcycle_ids = {m.id for m in microcycles}
    deletes.microcycles = [m.id for m in microcycles]

    session_ids: list[str] = []
    for microcycle in microcycles:
        session_ids.extend(sid for sid in microcycle.session_order if sid in context.sessions)
    session_ids.extend(s.id for s in context.sessions.values() if s.microcycle_id in microcycle_ids)
    deletes.sessions = list(dict.fromkeys(session_ids))

    session_id_set = set(deletes.sessions)
    session_exercise_ids: list[str] = []
    for session_id in deletes.sessions:
        session_exercise_ids.extend(
            se_id
            for se_id in context.sessions[session_id].session_exercise_order
            if se_id in context.session_exercises
        )
    session_exercise_ids.extend(
        se.id for se in context.session_exercises.values() if se.session_id in session_id_set
    )
    deletes.session_exercises = list(dict.fromkeys(session_exercise_ids))

    session_exercise_id_set = set(deletes.session_exercises)
    set_ids: list[str] = []
    for se_id in deletes.session_exercises:
        set_ids.extend(
            set_id for set_id in context.session_exercises[se_id].set_order if set_id in context.sets
        )
    set_ids.extend(
        s.id
        for s in context.sets.values()
        if s.session_exercise_id in session_exercise_id_set or s.session_id in session_id_set
    )
    deletes.sets = list(dict.fromkeys(set_ids))
    return deletes


def generate_microcycles(
    context: PlanContext,
    first_index: int,
    start_date: datetime,
) -> PlanDraft:
    """
    Generate microcycles first_index .. microcycle_count - 1, chained from start_date.

    The last microcycle of the block is the deload.
    """
    draft = PlanDraft()
    block = context.block
    volume_planner = VolumePlanner(context)
    generator = SessionGenerator(context, draft)
    deload_index = context.microcycle_count - 1
    current = start_date

    for index in range(first_index, context.microcycle_count):
        is_deload = index == deload_index
        target_rir = target_rir_for_microcycle(
            index, is_deload, context.settings.first_microcycle_rir
        )
        microcycle = Microcycle(
            id=new_id(),
            user_id=block.user_id,
            training_block_id=block.id,
            start_date=current,
            end_date=current + timedelta(days=block.microcycle_length_days),
        )
        draft.microcycles.append(microcycle)

        volume = volume_planner.plan_microcycle(index, is_deload)
        start_times = session_start_times(block, microcycle.start_date)
        for session_index, (start_time, assigned) in enumerate(
            zip(start_times, context.session_plan)
        ):
            generator.generate_session(
                microcycle,
                index,
                session_index,
                start_time,
                assigned,
                volume,
                target_rir,
                is_deload,
            )
        current = microcycle.end_date

    return draft


def generate_or_update_block(
    block: TrainingBlock,
    calibrations: Sequence[ExerciseCalibration],
    exercises: Sequence[Exercise],
    equipment: Sequence[EquipmentType],
    microcycles: Sequence[Microcycle] = (),
    sessions: Sequence[Session] = (),
    session_exercises: Sequence[SessionExercise] = (),
    sets: Sequence[WorkoutSet] = (),
    start_date: datetime | None = None,
    settings: PlannerSettings = DEFAULT_SETTINGS,
) -> BlockPlanChanges:
    """
    Plan (or re-plan) a training block against its persisted state.

    Args:
        block: Block configuration
        calibrations: Calibrations referenced by the block
        exercises: Exercise catalog
        equipment: Equipment catalog
        microcycles: Persisted microcycles (empty to plan from scratch)
        sessions: Persisted sessions
        session_exercises: Persisted session exercises
        sets: Persisted sets
        start_date: Start of the first new microcycle when nothing is kept;
            defaults to now
        settings: Planner tunables

    Returns:
        BlockPlanChanges with creates and deletes per entity type

    Raises:
        ConfigurationError: If the catalog cannot support the block
        DataIntegrityError: If persisted microcycles are in an unplannable state
    """
    if block.cycle_type == "FreeForm":
        logger.info("Skipping free-form block", block_id=block.id)
        return BlockPlanChanges()

    context = PlanContext(
        block,
        calibrations,
        exercises,
        equipment,
        microcycles,
        sessions,
        session_exercises,
        sets,
        settings,
    )
    review = review_microcycles(context)
    deletes = collect_cascade_deletes(context, review.regenerated)

    if review.kept:
        next_start = review.kept[-1].end_date
    elif start_date is not None:
        next_start = start_date
    else:
        next_start = datetime.now()

    draft = generate_microcycles(context, len(review.kept), next_start)

    logger.info(
        "Planned training block",
        block_id=block.id,
        kept=len(review.kept),
        deleted=len(deletes.microcycles),
        generated=len(draft.microcycles),
    )

    return BlockPlanChanges(
        microcycles=DocumentOperations(create=draft.microcycles, delete=deletes.microcycles),
        sessions=DocumentOperations(create=draft.sessions, delete=deletes.sessions),
        session_exercises=DocumentOperations(
            create=draft.session_exercises, delete=deletes.session_exercises
        ),
        sets=DocumentOperations(create=draft.sets, delete=deletes.sets),
    )
