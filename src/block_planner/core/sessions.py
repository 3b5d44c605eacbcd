"""
Session scheduling and generation.

Sessions are placed on the non-rest days of a microcycle. Each generated
session gets one SessionExercise per assigned exercise, and every set of
an exercise in that session shares the same planned weight, reps and RIR.

Deload microcycle
-----------------
  reps   : progression reps halved (floor, minimum 1)
  weight : unchanged in the first half of the sessions; halved and rounded
           down to an equipment option from session index
           sessions_per_microcycle // 2 onwards
  RIR    : none
"""

from datetime import datetime, timedelta
from typing import Sequence

from .context import CalibratedExercise, PlanContext, PlanDraft
from .equipment import find_nearest_weight
from .errors import ConfigurationError
from .models import (
    EquipmentType,
    Microcycle,
    Session,
    SessionExercise,
    TrainingBlock,
    WorkoutSet,
    new_id,
)
from .progression import ProgressionTarget, calculate_progressed_targets
from .volume import VolumePlan


def calculate_session_offsets(block: TrainingBlock) -> list[int]:
    """
    Day offsets (from microcycle start) of each session, in session order.

    Sessions take the non-rest days in order. When there are more sessions
    than training days, the earliest days carry the extra sessions.

    Raises:
        ConfigurationError: If every day of the microcycle is a rest day
    """
    rest_days = set(block.rest_day_offsets)
    training_days = [d for d in range(block.microcycle_length_days) if d not in rest_days]
    if not training_days:
        raise ConfigurationError(
            f"Block {block.id} has no training days in a {block.microcycle_length_days}-day microcycle"
        )

    count = block.sessions_per_microcycle
    if count <= len(training_days):
        return training_days[:count]

    per_day, extra = divmod(count, len(training_days))
    offsets: list[int] = []
    for i, day in enumerate(training_days):
        offsets.extend([day] * (per_day + (1 if i < extra else 0)))
    return offsets


def deload_targets(
    target: ProgressionTarget,
    equipment: EquipmentType,
    session_index: int,
    sessions_per_microcycle: int,
) -> ProgressionTarget:
    """Apply deload reductions to a progression target."""
    reps = max(1, target.target_reps // 2)
    weight = target.target_weight
    if session_index >= sessions_per_microcycle // 2:
        halved = find_nearest_weight(equipment, weight / 2, "down")
        weight = halved if halved is not None else equipment.weight_options[0]
    return ProgressionTarget(target_weight=weight, target_reps=reps)


class SessionGenerator:
    """Builds sessions, session exercises and sets into a PlanDraft."""

    def __init__(self, context: PlanContext, draft: PlanDraft):
        self.context = context
        self.draft = draft

    def generate_session(
        self,
        microcycle: Microcycle,
        microcycle_index: int,
        session_index: int,
        start_time: datetime,
        assigned: Sequence[CalibratedExercise],
        volume: VolumePlan,
        target_rir: int | None,
        is_deload: bool,
    ) -> Session:
        """
        Generate one session and everything below it.

        Args:
            microcycle: Microcycle the session belongs to
            microcycle_index: Zero-based microcycle index
            session_index: Zero-based session index within the microcycle
            start_time: Session date
            assigned: Exercises of this session slot, in order
            volume: Set counts of the microcycle
            target_rir: RIR of every set, None in deload
            is_deload: Whether this is the deload microcycle

        Returns:
            The new session (already appended to the draft)
        """
        block = self.context.block
        title = f"Microcycle {microcycle_index + 1} - Session {session_index + 1}"
        if is_deload:
            title += " (Deload)"
        session = Session(
            id=new_id(),
            user_id=block.user_id,
            microcycle_id=microcycle.id,
            title=title,
            start_time=start_time,
        )
        self.draft.sessions.append(session)
        microcycle.session_order.append(session.id)

        for pair in assigned:
            session_exercise = self._generate_session_exercise(
                session, pair, microcycle_index, session_index, volume, target_rir, is_deload
            )
            session.session_exercise_order.append(session_exercise.id)
        return session

    def _generate_session_exercise(
        self,
        session: Session,
        pair: CalibratedExercise,
        microcycle_index: int,
        session_index: int,
        volume: VolumePlan,
        target_rir: int | None,
        is_deload: bool,
    ) -> SessionExercise:
        exercise = pair.exercise
        equipment = self.context.equipment_for(exercise)
        set_count = volume.set_counts.get(exercise.id)
        if set_count is None:
            raise ConfigurationError(f"No set count planned for exercise {exercise.id}")

        target = calculate_progressed_targets(
            exercise,
            pair.calibration,
            equipment,
            microcycle_index,
            self.context.settings.first_microcycle_rir,
            self.context.settings,
        )
        if is_deload:
            target = deload_targets(
                target, equipment, session_index, self.context.block.sessions_per_microcycle
            )

        session_exercise = SessionExercise(
            id=new_id(),
            user_id=self.context.block.user_id,
            session_id=session.id,
            exercise_id=exercise.id,
            is_recovery_exercise=exercise.id in volume.recovery_exercise_ids,
        )
        self.draft.session_exercises.append(session_exercise)

        for _ in range(set_count):
            workout_set = WorkoutSet(
                id=new_id(),
                user_id=self.context.block.user_id,
                exercise_id=exercise.id,
                session_id=session.id,
                session_exercise_id=session_exercise.id,
                planned_weight=target.target_weight,
                planned_reps=target.target_reps,
                planned_rir=None if is_deload else target_rir,
            )
            self.draft.sets.append(workout_set)
            session_exercise.set_order.append(workout_set.id)
        return session_exercise


def session_start_times(block: TrainingBlock, microcycle_start: datetime) -> list[datetime]:
    """Start time of every session of a microcycle beginning at microcycle_start."""
    return [microcycle_start + timedelta(days=d) for d in calculate_session_offsets(block)]
