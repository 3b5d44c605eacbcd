"""
Data models for block-planner.

All core dataclasses representing the training catalog (exercises,
equipment, calibrations), the block configuration, and the planned
schedule (microcycles, sessions, session exercises, sets).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import MAX_MICROCYCLE_COUNT, MIN_MICROCYCLE_COUNT, REP_RANGES

CycleType = Literal["MuscleGain", "Resensitization", "Cut", "FreeForm"]
RepRange = Literal["Heavy", "Medium", "Light"]
ProgressionType = Literal["Rep", "Load"]

CYCLE_TYPES: tuple[str, ...] = ("MuscleGain", "Resensitization", "Cut", "FreeForm")
PROGRESSION_TYPES: tuple[str, ...] = ("Rep", "Load")


def new_id() -> str:
    """Return a fresh document id."""
    return str(uuid.uuid4())


def _check_score(value: int | None, name: str) -> None:
    if value is not None and not 0 <= value <= 3:
        raise ValueError(f"{name} must be between 0 and 3")


# =============================================================================
# Subjective feedback
# =============================================================================


@dataclass
class Rsm:
    """
    Raw stimulus magnitude reported after training a muscle.

    Each component is scored 0-3; None means not reported.
    """

    mind_muscle_connection: int | None = None
    pump: int | None = None
    disruption: int | None = None

    def __post_init__(self) -> None:
        _check_score(self.mind_muscle_connection, "mind_muscle_connection")
        _check_score(self.pump, "pump")
        _check_score(self.disruption, "disruption")


@dataclass
class Fatigue:
    """Fatigue reported (or guessed) for an exercise, each component 0-3."""

    joint_and_tissue_disruption: int | None = None
    perceived_effort: int | None = None
    unused_muscle_performance: int | None = None

    def __post_init__(self) -> None:
        _check_score(self.joint_and_tissue_disruption, "joint_and_tissue_disruption")
        _check_score(self.perceived_effort, "perceived_effort")
        _check_score(self.unused_muscle_performance, "unused_muscle_performance")


# =============================================================================
# Catalog
# =============================================================================


@dataclass
class EquipmentType:
    """
    A piece of equipment and the loads it can produce.

    weight_options is normalised to an ascending list without duplicates.
    An empty list is allowed here; the planner rejects it when used.
    """

    id: str
    title: str
    weight_options: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if any(w < 0 for w in self.weight_options):
            raise ValueError("weight_options must be non-negative")
        self.weight_options = sorted(set(self.weight_options))


@dataclass
class Exercise:
    """A catalog exercise. Read-only to the planner."""

    id: str
    name: str
    equipment_type_id: str
    rep_range: RepRange = "Medium"
    preferred_progression_type: ProgressionType = "Rep"
    primary_muscle_groups: list[str] = field(default_factory=list)
    initial_fatigue_guess: Fatigue = field(default_factory=Fatigue)

    def __post_init__(self) -> None:
        if self.rep_range not in REP_RANGES:
            raise ValueError(f"rep_range must be one of {tuple(REP_RANGES)}")
        if self.preferred_progression_type not in PROGRESSION_TYPES:
            raise ValueError(f"preferred_progression_type must be one of {PROGRESSION_TYPES}")

    @property
    def muscle_group(self) -> str:
        """Group key used for volume planning: first primary muscle group, else the id."""
        return self.primary_muscle_groups[0] if self.primary_muscle_groups else self.id


@dataclass
class ExerciseCalibration:
    """One performed (reps, weight) reference point for an exercise."""

    id: str
    exercise_id: str
    user_id: str
    reps: int
    weight: float

    def __post_init__(self) -> None:
        if self.reps < 1:
            raise ValueError("reps must be at least 1")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")


# =============================================================================
# Block configuration
# =============================================================================


@dataclass
class TrainingBlock:
    """
    Root configuration of a training block (mesocycle).

    calibrated_exercise_ids holds calibration ids, in the order the
    exercises should be considered when distributing them over sessions.
    planned_microcycle_count of None means the configured default.
    """

    id: str
    user_id: str
    title: str = ""
    cycle_type: CycleType = "MuscleGain"
    sessions_per_microcycle: int = 3
    microcycle_length_days: int = 7
    rest_day_offsets: list[int] = field(default_factory=list)
    planned_microcycle_count: int | None = None
    calibrated_exercise_ids: list[str] = field(default_factory=list)
    completed_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.cycle_type not in CYCLE_TYPES:
            raise ValueError(f"cycle_type must be one of {CYCLE_TYPES}")
        if self.sessions_per_microcycle < 1:
            raise ValueError("sessions_per_microcycle must be at least 1")
        if self.microcycle_length_days < 1:
            raise ValueError("microcycle_length_days must be at least 1")
        for offset in self.rest_day_offsets:
            if not 0 <= offset < self.microcycle_length_days:
                raise ValueError(
                    f"rest day offset {offset} outside microcycle of "
                    f"{self.microcycle_length_days} days"
                )
        if self.planned_microcycle_count is not None and not (
            MIN_MICROCYCLE_COUNT <= self.planned_microcycle_count <= MAX_MICROCYCLE_COUNT
        ):
            raise ValueError(
                f"planned_microcycle_count must be between {MIN_MICROCYCLE_COUNT} "
                f"and {MAX_MICROCYCLE_COUNT}"
            )


# =============================================================================
# Planned schedule
# =============================================================================


@dataclass
class Microcycle:
    """One repeating unit (typically a week) of a training block."""

    id: str
    user_id: str
    training_block_id: str
    start_date: datetime
    end_date: datetime
    session_order: list[str] = field(default_factory=list)
    completed_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")


@dataclass
class Session:
    """
    A single workout day.

    complete is owned by the workout-execution side; the planner only reads it.
    """

    id: str
    user_id: str
    microcycle_id: str
    title: str
    start_time: datetime
    complete: bool = False
    session_exercise_order: list[str] = field(default_factory=list)
    rsm: Rsm | None = None
    fatigue: Fatigue | None = None


@dataclass
class SessionExercise:
    """
    An exercise assigned to a session, with its post-workout feedback.

    soreness_score and performance_score are filled in after training
    (0-3, None until reported). is_recovery_exercise marks volume that was
    cut because of a poor stimulus-to-fatigue signal.
    """

    id: str
    user_id: str
    session_id: str
    exercise_id: str
    set_order: list[str] = field(default_factory=list)
    rsm: Rsm | None = None
    fatigue: Fatigue | None = None
    soreness_score: int | None = None
    performance_score: int | None = None
    is_recovery_exercise: bool = False

    def __post_init__(self) -> None:
        _check_score(self.soreness_score, "soreness_score")
        _check_score(self.performance_score, "performance_score")


@dataclass
class WorkoutSet:
    """
    A single working set.

    planned_* values are produced by the planner (planned_rir is None
    during deload); actual_* and rir are recorded during the workout.
    """

    id: str
    user_id: str
    exercise_id: str
    session_id: str
    session_exercise_id: str
    planned_weight: float | None = None
    planned_reps: int | None = None
    planned_rir: int | None = None
    actual_weight: float | None = None
    actual_reps: int | None = None
    rir: int | None = None

    def __post_init__(self) -> None:
        if self.planned_reps is not None and self.planned_reps < 0:
            raise ValueError("planned_reps must be non-negative")
        if self.planned_weight is not None and self.planned_weight < 0:
            raise ValueError("planned_weight must be non-negative")
        if self.planned_rir is not None and self.planned_rir < 0:
            raise ValueError("planned_rir must be non-negative")


# =============================================================================
# Planner output
# =============================================================================


@dataclass
class DocumentOperations:
    """Creates, updates and deleted ids for one entity type."""

    create: list = field(default_factory=list)
    update: list = field(default_factory=list)
    delete: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.create or self.update or self.delete)


COLLECTIONS: tuple[str, ...] = ("microcycles", "sessions", "session_exercises", "sets")


@dataclass
class BlockPlanChanges:
    """The full diff produced by one planning call, one entry per entity type."""

    microcycles: DocumentOperations = field(default_factory=DocumentOperations)
    sessions: DocumentOperations = field(default_factory=DocumentOperations)
    session_exercises: DocumentOperations = field(default_factory=DocumentOperations)
    sets: DocumentOperations = field(default_factory=DocumentOperations)

    def by_collection(self) -> dict[str, DocumentOperations]:
        """Map collection name to its operations, in cascade order."""
        return {name: getattr(self, name) for name in COLLECTIONS}

    def is_empty(self) -> bool:
        return all(ops.is_empty() for ops in self.by_collection().values())
