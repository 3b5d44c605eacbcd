"""
Planning context: indexed, read-only view of everything one planning call needs.

PlanContext is built once per call from the block configuration, the
catalog, and the persisted plan snapshot. It never changes afterwards;
documents produced during generation go into a separate PlanDraft.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from .adaptation import exercise_fatigue_score
from .config import DEFAULT_SETTINGS, PlannerSettings
from .errors import ConfigurationError
from .models import (
    EquipmentType,
    Exercise,
    ExerciseCalibration,
    Microcycle,
    Session,
    SessionExercise,
    TrainingBlock,
    WorkoutSet,
)

REP_RANGE_ORDER: dict[str, int] = {"Heavy": 0, "Medium": 1, "Light": 2}


@dataclass(frozen=True)
class CalibratedExercise:
    """An exercise paired with the calibration that anchors its loads."""

    calibration: ExerciseCalibration
    exercise: Exercise


@dataclass
class PlanDraft:
    """Creation buffers filled while generating new microcycles."""

    microcycles: list[Microcycle] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    session_exercises: list[SessionExercise] = field(default_factory=list)
    sets: list[WorkoutSet] = field(default_factory=list)


def distribute_exercises_across_sessions(
    pairs: Sequence[CalibratedExercise],
    session_count: int,
) -> list[list[CalibratedExercise]]:
    """
    Assign calibrated exercises to the session slots of a microcycle.

    1. Group by muscle group; rank groups by their hardest exercise (fatigue).
    2. Each slot gets a headliner: the hardest exercise of the highest-ranked
       group that has not headlined yet, else of the group with the highest
       remaining fatigue.
    3. Remaining exercises are dealt round-robin, hardest first.
    4. Within a slot the headliner stays first; the rest go Heavy → Medium → Light.

    Args:
        pairs: Calibrated exercises in block order
        session_count: Number of session slots per microcycle

    Returns:
        One list of exercises per slot (possibly empty)
    """
    groups: dict[str, list[CalibratedExercise]] = {}
    for pair in pairs:
        groups.setdefault(pair.exercise.muscle_group, []).append(pair)

    for group in groups.values():
        group.sort(key=lambda p: exercise_fatigue_score(p.exercise), reverse=True)

    ranked_groups = sorted(
        groups,
        key=lambda g: max(exercise_fatigue_score(p.exercise) for p in groups[g]),
        reverse=True,
    )

    sessions: list[list[CalibratedExercise]] = [[] for _ in range(session_count)]
    used_headliners: set[str] = set()

    for slot in sessions:
        candidate = next(
            (g for g in ranked_groups if g not in used_headliners and groups[g]),
            None,
        )
        if candidate is None:
            remaining = [g for g in ranked_groups if groups[g]]
            if not remaining:
                break
            candidate = max(
                remaining,
                key=lambda g: exercise_fatigue_score(groups[g][0].exercise),
            )
        slot.append(groups[candidate].pop(0))
        used_headliners.add(candidate)

    leftovers = [pair for g in ranked_groups for pair in groups[g]]
    leftovers.sort(key=lambda p: exercise_fatigue_score(p.exercise), reverse=True)
    for i, pair in enumerate(leftovers):
        sessions[i % session_count].append(pair)

    for slot in sessions:
        if len(slot) > 1:
            slot[1:] = sorted(slot[1:], key=lambda p: REP_RANGE_ORDER[p.exercise.rep_range])

    return sessions


class PlanContext:
    """
    Read-only lookup structures for one planning call.

    Attributes:
        block: Block being planned
        settings: Planner tunables
        microcycle_count: Planned microcycles (block value or default)
        existing_microcycles: Persisted microcycles of this block, by start date
        session_plan: Exercises per session slot
        muscle_groups: Muscle group → its exercises, in session-slot order
        exercise_session_index: Exercise id → session slot
    """

    def __init__(
        self,
        block: TrainingBlock,
        calibrations: Sequence[ExerciseCalibration],
        exercises: Sequence[Exercise],
        equipment: Sequence[EquipmentType],
        microcycles: Sequence[Microcycle] = (),
        sessions: Sequence[Session] = (),
        session_exercises: Sequence[SessionExercise] = (),
        sets: Sequence[WorkoutSet] = (),
        settings: PlannerSettings = DEFAULT_SETTINGS,
    ):
        self.block = block
        self.settings = settings
        self.microcycle_count: int = (
            block.planned_microcycle_count
            if block.planned_microcycle_count is not None
            else settings.default_microcycle_count
        )

        self.calibrations: Mapping[str, ExerciseCalibration] = MappingProxyType(
            {c.id: c for c in calibrations}
        )
        self.exercises: Mapping[str, Exercise] = MappingProxyType({e.id: e for e in exercises})
        self.equipment: Mapping[str, EquipmentType] = MappingProxyType(
            {e.id: e for e in equipment}
        )

        self.existing_microcycles: tuple[Microcycle, ...] = tuple(
            sorted(
                (m for m in microcycles if m.training_block_id == block.id),
                key=lambda m: m.start_date,
            )
        )
        self.sessions: Mapping[str, Session] = MappingProxyType({s.id: s for s in sessions})
        self.session_exercises: Mapping[str, SessionExercise] = MappingProxyType(
            {se.id: se for se in session_exercises}
        )
        self.sets: Mapping[str, WorkoutSet] = MappingProxyType({s.id: s for s in sets})

        pairs = self._resolve_calibrated_exercises()
        self.session_plan: tuple[tuple[CalibratedExercise, ...], ...] = tuple(
            tuple(slot)
            for slot in distribute_exercises_across_sessions(pairs, block.sessions_per_microcycle)
        )

        groups: dict[str, list[CalibratedExercise]] = {}
        slot_index: dict[str, int] = {}
        for index, slot in enumerate(self.session_plan):
            for pair in slot:
                groups.setdefault(pair.exercise.muscle_group, []).append(pair)
                slot_index[pair.exercise.id] = index
        self.muscle_groups: Mapping[str, tuple[CalibratedExercise, ...]] = MappingProxyType(
            {name: tuple(members) for name, members in groups.items()}
        )
        self.exercise_session_index: Mapping[str, int] = MappingProxyType(slot_index)

    def _resolve_calibrated_exercises(self) -> list[CalibratedExercise]:
        """Resolve the block's calibration ids into (calibration, exercise) pairs."""
        pairs: list[CalibratedExercise] = []
        for calibration_id in self.block.calibrated_exercise_ids:
            calibration = self.calibrations.get(calibration_id)
            if calibration is None:
                raise ConfigurationError(f"Calibration {calibration_id} not found in catalog")
            exercise = self.exercises.get(calibration.exercise_id)
            if exercise is None:
                raise ConfigurationError(
                    f"Exercise {calibration.exercise_id} not found for calibration {calibration_id}"
                )
            if any(p.exercise.id == exercise.id for p in pairs):
                raise ConfigurationError(
                    f"Exercise {exercise.id} ({exercise.name}) is calibrated more than once in block"
                )
            self.equipment_for(exercise)
            pairs.append(CalibratedExercise(calibration=calibration, exercise=exercise))
        return pairs

    def equipment_for(self, exercise: Exercise) -> EquipmentType:
        """Equipment of an exercise."""
        equipment = self.equipment.get(exercise.equipment_type_id)
        if equipment is None:
            raise ConfigurationError(
                f"Equipment type {exercise.equipment_type_id} not found for exercise "
                f"{exercise.id} ({exercise.name})"
            )
        return equipment

    def is_microcycle_complete(self, microcycle: Microcycle) -> bool:
        """Complete when the last session of the microcycle is complete."""
        if not microcycle.session_order:
            return False
        last = self.sessions.get(microcycle.session_order[-1])
        return last is not None and last.complete

    def history_microcycle(self, index: int) -> Microcycle | None:
        """
        Persisted microcycle at a block position, or None.

        Positions past the kept prefix resolve to microcycles that are being
        regenerated, which are never complete, so history walks stop there.
        """
        if 0 <= index < len(self.existing_microcycles):
            return self.existing_microcycles[index]
        return None
