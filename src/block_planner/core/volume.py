"""
Volume planning: how many sets each exercise gets in a microcycle.

Set counts are decided per muscle group, independently:

1. Baseline
   total = 2 × exercises_in_group + microcycle_index, split evenly with the
   remainder going to the earliest exercises, each capped at 8.
   Deload uses the previous microcycle's baseline halved (minimum 1).

2. History
   Walk back through complete microcycles (last session complete) until
   every exercise of the group has a non-recovery record; an incomplete
   microcycle ends the walk. A found record's set count replaces the
   baseline (capped at 8). In deload it is halved instead.

3. Recommendation (accumulation only)
   Feedback on the previous record gives -1 (recovery: halve, minimum 1),
   or 0..2 sets to add. Records found two or more microcycles back get 0.

4. Allocation
   Up to min(sum of recommendations, 3) sets go to candidates ranked by SFR
   (descending, missing SFR last) then group position, at most 2 per
   exercise, 8 per exercise and 10 per muscle group in one session.

Finally any session slot still over the muscle-group ceiling is trimmed from
the latest exercises of the group.
"""

from dataclasses import dataclass, field

from loguru import logger

from .adaptation import recommended_set_change, session_exercise_sfr
from .context import CalibratedExercise, PlanContext
from .errors import ConfigurationError
from .models import SessionExercise


@dataclass
class VolumePlan:
    """Set counts for one microcycle."""

    set_counts: dict[str, int] = field(default_factory=dict)
    recovery_exercise_ids: set[str] = field(default_factory=set)


@dataclass
class _Candidate:
    exercise_id: str
    sfr: float
    group_index: int


def baseline_set_count(
    microcycle_index: int,
    exercises_in_group: int,
    position_in_group: int,
    is_deload: bool,
    sets_per_exercise: int = 2,
) -> int:
    """
    Default set count of one exercise before history is considered.

    Args:
        microcycle_index: Zero-based microcycle index
        exercises_in_group: Exercises sharing the muscle group
        position_in_group: Position of this exercise in the group ordering
        is_deload: Whether the microcycle is the deload
        sets_per_exercise: Microcycle 0 sets per exercise

    Returns:
        Uncapped set count
    """
    if is_deload:
        previous = baseline_set_count(
            microcycle_index - 1, exercises_in_group, position_in_group, False, sets_per_exercise
        )
        return max(1, previous // 2)

    total = sets_per_exercise * exercises_in_group + microcycle_index
    per_exercise, remainder = divmod(total, exercises_in_group)
    return per_exercise + 1 if position_in_group < remainder else per_exercise


class VolumePlanner:
    """Computes set counts per exercise from a PlanContext."""

    def __init__(self, context: PlanContext):
        self.context = context
        self.settings = context.settings

    def plan_microcycle(self, microcycle_index: int, is_deload: bool) -> VolumePlan:
        """
        Set counts for every exercise of the block in one microcycle.

        Args:
            microcycle_index: Zero-based microcycle index
            is_deload: Whether this is the deload microcycle

        Returns:
            VolumePlan keyed by exercise id
        """
        plan = VolumePlan()
        for muscle_group, pairs in self.context.muscle_groups.items():
            counts, recovery = self._plan_muscle_group(pairs, microcycle_index, is_deload)
            plan.set_counts.update(counts)
            plan.recovery_exercise_ids |= recovery
            logger.debug(
                "Planned muscle group volume",
                muscle_group=muscle_group,
                microcycle_index=microcycle_index,
                total_sets=sum(counts.values()),
            )
        return plan

    # ------------------------------------------------------------------
    # Per muscle group
    # ------------------------------------------------------------------

    def _plan_muscle_group(
        self,
        pairs: tuple[CalibratedExercise, ...],
        microcycle_index: int,
        is_deload: bool,
    ) -> tuple[dict[str, int], set[str]]:
        s = self.settings
        exercise_ids = [p.exercise.id for p in pairs]
        counts = {
            exercise_id: min(
                baseline_set_count(
                    microcycle_index, len(pairs), position, is_deload, s.baseline_sets_per_exercise
                ),
                s.max_sets_per_exercise,
            )
            for position, exercise_id in enumerate(exercise_ids)
        }
        recovery: set[str] = set()

        slots: dict[int, list[str]] = {}
        for exercise_id in exercise_ids:
            slot = self.context.exercise_session_index.get(exercise_id)
            if slot is not None:
                slots.setdefault(slot, []).append(exercise_id)

        previous, stale = self._find_previous_records(set(exercise_ids), microcycle_index)
        if not previous:
            self._clamp_session_totals(counts, slots)
            return counts, recovery

        for exercise_id, record in previous.items():
            previous_count = min(len(record.set_order), s.max_sets_per_exercise)
            counts[exercise_id] = max(1, previous_count // 2) if is_deload else previous_count

        if is_deload:
            self._clamp_session_totals(counts, slots)
            return counts, recovery

        def slot_of(exercise_id: str) -> list[str]:
            slot = self.context.exercise_session_index.get(exercise_id)
            return slots.get(slot, []) if slot is not None else []

        def previously_capped(exercise_id: str) -> bool:
            total = sum(
                len(previous[e].set_order) for e in slot_of(exercise_id) if e in previous
            )
            return total >= s.max_sets_per_muscle_group_per_session

        sets_to_add = 0
        candidates: list[_Candidate] = []
        for group_index, exercise_id in enumerate(exercise_ids):
            record = previous.get(exercise_id)
            if record is None:
                continue
            recommendation = 0 if exercise_id in stale else recommended_set_change(record)

            if recommendation == -1:
                recovery.add(exercise_id)
                counts[exercise_id] = max(1, len(record.set_order) // 2)
                logger.debug(
                    "Exercise scheduled for recovery",
                    exercise_id=exercise_id,
                    microcycle_index=microcycle_index,
                    sets=counts[exercise_id],
                )
            elif recommendation is not None:
                sets_to_add += recommendation
                if len(record.set_order) < s.max_sets_per_exercise and not previously_capped(
                    exercise_id
                ):
                    ranking = session_exercise_sfr(record)
                    candidates.append(
                        _Candidate(
                            exercise_id=exercise_id,
                            sfr=ranking if ranking is not None else float("-inf"),
                            group_index=group_index,
                        )
                    )

        if sets_to_add > 0 and candidates:
            candidates.sort(key=lambda c: (-c.sfr, c.group_index))
            remaining = min(sets_to_add, s.max_added_sets_per_microcycle)
            for candidate in candidates:
                session_total = sum(counts[e] for e in slot_of(candidate.exercise_id))
                addable = min(
                    remaining,
                    s.max_sets_per_exercise - counts[candidate.exercise_id],
                    s.max_sets_per_muscle_group_per_session - session_total,
                    s.max_added_sets_per_exercise,
                )
                if addable > 0:
                    counts[candidate.exercise_id] += addable
                    remaining -= addable
                    logger.debug(
                        "Added sets",
                        exercise_id=candidate.exercise_id,
                        added=addable,
                        microcycle_index=microcycle_index,
                    )
                if remaining == 0:
                    break

        self._clamp_session_totals(counts, slots)
        return counts, recovery

    def _find_previous_records(
        self,
        exercise_ids: set[str],
        microcycle_index: int,
    ) -> tuple[dict[str, SessionExercise], set[str]]:
        """
        Most recent non-recovery record of each exercise in complete history.

        Returns:
            (exercise id → record, ids whose record is older than the
            immediately preceding microcycle)
        """
        found: dict[str, SessionExercise] = {}
        stale: set[str] = set()
        position = microcycle_index - 1

        while position >= 0 and len(found) < len(exercise_ids):
            microcycle = self.context.history_microcycle(position)
            if microcycle is None or not self.context.is_microcycle_complete(microcycle):
                break
            for session_id in microcycle.session_order:
                session = self.context.sessions.get(session_id)
                if session is None:
                    continue
                for session_exercise_id in session.session_exercise_order:
                    record = self.context.session_exercises.get(session_exercise_id)
                    if (
                        record is None
                        or record.exercise_id not in exercise_ids
                        or record.exercise_id in found
                        or record.is_recovery_exercise
                    ):
                        continue
                    found[record.exercise_id] = record
                    if position < microcycle_index - 1:
                        stale.add(record.exercise_id)
            position -= 1

        return found, stale

    def _clamp_session_totals(self, counts: dict[str, int], slots: dict[int, list[str]]) -> None:
        """
        Trim sets from the latest exercises until every slot meets the group ceiling.

        Raises:
            ConfigurationError: If a slot holds more exercises than the ceiling,
                since each exercise keeps at least one set
        """
        ceiling = self.settings.max_sets_per_muscle_group_per_session
        for members in slots.values():
            if len(members) > ceiling:
                raise ConfigurationError(
                    f"Muscle group has {len(members)} exercises in one session; "
                    f"at most {ceiling} sets fit"
                )
            while sum(counts[e] for e in members) > ceiling:
                trimmable = [e for e in members if counts[e] > 1]
                counts[trimmable[-1]] -= 1
