"""
Unit tests for volume planning (sets per exercise per microcycle).

Most tests use a single "quads" muscle group spread over three session
slots, so every exercise sits alone in its slot and the per-session
ceiling only matters where a test packs exercises together on purpose.
"""

from datetime import datetime, timedelta

import pytest

from block_planner.core.context import PlanContext, distribute_exercises_across_sessions
from block_planner.core.errors import ConfigurationError
from block_planner.core.models import (
    EquipmentType,
    Exercise,
    ExerciseCalibration,
    Fatigue,
    Microcycle,
    Rsm,
    Session,
    SessionExercise,
    TrainingBlock,
)
from block_planner.core.volume import VolumePlanner, baseline_set_count


# ===========================================================================
# Helpers
# ===========================================================================

START = datetime(2026, 1, 5)


def _exercise(exercise_id: str, group: str = "quads", **overrides) -> Exercise:
    defaults = dict(
        id=exercise_id,
        name=exercise_id.title(),
        equipment_type_id="bar",
        primary_muscle_groups=[group],
    )
    defaults.update(overrides)
    return Exercise(**defaults)


def _calibration(exercise_id: str) -> ExerciseCalibration:
    return ExerciseCalibration(
        id=f"cal-{exercise_id}", exercise_id=exercise_id, user_id="u1", reps=10, weight=100
    )


def _block(exercise_ids: list[str], sessions: int = 3, count: int = 6) -> TrainingBlock:
    return TrainingBlock(
        id="block",
        user_id="u1",
        sessions_per_microcycle=sessions,
        rest_day_offsets=[1, 3, 5, 6],
        planned_microcycle_count=count,
        calibrated_exercise_ids=[f"cal-{e}" for e in exercise_ids],
    )


class _History:
    """Builds persisted microcycles with one complete session each."""

    def __init__(self):
        self.microcycles: list[Microcycle] = []
        self.sessions: list[Session] = []
        self.session_exercises: list[SessionExercise] = []

    def add(self, records: list[dict], complete: bool = True) -> Microcycle:
        """
        Append a microcycle holding the given session exercises.

        Each record needs exercise_id and sets; any other key is passed to
        SessionExercise (feedback scores, rsm, fatigue, recovery flag).
        """
        index = len(self.microcycles)
        start = START + timedelta(days=7 * index)
        microcycle = Microcycle(
            id=f"mc{index}",
            user_id="u1",
            training_block_id="block",
            start_date=start,
            end_date=start + timedelta(days=7),
        )
        session = Session(
            id=f"mc{index}-s0",
            user_id="u1",
            microcycle_id=microcycle.id,
            title=f"Microcycle {index + 1} - Session 1",
            start_time=start,
            complete=complete,
        )
        microcycle.session_order.append(session.id)
        for n, record in enumerate(records):
            fields = dict(record)
            set_count = fields.pop("sets")
            se = SessionExercise(
                id=f"{session.id}-se{n}",
                user_id="u1",
                session_id=session.id,
                set_order=[f"{session.id}-se{n}-set{k}" for k in range(set_count)],
                **fields,
            )
            session.session_exercise_order.append(se.id)
            self.session_exercises.append(se)
        self.microcycles.append(microcycle)
        self.sessions.append(session)
        return microcycle


def _context(
    exercise_ids: list[str],
    sessions: int = 3,
    count: int = 6,
    history: _History | None = None,
    exercises: list[Exercise] | None = None,
) -> PlanContext:
    history = history or _History()
    return PlanContext(
        _block(exercise_ids, sessions, count),
        [_calibration(e) for e in exercise_ids],
        exercises or [_exercise(e) for e in exercise_ids],
        [EquipmentType(id="bar", title="Barbell", weight_options=[20, 40, 60, 80, 100])],
        history.microcycles,
        history.sessions,
        history.session_exercises,
    )


def _plan(context: PlanContext, index: int, is_deload: bool = False) -> dict[str, int]:
    return VolumePlanner(context).plan_microcycle(index, is_deload).set_counts


# ===========================================================================
# Baseline
# ===========================================================================

class TestBaselineSetCount:
    """total = 2 × exercises + microcycle index, remainder to the earliest."""

    def test_first_microcycle(self):
        assert [baseline_set_count(0, 3, p, False) for p in range(3)] == [2, 2, 2]

    def test_one_extra_set_per_microcycle(self):
        # 7 sets over 3 exercises
        assert [baseline_set_count(1, 3, p, False) for p in range(3)] == [3, 2, 2]
        # 8 sets over 3 exercises
        assert [baseline_set_count(2, 3, p, False) for p in range(3)] == [3, 3, 2]

    def test_deload_halves_previous_baseline(self):
        # previous (index 2): 3, 3, 2 → 1, 1, 1
        assert [baseline_set_count(3, 3, p, True) for p in range(3)] == [1, 1, 1]

    def test_deload_never_below_one(self):
        assert baseline_set_count(1, 1, 0, True) == 1


class TestBaselinePlan:
    def test_progression_without_history(self):
        context = _context(["a", "b", "c"])
        assert _plan(context, 0) == {"a": 2, "b": 2, "c": 2}
        assert _plan(context, 1) == {"a": 3, "b": 2, "c": 2}
        assert _plan(context, 2) == {"a": 3, "b": 3, "c": 2}

    def test_deload_is_smaller_than_previous_microcycle(self):
        context = _context(["a", "b", "c"])
        # index 4 baseline: 10 sets → 4, 3, 3; halved → 2, 1, 1
        deload = _plan(context, 5, is_deload=True)
        assert deload == {"a": 2, "b": 1, "c": 1}
        assert sum(deload.values()) < sum(_plan(context, 4).values())

    def test_per_exercise_cap(self):
        # 2 + 7 = 9 → capped at 8
        context = _context(["a"], sessions=1, count=10)
        assert _plan(context, 7) == {"a": 8}

    def test_session_ceiling_trims_latest_exercise(self):
        # one slot: 11 sets → 3, 2, 2, 2, 2 → last one trimmed to reach 10
        ids = ["a", "b", "c", "d", "e"]
        context = _context(ids, sessions=1)
        counts = _plan(context, 1)
        assert counts == {"a": 3, "b": 2, "c": 2, "d": 2, "e": 1}
        assert sum(counts.values()) == 10

    def test_more_exercises_than_session_ceiling(self):
        # eleven exercises need at least eleven sets in one slot
        context = _context([f"e{i}" for i in range(11)], sessions=1)
        with pytest.raises(ConfigurationError, match="11 exercises in one session"):
            _plan(context, 0)

    def test_groups_planned_independently(self):
        exercises = [_exercise("a"), _exercise("b"), _exercise("c", group="chest")]
        context = _context(["a", "b", "c"], exercises=exercises)
        # quads: 5 sets over 2 → 3, 2; chest: 3 sets over 1
        assert _plan(context, 1) == {"a": 3, "b": 2, "c": 3}

    def test_exercise_without_muscle_group_is_its_own_group(self):
        exercises = [_exercise("a"), _exercise("b", primary_muscle_groups=[])]
        context = _context(["a", "b"], exercises=exercises)
        assert context.exercises["b"].muscle_group == "b"
        assert _plan(context, 1) == {"a": 3, "b": 3}


# ===========================================================================
# History
# ===========================================================================

class TestHistory:
    def test_previous_set_count_replaces_baseline(self):
        history = _History()
        history.add([
            dict(exercise_id="a", sets=4),
            dict(exercise_id="b", sets=2),
            dict(exercise_id="c", sets=2),
        ])
        context = _context(["a", "b", "c"], history=history)
        # no feedback → nothing added
        assert _plan(context, 1) == {"a": 4, "b": 2, "c": 2}

    def test_incomplete_previous_microcycle_falls_back_to_baseline(self):
        history = _History()
        history.add([dict(exercise_id=e, sets=5) for e in ("a", "b", "c")])
        history.add([dict(exercise_id=e, sets=5) for e in ("a", "b", "c")], complete=False)
        context = _context(["a", "b", "c"], history=history)
        # walk stops at microcycle 1 → baseline for index 2
        assert _plan(context, 2) == {"a": 3, "b": 3, "c": 2}

    def test_sets_added_to_best_sfr_first(self):
        history = _History()
        history.add([
            # recommendation 2, SFR 3 / 3 = 1
            dict(exercise_id="a", sets=2, soreness_score=0, performance_score=0,
                 rsm=Rsm(1, 1, 1), fatigue=Fatigue(1, 1, 1)),
            # recommendation 1, SFR 9 / 3 = 3
            dict(exercise_id="b", sets=2, soreness_score=0, performance_score=1,
                 rsm=Rsm(3, 3, 3), fatigue=Fatigue(1, 1, 1)),
            # recommendation 1, SFR 6 / 3 = 2
            dict(exercise_id="c", sets=2, soreness_score=1, performance_score=0,
                 rsm=Rsm(2, 2, 2), fatigue=Fatigue(1, 1, 1)),
        ])
        context = _context(["a", "b", "c"], history=history)
        # 4 recommended, capped at 3: b +2, c +1, a gets nothing
        assert _plan(context, 1) == {"a": 2, "b": 4, "c": 3}

    def test_missing_sfr_ranks_last(self):
        history = _History()
        history.add([
            dict(exercise_id="a", sets=2, soreness_score=0, performance_score=0),
            dict(exercise_id="b", sets=2, soreness_score=0, performance_score=0,
                 rsm=Rsm(1, 1, 1), fatigue=Fatigue(1, 1, 1)),
        ])
        context = _context(["a", "b"], history=history)
        # capped at 3: b +2 first, then a +1
        assert _plan(context, 1) == {"a": 3, "b": 4}

    def test_poor_performance_triggers_recovery(self):
        history = _History()
        history.add([
            dict(exercise_id="a", sets=5, soreness_score=1, performance_score=3),
            dict(exercise_id="b", sets=2),
            dict(exercise_id="c", sets=2),
        ])
        context = _context(["a", "b", "c"], history=history)
        plan = VolumePlanner(context).plan_microcycle(1, False)
        # 5 // 2 = 2
        assert plan.set_counts["a"] == 2
        assert plan.recovery_exercise_ids == {"a"}

    def test_recovery_records_are_skipped(self):
        history = _History()
        history.add([
            dict(exercise_id="a", sets=3, soreness_score=0, performance_score=0),
            dict(exercise_id="b", sets=2),
            dict(exercise_id="c", sets=2),
        ])
        history.add([
            dict(exercise_id="a", sets=1, is_recovery_exercise=True),
            dict(exercise_id="b", sets=4),
            dict(exercise_id="c", sets=4),
        ])
        context = _context(["a", "b", "c"], history=history)
        # a comes from microcycle 0 (two back), so its recommendation is 0
        assert _plan(context, 2) == {"a": 3, "b": 4, "c": 4}

    def test_additions_respect_exercise_cap(self):
        history = _History()
        history.add([dict(exercise_id="a", sets=7, soreness_score=0, performance_score=0)])
        context = _context(["a"], sessions=1, history=history)
        assert _plan(context, 1) == {"a": 8}

    def test_capped_session_gets_no_additions(self):
        history = _History()
        history.add([
            dict(exercise_id="a", sets=5, soreness_score=0, performance_score=0),
            dict(exercise_id="b", sets=5, soreness_score=0, performance_score=0),
        ])
        context = _context(["a", "b"], sessions=1, history=history)
        assert _plan(context, 1) == {"a": 5, "b": 5}

    def test_deload_halves_history(self):
        history = _History()
        for _ in range(3):
            history.add([
                dict(exercise_id="a", sets=4, soreness_score=0, performance_score=3),
                dict(exercise_id="b", sets=3),
                dict(exercise_id="c", sets=3),
            ])
        context = _context(["a", "b", "c"], count=4, history=history)
        plan = VolumePlanner(context).plan_microcycle(3, True)
        assert plan.set_counts == {"a": 2, "b": 1, "c": 1}
        assert plan.recovery_exercise_ids == set()


# ===========================================================================
# Distribution
# ===========================================================================

class TestDistribution:
    def _pairs(self, context: PlanContext):
        return [pair for slot in context.session_plan for pair in slot]

    def test_headliners_from_distinct_groups(self):
        exercises = [
            _exercise("squat", initial_fatigue_guess=Fatigue(3, 3, 3)),
            _exercise("leg_press", initial_fatigue_guess=Fatigue(2, 2, 1)),
            _exercise("bench", group="chest", initial_fatigue_guess=Fatigue(3, 2, 2)),
            _exercise("fly", group="chest", rep_range="Light", initial_fatigue_guess=Fatigue(1, 1, 1)),
            _exercise("row", group="back", initial_fatigue_guess=Fatigue(2, 2, 2)),
        ]
        ids = [e.id for e in exercises]
        context = _context(ids, exercises=exercises)
        plan = [[p.exercise.id for p in slot] for slot in context.session_plan]
        assert plan == [["squat", "leg_press"], ["bench", "fly"], ["row"]]

    def test_more_slots_than_exercises_leaves_empty_sessions(self):
        context = _context(["a"], sessions=3)
        assert [len(slot) for slot in context.session_plan] == [1, 0, 0]

    def test_leftovers_sorted_heavy_first(self):
        exercises = [
            _exercise("a", initial_fatigue_guess=Fatigue(3, 3, 3)),
            _exercise("b", rep_range="Light", initial_fatigue_guess=Fatigue(2, 2, 2)),
            _exercise("c", rep_range="Heavy", initial_fatigue_guess=Fatigue(1, 1, 1)),
        ]
        context = _context(["a", "b", "c"], sessions=1, exercises=exercises)
        assert [p.exercise.id for p in context.session_plan[0]] == ["a", "c", "b"]

    def test_every_exercise_assigned_once(self):
        ids = [f"e{i}" for i in range(7)]
        exercises = [_exercise(e, group=f"g{i % 3}") for i, e in enumerate(ids)]
        context = _context(ids, exercises=exercises)
        assigned = sorted(p.exercise.id for p in self._pairs(context))
        assert assigned == sorted(ids)

    def test_distribution_function_directly(self):
        context = _context(["a", "b"], sessions=2)
        slots = distribute_exercises_across_sessions(self._pairs(context), 2)
        assert [[p.exercise.id for p in s] for s in slots] == [["a"], ["b"]]


class TestContextValidation:
    def test_unknown_calibration(self):
        with pytest.raises(ConfigurationError, match="Calibration"):
            PlanContext(
                _block(["a"]),
                [],
                [_exercise("a")],
                [EquipmentType(id="bar", title="Barbell", weight_options=[20])],
            )

    def test_missing_equipment(self):
        with pytest.raises(ConfigurationError, match="Equipment type"):
            PlanContext(_block(["a"]), [_calibration("a")], [_exercise("a")], [])

    def test_exercise_calibrated_twice(self):
        block = _block(["a"])
        block.calibrated_exercise_ids = ["cal-a", "cal-a2"]
        second = ExerciseCalibration(id="cal-a2", exercise_id="a", user_id="u1", reps=5, weight=80)
        with pytest.raises(ConfigurationError, match="more than once"):
            PlanContext(
                block,
                [_calibration("a"), second],
                [_exercise("a")],
                [EquipmentType(id="bar", title="Barbell", weight_options=[20])],
            )
