"""
Adaptation signals from post-workout feedback.

Stimulus-to-fatigue ratio (SFR)
-------------------------------
  RSM total     = mind-muscle connection + pump + disruption     (0-9)
  Fatigue total = joint/tissue disruption + perceived effort
                  + unused-muscle performance                    (0-9)
  SFR           = RSM / Fatigue   (RSM when fatigue is 0)

Any missing component makes the corresponding total (and the SFR) None.

Set recommendation
------------------
Soreness (0-3) and performance (0-3) scores of the previous occurrence of an
exercise decide how many sets it should gain next microcycle; performance 3
("could not match last time") calls for a recovery microcycle instead.
"""

from .config import RECOVERY_PERFORMANCE_SCORE, SET_ADDITION_TABLE
from .models import Exercise, Fatigue, Rsm, SessionExercise, WorkoutSet


def rsm_total(rsm: Rsm | None) -> int | None:
    """Sum of the three RSM components, or None if any is missing."""
    if rsm is None:
        return None
    parts = (rsm.mind_muscle_connection, rsm.pump, rsm.disruption)
    if any(p is None for p in parts):
        return None
    return sum(parts)


def fatigue_total(fatigue: Fatigue | None) -> int | None:
    """Sum of the three fatigue components, or None if any is missing."""
    if fatigue is None:
        return None
    parts = (
        fatigue.joint_and_tissue_disruption,
        fatigue.perceived_effort,
        fatigue.unused_muscle_performance,
    )
    if any(p is None for p in parts):
        return None
    return sum(parts)


def sfr(rsm: Rsm | None, fatigue: Fatigue | None) -> float | None:
    """
    Stimulus-to-fatigue ratio.

    Args:
        rsm: Reported stimulus
        fatigue: Reported fatigue

    Returns:
        RSM / fatigue, the raw RSM total when fatigue is 0, or None when
        either side is incomplete
    """
    stimulus = rsm_total(rsm)
    cost = fatigue_total(fatigue)
    if stimulus is None or cost is None:
        return None
    if cost == 0:
        return float(stimulus)
    return stimulus / cost


def session_exercise_sfr(session_exercise: SessionExercise) -> float | None:
    """SFR of one performed exercise."""
    return sfr(session_exercise.rsm, session_exercise.fatigue)


def recommended_set_change(session_exercise: SessionExercise) -> int | None:
    """
    Recommend a set change from soreness and performance feedback.

    Returns:
        -1 for recovery, 0-2 for sets to add, or None when feedback is missing
    """
    soreness = session_exercise.soreness_score
    performance = session_exercise.performance_score
    if soreness is None or performance is None:
        return None
    if performance == RECOVERY_PERFORMANCE_SCORE:
        return -1
    return SET_ADDITION_TABLE[soreness][performance]


def exercise_fatigue_score(exercise: Exercise) -> int:
    """Initial fatigue guess of an exercise; missing components count as 0."""
    guess = exercise.initial_fatigue_guess
    return (
        (guess.joint_and_tissue_disruption or 0)
        + (guess.perceived_effort or 0)
        + (guess.unused_muscle_performance or 0)
    )


def is_set_completed(workout_set: WorkoutSet) -> bool:
    """A set is logged once reps and weight are in, plus RIR unless none was planned."""
    return (
        workout_set.actual_reps is not None
        and workout_set.actual_weight is not None
        and (workout_set.rir is not None or workout_set.planned_rir is None)
    )


def is_deload_exercise(sets: list[WorkoutSet]) -> bool:
    """True when there are sets and none of them carries a planned RIR."""
    return bool(sets) and all(s.planned_rir is None for s in sets)


def needs_review(session_exercise: SessionExercise, sets: list[WorkoutSet]) -> bool:
    """
    Whether post-workout feedback still has to be collected for an exercise.

    Deload exercises never need review. Otherwise the late-reported fields
    (disruption, unused-muscle performance, soreness) must all be present.
    """
    if is_deload_exercise(sets):
        return False
    rsm = session_exercise.rsm
    fatigue = session_exercise.fatigue
    return (
        rsm is None
        or rsm.disruption is None
        or fatigue is None
        or fatigue.unused_muscle_performance is None
        or session_exercise.soreness_score is None
    )
