"""
Calibration curve: from one (reps, weight) reference point to a load for
any rep target.

  1RM      = weight × reps / 30.48 + weight          (NASM)
  pct(r)   = 85 − (r − 5) × 2.2                      (85 % @ 5 reps, 30 % @ 30 reps)
  load(r)  = 1RM × pct(r) / 100

Percentages are clamped to the 30-85 % band the curve was fitted on.
"""

from .config import ONE_RM_DIVISOR, PERCENT_AT_FIVE_REPS, PERCENT_DROP_PER_REP
from .models import ExerciseCalibration

MIN_TARGET_PERCENT = 30.0
MAX_TARGET_PERCENT = PERCENT_AT_FIVE_REPS


def estimate_1rm(weight: float, reps: int) -> float:
    """One-rep max for a set of `reps` at `weight`."""
    return weight * reps / ONE_RM_DIVISOR + weight


def calibration_1rm(calibration: ExerciseCalibration) -> float:
    """One-rep max implied by a calibration record."""
    return estimate_1rm(calibration.weight, calibration.reps)


def target_percentage(target_reps: int) -> float:
    """
    Percentage of 1RM that can be lifted for target_reps.

    Args:
        target_reps: Rep count of the planned set

    Returns:
        Percentage in [30, 85]
    """
    pct = PERCENT_AT_FIVE_REPS - (target_reps - 5) * PERCENT_DROP_PER_REP
    return max(MIN_TARGET_PERCENT, min(MAX_TARGET_PERCENT, pct))


def target_weight(calibration: ExerciseCalibration, target_reps: int) -> float:
    """
    Unrounded load for target_reps derived from the calibration.

    Callers snap the result onto equipment options.
    """
    return calibration_1rm(calibration) * target_percentage(target_reps) / 100
