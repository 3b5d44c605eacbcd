"""
Progressive-overload targets per exercise per microcycle.

The weight for the whole arc is derived from the calibration at the top of
the exercise's rep range and snapped to the equipment (lighter option
preferred). From there:

Rep progression
  microcycle 0 reps = range max − first-microcycle RIR  (Medium: 20 − 4 = 16)
  every elapsed microcycle adds 2 reps; running past the range max wraps the
  reps down by the range reset (Heavy 4, Medium 6, Light 8) and bumps the
  weight to the next option ≥ 2 % heavier. With no heavier option the reps
  keep climbing instead.

Load progression
  reps stay at the range max; every elapsed microcycle bumps the weight to
  the next option ≥ 2 % heavier, or adds 2 reps when the equipment tops out.

RIR schedule
  accumulation microcycle i targets max(first RIR − i, 0); deload has none.
"""

from dataclasses import dataclass

from .config import DEFAULT_SETTINGS, PlannerSettings
from .equipment import next_weight_increase, require_weight_options, round_to_equipment
from .metrics import target_weight
from .models import EquipmentType, Exercise, ExerciseCalibration


@dataclass(frozen=True)
class ProgressionTarget:
    """Planned load and rep count shared by every set of an exercise in a session."""

    target_weight: float
    target_reps: int


def rep_range_values(rep_range: str, settings: PlannerSettings = DEFAULT_SETTINGS) -> tuple[int, int]:
    """Return (min, max) reps for a rep-range category."""
    return settings.rep_ranges[rep_range]


def target_rir_for_microcycle(
    microcycle_index: int,
    is_deload: bool,
    first_microcycle_rir: int,
) -> int | None:
    """
    RIR target for every set of a microcycle.

    Args:
        microcycle_index: Zero-based microcycle index within the block
        is_deload: Whether this is the block's deload microcycle
        first_microcycle_rir: RIR of microcycle 0

    Returns:
        Target RIR, or None during deload
    """
    if is_deload:
        return None
    return first_microcycle_rir - min(microcycle_index, first_microcycle_rir)


def calculate_progressed_targets(
    exercise: Exercise,
    calibration: ExerciseCalibration,
    equipment: EquipmentType,
    microcycle_index: int,
    first_microcycle_rir: int,
    settings: PlannerSettings = DEFAULT_SETTINGS,
) -> ProgressionTarget:
    """
    Compute the target weight and reps of an exercise for one microcycle.

    Args:
        exercise: Catalog exercise (rep range and progression type)
        calibration: Reference performance for the exercise
        equipment: Equipment the exercise is performed on
        microcycle_index: Zero-based microcycle index
        first_microcycle_rir: RIR planned for microcycle 0
        settings: Planner tunables

    Returns:
        ProgressionTarget with a weight that is one of the equipment options

    Raises:
        ConfigurationError: If the equipment has no weight options
    """
    require_weight_options(equipment)
    if microcycle_index < 0:
        raise ValueError("microcycle_index must be non-negative")

    _, rep_max = rep_range_values(exercise.rep_range, settings)
    step = settings.rep_progression_step
    weight = round_to_equipment(equipment, target_weight(calibration, rep_max))

    if exercise.preferred_progression_type == "Load":
        reps = rep_max
        for _ in range(microcycle_index):
            heavier = next_weight_increase(equipment, weight, settings.load_increase_fraction)
            if heavier is not None:
                weight = heavier
            else:
                reps += step
        return ProgressionTarget(target_weight=weight, target_reps=reps)

    reset = settings.rep_range_resets[exercise.rep_range]
    reps = rep_max - first_microcycle_rir
    for _ in range(microcycle_index):
        reps += step
        if reps <= rep_max:
            continue
        heavier = next_weight_increase(equipment, weight, settings.load_increase_fraction)
        if heavier is not None:
            weight = heavier
            reps -= reset
    return ProgressionTarget(target_weight=weight, target_reps=reps)
