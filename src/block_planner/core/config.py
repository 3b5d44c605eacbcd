"""
Configuration constants for the block planner.

All adjustable parameters are centralized here for easy tuning.
The subset that users may override lives in PlannerSettings and is
mirrored by the bundled planner.yaml.
"""

from dataclasses import dataclass, field
from typing import Final

# =============================================================================
# BLOCK STRUCTURE
# =============================================================================

DEFAULT_MICROCYCLE_COUNT: Final[int] = 6  # Used when a block leaves it unset
MIN_MICROCYCLE_COUNT: Final[int] = 2  # At least one accumulation + deload
MAX_MICROCYCLE_COUNT: Final[int] = 20

# =============================================================================
# INTENSITY (RIR) SCHEDULE
# =============================================================================

FIRST_MICROCYCLE_RIR: Final[int] = 4  # RIR of the first accumulation microcycle

# =============================================================================
# REP RANGES AND PROGRESSION
# =============================================================================

REP_RANGES: Final[dict[str, tuple[int, int]]] = {
    "Heavy": (5, 15),
    "Medium": (10, 20),
    "Light": (15, 30),
}

# Reps removed when rep progression runs past the top of the range
REP_RANGE_RESETS: Final[dict[str, int]] = {
    "Heavy": 4,
    "Medium": 6,
    "Light": 8,
}

REP_PROGRESSION_STEP: Final[int] = 2  # Reps added per elapsed microcycle
LOAD_INCREASE_FRACTION: Final[float] = 0.02  # Minimum relative weight bump

# =============================================================================
# CALIBRATION CURVE
# =============================================================================

ONE_RM_DIVISOR: Final[float] = 30.48  # NASM 1RM estimate: w * r / 30.48 + w
PERCENT_AT_FIVE_REPS: Final[float] = 85.0  # %1RM for a 5-rep set
PERCENT_DROP_PER_REP: Final[float] = 2.2  # %1RM lost per additional rep

# =============================================================================
# VOLUME
# =============================================================================

BASELINE_SETS_PER_EXERCISE: Final[int] = 2  # Microcycle 0 sets per exercise
MAX_SETS_PER_EXERCISE: Final[int] = 8
MAX_SETS_PER_MUSCLE_GROUP_PER_SESSION: Final[int] = 10
MAX_ADDED_SETS_PER_MICROCYCLE: Final[int] = 3  # Per muscle group
MAX_ADDED_SETS_PER_EXERCISE: Final[int] = 2

# Sets to add, indexed [soreness_score][performance_score] for performance 0..2.
# Performance 3 always means recovery.
SET_ADDITION_TABLE: Final[tuple[tuple[int, int, int], ...]] = (
    (2, 1, 0),  # soreness 0: never got sore
    (1, 0, 0),  # soreness 1: healed well before next session
    (0, 0, 0),  # soreness 2: healed just in time
    (0, 0, 0),  # soreness 3: still sore
)
RECOVERY_PERFORMANCE_SCORE: Final[int] = 3


@dataclass(frozen=True)
class PlannerSettings:
    """Tunable planner parameters; defaults mirror the constants above."""

    first_microcycle_rir: int = FIRST_MICROCYCLE_RIR
    default_microcycle_count: int = DEFAULT_MICROCYCLE_COUNT
    baseline_sets_per_exercise: int = BASELINE_SETS_PER_EXERCISE
    max_sets_per_exercise: int = MAX_SETS_PER_EXERCISE
    max_sets_per_muscle_group_per_session: int = MAX_SETS_PER_MUSCLE_GROUP_PER_SESSION
    max_added_sets_per_microcycle: int = MAX_ADDED_SETS_PER_MICROCYCLE
    max_added_sets_per_exercise: int = MAX_ADDED_SETS_PER_EXERCISE
    rep_progression_step: int = REP_PROGRESSION_STEP
    load_increase_fraction: float = LOAD_INCREASE_FRACTION
    rep_ranges: dict[str, tuple[int, int]] = field(default_factory=lambda: dict(REP_RANGES))
    rep_range_resets: dict[str, int] = field(default_factory=lambda: dict(REP_RANGE_RESETS))

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.first_microcycle_rir < 0:
            raise ValueError("first_microcycle_rir must be non-negative")
        if not MIN_MICROCYCLE_COUNT <= self.default_microcycle_count <= MAX_MICROCYCLE_COUNT:
            raise ValueError(
                f"default_microcycle_count must be between {MIN_MICROCYCLE_COUNT} "
                f"and {MAX_MICROCYCLE_COUNT}"
            )
        if self.baseline_sets_per_exercise < 1:
            raise ValueError("baseline_sets_per_exercise must be at least 1")
        if self.max_sets_per_exercise < 1:
            raise ValueError("max_sets_per_exercise must be at least 1")
        if self.max_sets_per_muscle_group_per_session < 1:
            raise ValueError("max_sets_per_muscle_group_per_session must be at least 1")
        if self.max_added_sets_per_microcycle < 0 or self.max_added_sets_per_exercise < 0:
            raise ValueError("set addition caps must be non-negative")
        if self.rep_progression_step < 1:
            raise ValueError("rep_progression_step must be at least 1")
        if self.load_increase_fraction <= 0:
            raise ValueError("load_increase_fraction must be positive")
        for name in REP_RANGES:
            if name not in self.rep_ranges or name not in self.rep_range_resets:
                raise ValueError(f"rep range {name!r} must define bounds and a reset")
            low, high = self.rep_ranges[name]
            if not 0 < low < high:
                raise ValueError(f"rep range {name!r} must satisfy 0 < min < max")


DEFAULT_SETTINGS: Final[PlannerSettings] = PlannerSettings()
