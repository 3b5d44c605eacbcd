"""
Equipment weight options.

Every planned load must be achievable on the exercise's equipment, so
target weights computed from the calibration curve are snapped onto the
equipment's discrete weight_options.

Rounding directions
-------------------
  up           :  smallest option >= target
  down         :  largest option <= target
  nearest      :  closest option; ties go to the lighter one
  prefer-down  :  down, falling back to up when nothing is lighter
"""

from __future__ import annotations

from typing import Literal

from .errors import ConfigurationError
from .models import EquipmentType

RoundDirection = Literal["up", "down", "nearest", "prefer-down"]


def generate_weight_options(min_weight: float, increment: float, max_weight: float) -> list[float]:
    """
    Build the weight options for adjustable equipment such as a barbell.

    Starts at min_weight (e.g. the empty bar) and steps by increment while
    the result stays at or below max_weight.

    Args:
        min_weight: Lightest achievable load
        increment: Smallest load step
        max_weight: Heaviest load to include

    Returns:
        Ascending list of weights
    """
    if increment <= 0:
        raise ValueError("increment must be positive")

    weights: list[float] = []
    step = 0
    while True:
        # Multiply rather than accumulate so 2.5 steps do not drift
        weight = round(min_weight + step * increment, 6)
        if weight > max_weight:
            break
        weights.append(weight)
        step += 1
    return weights


def find_nearest_weight(
    equipment: EquipmentType,
    target_weight: float,
    direction: RoundDirection,
) -> float | None:
    """
    Snap target_weight onto the equipment's weight options.

    Args:
        equipment: Equipment providing the weight options
        target_weight: Ideal load
        direction: See module docstring

    Returns:
        The chosen option, or None when there are no options or nothing
        lies in the requested direction
    """
    options = sorted(equipment.weight_options)
    if not options:
        return None

    if direction == "up":
        return next((w for w in options if w >= target_weight), None)

    if direction == "down":
        return next((w for w in reversed(options) if w <= target_weight), None)

    if direction == "prefer-down":
        lower = next((w for w in reversed(options) if w <= target_weight), None)
        if lower is not None:
            return lower
        return next((w for w in options if w >= target_weight), None)

    closest = options[0]
    for weight in options:
        if abs(target_weight - weight) < abs(target_weight - closest):
            closest = weight
    return closest


def require_weight_options(equipment: EquipmentType) -> list[float]:
    """Return the equipment's weight options, failing fast when there are none."""
    if not equipment.weight_options:
        raise ConfigurationError(
            f"No weight options defined for equipment type {equipment.title!r} ({equipment.id})"
        )
    return equipment.weight_options


def round_to_equipment(equipment: EquipmentType, target_weight: float) -> float:
    """
    Round a computed load onto the equipment, preferring the lighter option.

    Raises:
        ConfigurationError: If the equipment has no weight options
    """
    require_weight_options(equipment)
    weight = find_nearest_weight(equipment, target_weight, "prefer-down")
    if weight is None:
        raise ConfigurationError(
            f"No weight option of {equipment.title!r} can represent {target_weight:.2f}"
        )
    return weight


def next_weight_increase(
    equipment: EquipmentType,
    current_weight: float,
    increase_fraction: float,
) -> float | None:
    """
    Smallest option at least increase_fraction heavier than current_weight.

    Returns None when the equipment tops out below that load.
    """
    target = current_weight * (1 + increase_fraction)
    return next(
        (w for w in sorted(equipment.weight_options) if w >= target and w > current_weight),
        None,
    )
