"""
Serialization for block-planner models.

Handles conversion between dataclasses and JSON-compatible dicts, and
parsing of the YAML catalog file (block, exercises, equipment, calibrations).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

import yaml

from ..core.equipment import generate_weight_options
from ..core.models import (
    EquipmentType,
    Exercise,
    ExerciseCalibration,
    Fatigue,
    Microcycle,
    Rsm,
    Session,
    SessionExercise,
    TrainingBlock,
    WorkoutSet,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


# =============================================================================
# Field helpers
# =============================================================================


def validate_datetime(value: Any, name: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime.

    Args:
        value: String, date or datetime (YAML parses bare dates itself)
        name: Field name for error messages

    Returns:
        Naive datetime

    Raises:
        ValidationError: If value is not a valid date
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected an ISO date")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}. Expected an ISO date") from e


def _optional_datetime(value: Any, name: str) -> datetime | None:
    return None if value is None else validate_datetime(value, name)


def _format_datetime(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def validate_mapping(data: Any, kind: str) -> dict[str, Any]:
    """
    Validate that a parsed value is a mapping.

    Raises:
        ValidationError: If data is not a dict
    """
    if not isinstance(data, dict):
        raise ValidationError(f"{kind} must be a mapping, got {type(data).__name__}")
    return data


def validate_list(value: Any, name: str) -> list[Any]:
    """
    Validate that a parsed value is a list.

    Raises:
        ValidationError: If value is not a list
    """
    if not isinstance(value, list):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected a list")
    return list(value)


def validate_int(value: Any, name: str) -> int:
    """
    Convert a parsed value to int.

    Raises:
        ValidationError: If value is not an integer
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected an integer") from e


def validate_float(value: Any, name: str) -> float:
    """
    Convert a parsed value to float.

    Raises:
        ValidationError: If value is not a number
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected a number")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected a number") from e


def _optional_int(value: Any, name: str) -> int | None:
    return None if value is None else validate_int(value, name)


def _optional_float(value: Any, name: str) -> float | None:
    return None if value is None else validate_float(value, name)


def _int_field(data: dict[str, Any], key: str, default: int | None = None) -> int | None:
    return _optional_int(data.get(key, default), key)


def _float_field(data: dict[str, Any], key: str) -> float | None:
    return _optional_float(data.get(key), key)


def _list_field(data: dict[str, Any], key: str) -> list[Any]:
    return validate_list(data.get(key, []), key)


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    if key not in data or data[key] is None:
        raise ValidationError(f"{kind} is missing required field {key!r}")
    return data[key]


def _build(factory: Callable[..., Any], kind: str, **kwargs: Any) -> Any:
    """Construct a model, turning its own validation failures into ValidationError."""
    try:
        return factory(**kwargs)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {kind}: {e}") from e


def rsm_to_dict(rsm: Rsm | None) -> dict[str, Any] | None:
    if rsm is None:
        return None
    return {
        "mind_muscle_connection": rsm.mind_muscle_connection,
        "pump": rsm.pump,
        "disruption": rsm.disruption,
    }


def dict_to_rsm(data: dict[str, Any] | None) -> Rsm | None:
    if data is None:
        return None
    data = validate_mapping(data, "rsm")
    return _build(
        Rsm,
        "rsm",
        mind_muscle_connection=_int_field(data, "mind_muscle_connection"),
        pump=_int_field(data, "pump"),
        disruption=_int_field(data, "disruption"),
    )


def fatigue_to_dict(fatigue: Fatigue | None) -> dict[str, Any] | None:
    if fatigue is None:
        return None
    return {
        "joint_and_tissue_disruption": fatigue.joint_and_tissue_disruption,
        "perceived_effort": fatigue.perceived_effort,
        "unused_muscle_performance": fatigue.unused_muscle_performance,
    }


def dict_to_fatigue(data: dict[str, Any] | None) -> Fatigue | None:
    if data is None:
        return None
    data = validate_mapping(data, "fatigue")
    return _build(
        Fatigue,
        "fatigue",
        joint_and_tissue_disruption=_int_field(data, "joint_and_tissue_disruption"),
        perceived_effort=_int_field(data, "perceived_effort"),
        unused_muscle_performance=_int_field(data, "unused_muscle_performance"),
    )


# =============================================================================
# Plan documents
# =============================================================================


def microcycle_to_dict(microcycle: Microcycle) -> dict[str, Any]:
    """Convert Microcycle to JSON-compatible dict."""
    return {
        "id": microcycle.id,
        "user_id": microcycle.user_id,
        "training_block_id": microcycle.training_block_id,
        "start_date": _format_datetime(microcycle.start_date),
        "end_date": _format_datetime(microcycle.end_date),
        "session_order": list(microcycle.session_order),
        "completed_date": _format_datetime(microcycle.completed_date),
    }


def dict_to_microcycle(data: dict[str, Any]) -> Microcycle:
    """
    Convert dict to Microcycle.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "microcycle")
    return _build(
        Microcycle,
        "microcycle",
        id=_require(data, "id", "microcycle"),
        user_id=_require(data, "user_id", "microcycle"),
        training_block_id=_require(data, "training_block_id", "microcycle"),
        start_date=validate_datetime(_require(data, "start_date", "microcycle"), "start_date"),
        end_date=validate_datetime(_require(data, "end_date", "microcycle"), "end_date"),
        session_order=_list_field(data, "session_order"),
        completed_date=_optional_datetime(data.get("completed_date"), "completed_date"),
    )


def session_to_dict(session: Session) -> dict[str, Any]:
    """Convert Session to JSON-compatible dict."""
    return {
        "id": session.id,
        "user_id": session.user_id,
        "microcycle_id": session.microcycle_id,
        "title": session.title,
        "start_time": _format_datetime(session.start_time),
        "complete": session.complete,
        "session_exercise_order": list(session.session_exercise_order),
        "rsm": rsm_to_dict(session.rsm),
        "fatigue": fatigue_to_dict(session.fatigue),
    }


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert dict to Session.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "session")
    return _build(
        Session,
        "session",
        id=_require(data, "id", "session"),
        user_id=_require(data, "user_id", "session"),
        microcycle_id=_require(data, "microcycle_id", "session"),
        title=data.get("title", ""),
        start_time=validate_datetime(_require(data, "start_time", "session"), "start_time"),
        complete=bool(data.get("complete", False)),
        session_exercise_order=_list_field(data, "session_exercise_order"),
        rsm=dict_to_rsm(data.get("rsm")),
        fatigue=dict_to_fatigue(data.get("fatigue")),
    )


def session_exercise_to_dict(session_exercise: SessionExercise) -> dict[str, Any]:
    """Convert SessionExercise to JSON-compatible dict."""
    return {
        "id": session_exercise.id,
        "user_id": session_exercise.user_id,
        "session_id": session_exercise.session_id,
        "exercise_id": session_exercise.exercise_id,
        "set_order": list(session_exercise.set_order),
        "rsm": rsm_to_dict(session_exercise.rsm),
        "fatigue": fatigue_to_dict(session_exercise.fatigue),
        "soreness_score": session_exercise.soreness_score,
        "performance_score": session_exercise.performance_score,
        "is_recovery_exercise": session_exercise.is_recovery_exercise,
    }


def dict_to_session_exercise(data: dict[str, Any]) -> SessionExercise:
    """
    Convert dict to SessionExercise.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "session exercise")
    return _build(
        SessionExercise,
        "session exercise",
        id=_require(data, "id", "session exercise"),
        user_id=_require(data, "user_id", "session exercise"),
        session_id=_require(data, "session_id", "session exercise"),
        exercise_id=_require(data, "exercise_id", "session exercise"),
        set_order=_list_field(data, "set_order"),
        rsm=dict_to_rsm(data.get("rsm")),
        fatigue=dict_to_fatigue(data.get("fatigue")),
        soreness_score=_int_field(data, "soreness_score"),
        performance_score=_int_field(data, "performance_score"),
        is_recovery_exercise=bool(data.get("is_recovery_exercise", False)),
    )


def workout_set_to_dict(workout_set: WorkoutSet) -> dict[str, Any]:
    """Convert WorkoutSet to JSON-compatible dict."""
    return {
        "id": workout_set.id,
        "user_id": workout_set.user_id,
        "exercise_id": workout_set.exercise_id,
        "session_id": workout_set.session_id,
        "session_exercise_id": workout_set.session_exercise_id,
        "planned_weight": workout_set.planned_weight,
        "planned_reps": workout_set.planned_reps,
        "planned_rir": workout_set.planned_rir,
        "actual_weight": workout_set.actual_weight,
        "actual_reps": workout_set.actual_reps,
        "rir": workout_set.rir,
    }


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "set")
    return _build(
        WorkoutSet,
        "set",
        id=_require(data, "id", "set"),
        user_id=_require(data, "user_id", "set"),
        exercise_id=_require(data, "exercise_id", "set"),
        session_id=_require(data, "session_id", "set"),
        session_exercise_id=_require(data, "session_exercise_id", "set"),
        planned_weight=_float_field(data, "planned_weight"),
        planned_reps=_int_field(data, "planned_reps"),
        planned_rir=_int_field(data, "planned_rir"),
        actual_weight=_float_field(data, "actual_weight"),
        actual_reps=_int_field(data, "actual_reps"),
        rir=_int_field(data, "rir"),
    )


DOCUMENT_SERIALIZERS: dict[str, tuple[Callable[[Any], dict], Callable[[dict], Any]]] = {
    "microcycles": (microcycle_to_dict, dict_to_microcycle),
    "sessions": (session_to_dict, dict_to_session),
    "session_exercises": (session_exercise_to_dict, dict_to_session_exercise),
    "sets": (workout_set_to_dict, dict_to_workout_set),
}


# =============================================================================
# Catalog
# =============================================================================


def dict_to_training_block(data: dict[str, Any]) -> TrainingBlock:
    """
    Convert dict to TrainingBlock.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "block")
    return _build(
        TrainingBlock,
        "block",
        id=str(_require(data, "id", "block")),
        user_id=str(_require(data, "user_id", "block")),
        title=data.get("title", ""),
        cycle_type=data.get("cycle_type", "MuscleGain"),
        sessions_per_microcycle=_int_field(data, "sessions_per_microcycle", 3),
        microcycle_length_days=_int_field(data, "microcycle_length_days", 7),
        rest_day_offsets=[
            validate_int(d, "rest_day_offsets") for d in _list_field(data, "rest_day_offsets")
        ],
        planned_microcycle_count=_int_field(data, "planned_microcycle_count"),
        calibrated_exercise_ids=[str(c) for c in _list_field(data, "calibrated_exercise_ids")],
        completed_date=_optional_datetime(data.get("completed_date"), "completed_date"),
    )


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "exercise")
    return _build(
        Exercise,
        "exercise",
        id=str(_require(data, "id", "exercise")),
        name=data.get("name", str(data["id"])),
        equipment_type_id=str(_require(data, "equipment_type_id", "exercise")),
        rep_range=data.get("rep_range", "Medium"),
        preferred_progression_type=data.get("preferred_progression_type", "Rep"),
        primary_muscle_groups=[str(g) for g in _list_field(data, "primary_muscle_groups")],
        initial_fatigue_guess=dict_to_fatigue(data.get("initial_fatigue_guess")) or Fatigue(),
    )


def dict_to_equipment_type(data: dict[str, Any]) -> EquipmentType:
    """
    Convert dict to EquipmentType.

    weight_options may be given explicitly or generated from
    {min, increment, max} under the "generate" key.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "equipment type")
    options = data.get("weight_options")
    generate = data.get("generate")
    if options is None and generate is not None:
        try:
            options = generate_weight_options(
                float(generate["min"]), float(generate["increment"]), float(generate["max"])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid weight option generator for {data.get('id')}: {e}") from e
    return _build(
        EquipmentType,
        "equipment type",
        id=str(_require(data, "id", "equipment type")),
        title=data.get("title", str(data["id"])),
        weight_options=[
            validate_float(w, "weight_options") for w in validate_list(options or [], "weight_options")
        ],
    )


def dict_to_calibration(data: dict[str, Any]) -> ExerciseCalibration:
    """
    Convert dict to ExerciseCalibration.

    Raises:
        ValidationError: If data is invalid
    """
    data = validate_mapping(data, "calibration")
    return _build(
        ExerciseCalibration,
        "calibration",
        id=str(_require(data, "id", "calibration")),
        exercise_id=str(_require(data, "exercise_id", "calibration")),
        user_id=str(_require(data, "user_id", "calibration")),
        reps=validate_int(_require(data, "reps", "calibration"), "reps"),
        weight=validate_float(_require(data, "weight", "calibration"), "weight"),
    )


@dataclass
class Catalog:
    """Everything the planner needs besides the persisted plan."""

    block: TrainingBlock
    exercises: list[Exercise] = field(default_factory=list)
    equipment: list[EquipmentType] = field(default_factory=list)
    calibrations: list[ExerciseCalibration] = field(default_factory=list)


def dict_to_catalog(data: dict[str, Any]) -> Catalog:
    """
    Convert a parsed catalog document to a Catalog.

    Checks referential integrity: every calibration must reference a known
    exercise, every exercise a known equipment type.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict) or "block" not in data:
        raise ValidationError("Catalog must be a mapping with a 'block' section")

    catalog = Catalog(
        block=dict_to_training_block(data["block"]),
        exercises=[dict_to_exercise(e) for e in _list_field(data, "exercises")],
        equipment=[dict_to_equipment_type(e) for e in _list_field(data, "equipment")],
        calibrations=[dict_to_calibration(c) for c in _list_field(data, "calibrations")],
    )

    equipment_ids = {e.id for e in catalog.equipment}
    for exercise in catalog.exercises:
        if exercise.equipment_type_id not in equipment_ids:
            raise ValidationError(
                f"Exercise {exercise.id} references unknown equipment {exercise.equipment_type_id}"
            )
    exercise_ids = {e.id for e in catalog.exercises}
    for calibration in catalog.calibrations:
        if calibration.exercise_id not in exercise_ids:
            raise ValidationError(
                f"Calibration {calibration.id} references unknown exercise {calibration.exercise_id}"
            )
    calibration_ids = {c.id for c in catalog.calibrations}
    for calibration_id in catalog.block.calibrated_exercise_ids:
        if calibration_id not in calibration_ids:
            raise ValidationError(f"Block references unknown calibration {calibration_id}")
    return catalog


def load_catalog(path: str | Path) -> Catalog:
    """
    Load a catalog YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file cannot be parsed or is invalid
    """
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in {path}: {e}") from e
    return dict_to_catalog(data)
