"""
Tests for catalog loading, document serialization and the JSON plan store.
"""

import json
from datetime import datetime

import pytest

from block_planner.core.models import (
    BlockPlanChanges,
    DocumentOperations,
    Microcycle,
    Rsm,
    SessionExercise,
)
from block_planner.core.planner import generate_or_update_block
from block_planner.io.plan_store import PlanStore
from block_planner.io.serializers import (
    ValidationError,
    dict_to_catalog,
    dict_to_equipment_type,
    dict_to_session_exercise,
    load_catalog,
    session_exercise_to_dict,
    validate_datetime,
)

START = datetime(2026, 3, 2)


def _plan_into(store: PlanStore, catalog_path) -> BlockPlanChanges:
    catalog = load_catalog(catalog_path)
    snapshot = store.load_snapshot(catalog.block.id)
    changes = generate_or_update_block(
        catalog.block,
        catalog.calibrations,
        catalog.exercises,
        catalog.equipment,
        snapshot.microcycles,
        snapshot.sessions,
        snapshot.session_exercises,
        snapshot.sets,
        start_date=START,
    )
    store.init()
    store.apply_changes(changes)
    return changes


# ===========================================================================
# Catalog
# ===========================================================================

class TestCatalog:
    def test_load_catalog(self, catalog_path):
        catalog = load_catalog(catalog_path)
        assert catalog.block.id == "block-1"
        assert catalog.block.planned_microcycle_count == 3
        assert [e.id for e in catalog.exercises] == ["squat", "bench", "row"]
        assert catalog.exercises[0].initial_fatigue_guess.perceived_effort == 3
        assert len(catalog.calibrations) == 3

    def test_generated_weight_options(self, catalog_path):
        barbell = load_catalog(catalog_path).equipment[0]
        assert barbell.weight_options[:3] == [20, 22.5, 25]
        assert barbell.weight_options[-1] == 200

    def test_bad_generator(self):
        with pytest.raises(ValidationError, match="weight option generator"):
            dict_to_equipment_type({"id": "bar", "generate": {"min": 20, "increment": 0, "max": 100}})

    def test_missing_block(self):
        with pytest.raises(ValidationError, match="block"):
            dict_to_catalog({"exercises": []})

    def test_missing_required_field(self):
        with pytest.raises(ValidationError, match="user_id"):
            dict_to_catalog({"block": {"id": "b"}})

    def test_invalid_value_is_validation_error(self):
        with pytest.raises(ValidationError):
            dict_to_catalog({"block": {"id": "b", "user_id": "u", "cycle_type": "Bulk"}})

    def test_non_integer_session_count(self):
        data = {"block": {"id": "b", "user_id": "u", "sessions_per_microcycle": "three"}}
        with pytest.raises(ValidationError, match="sessions_per_microcycle"):
            dict_to_catalog(data)

    def test_non_integer_rest_day(self):
        data = {"block": {"id": "b", "user_id": "u", "rest_day_offsets": [1, "sunday"]}}
        with pytest.raises(ValidationError, match="rest_day_offsets"):
            dict_to_catalog(data)

    def test_block_must_be_mapping(self):
        with pytest.raises(ValidationError, match="block must be a mapping"):
            dict_to_catalog({"block": "oops"})

    def test_exercises_must_be_list(self):
        with pytest.raises(ValidationError, match="exercises"):
            dict_to_catalog({"block": {"id": "b", "user_id": "u"}, "exercises": {"id": "squat"}})

    def test_bad_calibration_weight(self):
        data = {
            "block": {"id": "b", "user_id": "u"},
            "calibrations": [
                {"id": "c", "exercise_id": "squat", "user_id": "u", "reps": 5, "weight": "heavy"}
            ],
        }
        with pytest.raises(ValidationError, match="weight"):
            dict_to_catalog(data)

    def test_bad_weight_option(self):
        with pytest.raises(ValidationError, match="weight_options"):
            dict_to_equipment_type({"id": "bar", "weight_options": [20, "twenty-five"]})

    def test_unknown_calibration_reference(self):
        data = {
            "block": {"id": "b", "user_id": "u", "calibrated_exercise_ids": ["nope"]},
        }
        with pytest.raises(ValidationError, match="unknown calibration"):
            dict_to_catalog(data)

    def test_unknown_equipment_reference(self):
        data = {
            "block": {"id": "b", "user_id": "u"},
            "exercises": [{"id": "squat", "equipment_type_id": "barbell"}],
        }
        with pytest.raises(ValidationError, match="unknown equipment"):
            dict_to_catalog(data)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("block: [unclosed\n")
        with pytest.raises(ValidationError, match="Invalid YAML"):
            load_catalog(path)

    def test_datetime_parsing(self):
        assert validate_datetime("2026-03-02", "start_date") == START
        with pytest.raises(ValidationError):
            validate_datetime("yesterday", "start_date")


class TestDocumentSerialization:
    def test_bad_session_exercise_field(self):
        data = {
            "id": "se1",
            "user_id": "u1",
            "session_id": "s1",
            "exercise_id": "squat",
            "soreness_score": "very",
        }
        with pytest.raises(ValidationError, match="soreness_score"):
            dict_to_session_exercise(data)

    def test_document_must_be_mapping(self):
        with pytest.raises(ValidationError, match="session exercise must be a mapping"):
            dict_to_session_exercise(["se1"])

    def test_feedback_survives_round_trip(self):
        se = SessionExercise(
            id="se1",
            user_id="u1",
            session_id="s1",
            exercise_id="squat",
            set_order=["a", "b"],
            rsm=Rsm(2, 3, None),
            soreness_score=1,
            is_recovery_exercise=True,
        )
        restored = dict_to_session_exercise(session_exercise_to_dict(se))
        assert restored == se


# ===========================================================================
# Plan store
# ===========================================================================

class TestPlanStore:
    def test_init_creates_empty_collections(self, tmp_path):
        store = PlanStore(tmp_path / "nested" / "plan.json")
        assert not store.exists()
        store.init()
        data = json.loads(store.store_path.read_text())
        assert data == {"microcycles": [], "sessions": [], "session_exercises": [], "sets": []}

    def test_apply_changes_and_load_snapshot(self, tmp_path, catalog_path):
        store = PlanStore(tmp_path / "plan.json")
        changes = _plan_into(store, catalog_path)
        snapshot = store.load_snapshot("block-1")

        assert len(snapshot.microcycles) == 3
        assert len(snapshot.sessions) == 6
        assert len(snapshot.sets) == len(changes.sets.create)
        created = {m.id: m for m in changes.microcycles.create}
        for microcycle in snapshot.microcycles:
            assert microcycle == created[microcycle.id]

    def test_snapshot_filters_by_block(self, tmp_path, catalog_path):
        store = PlanStore(tmp_path / "plan.json")
        _plan_into(store, catalog_path)
        empty = store.load_snapshot("another-block")
        assert empty.microcycles == []
        assert empty.sessions == []

    def test_regeneration_replaces_untouched_plan(self, tmp_path, catalog_path):
        store = PlanStore(tmp_path / "plan.json")
        first = _plan_into(store, catalog_path)
        second = _plan_into(store, catalog_path)

        assert sorted(second.microcycles.delete) == sorted(m.id for m in first.microcycles.create)
        data = json.loads(store.store_path.read_text())
        assert len(data["microcycles"]) == 3
        assert len(data["sets"]) == len(second.sets.create)

    def test_mark_session_complete(self, tmp_path, catalog_path):
        store = PlanStore(tmp_path / "plan.json")
        changes = _plan_into(store, catalog_path)
        session_id = changes.sessions.create[0].id

        session = store.mark_session_complete(session_id)
        assert session.complete
        stored = {s.id: s for s in store.load_collection("sessions")}
        assert stored[session_id].complete

        store.mark_session_complete(session_id, complete=False)
        stored = {s.id: s for s in store.load_collection("sessions")}
        assert not stored[session_id].complete

    def test_mark_unknown_session(self, tmp_path, catalog_path):
        store = PlanStore(tmp_path / "plan.json")
        _plan_into(store, catalog_path)
        with pytest.raises(KeyError):
            store.mark_session_complete("missing")

    def test_duplicate_insert_rejected(self, tmp_path):
        store = PlanStore(tmp_path / "plan.json")
        microcycle = Microcycle("m1", "u1", "block-1", START, START)
        store.insert_many("microcycles", [microcycle])
        with pytest.raises(ValidationError, match="Duplicate"):
            store.insert_many("microcycles", [microcycle])

    def test_update_missing_rejected(self, tmp_path):
        store = PlanStore(tmp_path / "plan.json")
        changes = BlockPlanChanges(
            microcycles=DocumentOperations(update=[Microcycle("m1", "u1", "b", START, START)])
        )
        with pytest.raises(ValidationError, match="missing"):
            store.apply_changes(changes)

    def test_delete_list_ignores_unknown_ids(self, tmp_path):
        store = PlanStore(tmp_path / "plan.json")
        store.insert_many("microcycles", [Microcycle("m1", "u1", "b", START, START)])
        store.delete_list("microcycles", ["m1", "other"])
        assert store.load_collection("microcycles") == []

    def test_unknown_collection(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown collection"):
            PlanStore(tmp_path / "plan.json").load_collection("workouts")

    def test_corrupt_store(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError, match="Invalid JSON"):
            PlanStore(path).load_snapshot("block-1")

    def test_collection_must_be_list(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"microcycles": {"id": "m1"}}))
        with pytest.raises(ValidationError, match="microcycles must be a list"):
            PlanStore(path).load_snapshot("block-1")

    def test_bad_document_field(self, tmp_path):
        path = tmp_path / "plan.json"
        bad_set = {
            "id": "set1",
            "user_id": "u1",
            "exercise_id": "squat",
            "session_id": "s1",
            "session_exercise_id": "se1",
            "planned_weight": "lots",
        }
        path.write_text(json.dumps({"sets": [bad_set]}))
        with pytest.raises(ValidationError, match="planned_weight"):
            PlanStore(path).load_collection("sets")
