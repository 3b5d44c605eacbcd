"""
JSON-based storage for planned microcycles, sessions, session exercises and sets.

The store file holds one top-level list per collection. The planner never
touches it; callers load a snapshot, run the planner, and hand the
resulting BlockPlanChanges to apply_changes().
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from ..core.models import (
    COLLECTIONS,
    BlockPlanChanges,
    Microcycle,
    Session,
    SessionExercise,
    WorkoutSet,
)
from .serializers import DOCUMENT_SERIALIZERS, ValidationError


@dataclass
class PlanSnapshot:
    """Persisted plan documents of one training block."""

    microcycles: list[Microcycle] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    session_exercises: list[SessionExercise] = field(default_factory=list)
    sets: list[WorkoutSet] = field(default_factory=list)


class PlanStore:
    """
    Manages plan documents stored in a single JSON file.

    Layout:
        {"microcycles": [...], "sessions": [...],
         "session_exercises": [...], "sets": [...]}

    Deletes are applied children first (sets → microcycles) and inserts
    parents first (microcycles → sets), so the file never references a
    document that is not there.
    """

    def __init__(self, store_path: str | Path):
        """
        Initialize the plan store.

        Args:
            store_path: Path to the JSON store file
        """
        self.store_path = Path(store_path)

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.store_path.exists()

    def init(self) -> None:
        """
        Initialize an empty store file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.store_path.exists():
            self._save_raw({name: [] for name in COLLECTIONS})

    # ------------------------------------------------------------------
    # Raw file access
    # ------------------------------------------------------------------

    def _load_raw(self) -> dict[str, list[dict[str, Any]]]:
        if not self.store_path.exists():
            return {name: [] for name in COLLECTIONS}
        try:
            with open(self.store_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.store_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"{self.store_path} must contain a JSON object")
        raw: dict[str, list[dict[str, Any]]] = {}
        for name in COLLECTIONS:
            docs = data.get(name, [])
            if not isinstance(docs, list) or not all(
                isinstance(d, dict) and "id" in d for d in docs
            ):
                raise ValidationError(
                    f"{self.store_path}: {name} must be a list of objects with an id"
                )
            raw[name] = list(docs)
        return raw

    def _save_raw(self, data: dict[str, list[dict[str, Any]]]) -> None:
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.store_path, "w") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}. Must be one of {COLLECTIONS}")

    @staticmethod
    def _insert(data: dict, collection: str, docs: Iterable[Any]) -> None:
        to_dict, _ = DOCUMENT_SERIALIZERS[collection]
        existing = {d["id"] for d in data[collection]}
        for doc in docs:
            if doc.id in existing:
                raise ValidationError(f"Duplicate id {doc.id} in {collection}")
            data[collection].append(to_dict(doc))
            existing.add(doc.id)

    @staticmethod
    def _update(data: dict, collection: str, docs: Iterable[Any]) -> None:
        to_dict, _ = DOCUMENT_SERIALIZERS[collection]
        index = {d["id"]: i for i, d in enumerate(data[collection])}
        for doc in docs:
            if doc.id not in index:
                raise ValidationError(f"Cannot update missing {collection} document {doc.id}")
            data[collection][index[doc.id]] = to_dict(doc)

    @staticmethod
    def _delete(data: dict, collection: str, ids: Iterable[str]) -> None:
        doomed = set(ids)
        data[collection] = [d for d in data[collection] if d["id"] not in doomed]

    # ------------------------------------------------------------------
    # Collection operations
    # ------------------------------------------------------------------

    def load_collection(self, collection: str) -> list[Any]:
        """
        Load every document of a collection.

        Raises:
            ValidationError: If the file or a document is invalid
        """
        self._check_collection(collection)
        _, from_dict = DOCUMENT_SERIALIZERS[collection]
        return [from_dict(d) for d in self._load_raw()[collection]]

    def insert_many(self, collection: str, docs: Iterable[Any]) -> None:
        """Append new documents to a collection."""
        self._check_collection(collection)
        data = self._load_raw()
        self._insert(data, collection, docs)
        self._save_raw(data)

    def update_many(self, collection: str, docs: Iterable[Any]) -> None:
        """Replace existing documents, matched by id."""
        self._check_collection(collection)
        data = self._load_raw()
        self._update(data, collection, docs)
        self._save_raw(data)

    def delete_list(self, collection: str, ids: Iterable[str]) -> None:
        """Delete documents by id; unknown ids are ignored."""
        self._check_collection(collection)
        data = self._load_raw()
        self._delete(data, collection, ids)
        self._save_raw(data)

    def apply_changes(self, changes: BlockPlanChanges) -> None:
        """
        Persist a planner result in one write.

        Args:
            changes: Creates, updates and deletes per collection
        """
        data = self._load_raw()
        operations = changes.by_collection()
        for collection in reversed(COLLECTIONS):
            self._delete(data, collection, operations[collection].delete)
        for collection in COLLECTIONS:
            self._insert(data, collection, operations[collection].create)
            self._update(data, collection, operations[collection].update)
        self._save_raw(data)

    # ------------------------------------------------------------------
    # Block queries
    # ------------------------------------------------------------------

    def load_snapshot(self, block_id: str) -> PlanSnapshot:
        """
        Load the persisted plan of one training block.

        Sessions, session exercises and sets are followed from the block's
        microcycles through their parent ids.
        """
        microcycles = [
            m for m in self.load_collection("microcycles") if m.training_block_id == block_id
        ]
        microcycle_ids = {m.id for m in microcycles}
        sessions = [s for s in self.load_collection("sessions") if s.microcycle_id in microcycle_ids]
        session_ids = {s.id for s in sessions}
        session_exercises = [
            se for se in self.load_collection("session_exercises") if se.session_id in session_ids
        ]
        sets = [s for s in self.load_collection("sets") if s.session_id in session_ids]
        return PlanSnapshot(
            microcycles=microcycles,
            sessions=sessions,
            session_exercises=session_exercises,
            sets=sets,
        )

    def mark_session_complete(self, session_id: str, complete: bool = True) -> Session:
        """
        Set the completion flag of a session.

        Raises:
            KeyError: If no session has that id
        """
        sessions = self.load_collection("sessions")
        for session in sessions:
            if session.id == session_id:
                session.complete = complete
                self.update_many("sessions", [session])
                return session
        raise KeyError(f"Session not found: {session_id}")


def get_default_store_path() -> Path:
    """Get the default plan store path (~/.block-planner/plan.json)."""
    return Path.home() / ".block-planner" / "plan.json"
