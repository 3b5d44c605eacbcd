"""Errors raised by the planning engine."""


class PlanningError(Exception):
    """Base class for all planning failures. Never retried by the engine."""


class ConfigurationError(PlanningError):
    """Catalog or block configuration cannot produce a plan."""


class DataIntegrityError(PlanningError):
    """Persisted plan state is inconsistent and must be fixed by the caller."""
