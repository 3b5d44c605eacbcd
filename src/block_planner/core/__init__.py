"""
Planning engine for block-planner.

generate_or_update_block() turns a block configuration, the catalog and the
persisted plan snapshot into the documents to create and delete.
"""

from .config import DEFAULT_SETTINGS, PlannerSettings
from .errors import ConfigurationError, DataIntegrityError, PlanningError
from .models import BlockPlanChanges, DocumentOperations
from .planner import generate_or_update_block

__all__ = [
    "DEFAULT_SETTINGS",
    "PlannerSettings",
    "PlanningError",
    "ConfigurationError",
    "DataIntegrityError",
    "BlockPlanChanges",
    "DocumentOperations",
    "generate_or_update_block",
]
