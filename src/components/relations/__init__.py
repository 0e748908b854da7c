"""
Relations component - diff-and-apply of junction table rows.
"""

from .component import (
    apply_relation_changes,
    plan_relation_changes,
    run_replace_relations,
    validate_relations,
)
from .models import RelationDiff, RelationError
from .ports import RelationStorePort

__all__ = [
    "RelationDiff",
    "RelationError",
    "RelationStorePort",
    "apply_relation_changes",
    "plan_relation_changes",
    "run_replace_relations",
    "validate_relations",
]
