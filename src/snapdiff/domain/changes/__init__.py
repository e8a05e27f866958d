"""Change records: extraction, reconciliation and read-side interpretation."""

from snapdiff.domain.changes.classify import (
    ArrayChange,
    ChangeShape,
    RecordChange,
    UnknownShape,
    ValueChange,
    changed_field_names,
    classify,
    classify_record,
    summarize,
)
from snapdiff.domain.changes.display import (
    HIDE_RULES,
    HideRule,
    ValueKind,
    matches_rule,
    should_display,
)
from snapdiff.domain.changes.extract import (
    ENTITY_CHANGE_CONFIGS,
    EntityChangeConfig,
    extract_changes,
    extract_entity_changes,
)
from snapdiff.domain.changes.reconcile import ReconcileCounts, index_by_key, reconcile_changes

__all__ = [
    "ENTITY_CHANGE_CONFIGS",
    "HIDE_RULES",
    "ArrayChange",
    "ChangeShape",
    "EntityChangeConfig",
    "HideRule",
    "ReconcileCounts",
    "RecordChange",
    "UnknownShape",
    "ValueChange",
    "ValueKind",
    "changed_field_names",
    "classify",
    "classify_record",
    "extract_changes",
    "extract_entity_changes",
    "index_by_key",
    "matches_rule",
    "reconcile_changes",
    "should_display",
    "summarize",
]
