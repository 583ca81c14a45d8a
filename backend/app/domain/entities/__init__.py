from .field_selection import FieldSelection, parse_field_selection
from .predicate import (
    AndGroup,
    FieldContains,
    FieldEquals,
    FieldIn,
    FieldRange,
    OrGroup,
    Predicate,
    RelationExists,
    RECORD_FIELDS,
    REFERENCE_FIELDS,
    RELATIONS,
)
from .search import (
    CacheEntry,
    Caller,
    ExecutionResult,
    ExportDocument,
    OrderTerm,
    Priority,
    QueryComplexity,
    SearchPage,
    SearchPlan,
    SearchResult,
    SortField,
    SortOrder,
    UserRole,
)

__all__ = [
    "FieldSelection",
    "parse_field_selection",
    "AndGroup",
    "FieldContains",
    "FieldEquals",
    "FieldIn",
    "FieldRange",
    "OrGroup",
    "Predicate",
    "RelationExists",
    "RECORD_FIELDS",
    "REFERENCE_FIELDS",
    "RELATIONS",
    "CacheEntry",
    "Caller",
    "ExecutionResult",
    "ExportDocument",
    "OrderTerm",
    "Priority",
    "QueryComplexity",
    "SearchPage",
    "SearchPlan",
    "SearchResult",
    "SortField",
    "SortOrder",
    "UserRole",
]
