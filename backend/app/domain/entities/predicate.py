"""Store-agnostic predicate tree for service request searches.

The filter compiler produces these nodes; the infrastructure layer
translates them into store-specific query clauses. Every atomic node
names exactly one known record field or one known relation, so a
malformed tree cannot be built in the first place.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

# Scalar columns of a service request that predicates may reference.
RECORD_FIELDS: frozenset[str] = frozenset({
    "id",
    "code",
    "title",
    "description",
    "category",
    "priority",
    "status",
    "date_of_request",
    "street_address",
    "city",
    "postal_code",
    "location_text",
    "landmark",
    "access_instructions",
    "lat",
    "lng",
    "contact_method",
    "email",
    "phone",
    "alternate_phone",
    "best_time_to_contact",
    "issue_type",
    "severity",
    "is_recurring",
    "is_emergency",
    "has_permits",
    "affected_services",
    "estimated_value",
    "additional_contacts",
    "satisfaction_rating",
    "form_comments",
    "agrees_to_terms",
    "wants_updates",
    "preferred_date",
    "preferred_time",
    "created_by",
    "assigned_to",
    "department_id",
    "version",
    "sla_due_at",
    "closed_at",
    "reopen_until",
    "created_at",
    "updated_at",
})

# Fields reached through a to-one reference rather than a local column.
REFERENCE_FIELDS: frozenset[str] = frozenset({"department_slug"})

# To-many relations usable in existence tests and cardinality sorts.
RELATIONS: frozenset[str] = frozenset({"comments", "attachments", "upvotes"})


def _require_field(field_name: str) -> None:
    if field_name not in RECORD_FIELDS and field_name not in REFERENCE_FIELDS:
        raise ValueError(f"Unknown record field '{field_name}'")


@dataclass(frozen=True)
class FieldEquals:
    """``field == value``"""

    field: str
    value: Any

    def __post_init__(self) -> None:
        _require_field(self.field)


@dataclass(frozen=True)
class FieldIn:
    """``field IN values``"""

    field: str
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        _require_field(self.field)
        if not self.values:
            raise ValueError("FieldIn requires at least one value")


@dataclass(frozen=True)
class FieldContains:
    """Substring containment on a text field."""

    field: str
    value: str
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        _require_field(self.field)


@dataclass(frozen=True)
class FieldRange:
    """Inclusive range; a missing bound is left open."""

    field: str
    gte: datetime | float | None = None
    lte: datetime | float | None = None

    def __post_init__(self) -> None:
        _require_field(self.field)
        if self.gte is None and self.lte is None:
            raise ValueError("FieldRange requires at least one bound")


@dataclass(frozen=True)
class RelationExists:
    """Existence (or absence) of related rows, optionally owned by one user."""

    relation: str
    exists: bool = True
    user_id: str | None = None

    def __post_init__(self) -> None:
        if self.relation not in RELATIONS:
            raise ValueError(f"Unknown relation '{self.relation}'")


@dataclass(frozen=True)
class AndGroup:
    children: tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class OrGroup:
    children: tuple["Predicate", ...] = ()


Predicate = Union[
    FieldEquals,
    FieldIn,
    FieldContains,
    FieldRange,
    RelationExists,
    AndGroup,
    OrGroup,
]
