"""Field selection for narrowed fetches.

Callers name fields in API form (``title``, ``locationText``,
``creator.name``, ``comments``, ``comments.body``). A ``FieldSelection``
groups those names by how the store has to fetch them.
"""

import re
from dataclasses import dataclass, field

from app.domain.entities.predicate import RECORD_FIELDS, RELATIONS

# to-one references and the sub-fields callers may ask for
REFERENCE_SUBFIELDS: dict[str, frozenset[str]] = {
    "creator": frozenset({"id", "name", "email", "role"}),
    "assignee": frozenset({"id", "name", "email", "role"}),
    "department": frozenset({"id", "name", "slug"}),
}

# to-many relations and the sub-fields of a loaded row
RELATION_SUBFIELDS: dict[str, frozenset[str]] = {
    "comments": frozenset({"id", "author_id", "body", "visibility", "created_at"}),
    "attachments": frozenset({
        "id", "uploaded_by_id", "filename", "mime", "size", "url", "created_at",
    }),
    "upvotes": frozenset({"id", "user_id", "created_at"}),
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    """``locationText`` → ``location_text``; snake_case input passes through."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class FieldSelection:
    scalars: tuple[str, ...] = ()
    references: dict[str, tuple[str, ...]] = field(default_factory=dict)
    relation_counts: tuple[str, ...] = ()
    relation_lists: dict[str, tuple[str, ...]] = field(default_factory=dict)


def parse_field_selection(names: list[str]) -> FieldSelection:
    """Group API field names by fetch strategy.

    ``id`` is always included. Raises ``ValueError`` listing every name
    that matches no known field.
    """
    scalars: list[str] = ["id"]
    references: dict[str, list[str]] = {}
    counts: list[str] = []
    lists: dict[str, list[str]] = {}
    unknown: list[str] = []

    for raw in names:
        parent, _, child = raw.partition(".")
        parent_key = to_snake(parent)
        child_key = to_snake(child)

        if not child:
            if parent_key in RECORD_FIELDS:
                if parent_key not in scalars:
                    scalars.append(parent_key)
            elif parent_key in RELATIONS:
                if parent_key not in counts:
                    counts.append(parent_key)
            elif parent_key in REFERENCE_SUBFIELDS:
                references.setdefault(parent_key, [])
                for sub in sorted(REFERENCE_SUBFIELDS[parent_key]):
                    if sub not in references[parent_key]:
                        references[parent_key].append(sub)
            else:
                unknown.append(raw)
            continue

        if parent_key in REFERENCE_SUBFIELDS and child_key in REFERENCE_SUBFIELDS[parent_key]:
            bucket = references.setdefault(parent_key, [])
        elif parent_key in RELATION_SUBFIELDS and child_key in RELATION_SUBFIELDS[parent_key]:
            bucket = lists.setdefault(parent_key, [])
        else:
            unknown.append(raw)
            continue
        if child_key not in bucket:
            bucket.append(child_key)

    if unknown:
        raise ValueError(", ".join(unknown))

    # a loaded list already tells the caller the cardinality
    counts = [name for name in counts if name not in lists]

    return FieldSelection(
        scalars=tuple(scalars),
        references={k: tuple(v) for k, v in references.items()},
        relation_counts=tuple(counts),
        relation_lists={k: tuple(v) for k, v in lists.items()},
    )
