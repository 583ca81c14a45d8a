"""Filter compiler: turns a validated filter set into a predicate tree.

The output is store-agnostic (see ``app.domain.entities.predicate``) so
this module can be unit-tested without a database.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from app.application.schemas.search import SearchFilters
from app.domain.entities import (
    AndGroup,
    Caller,
    FieldContains,
    FieldEquals,
    FieldIn,
    FieldRange,
    OrGroup,
    Predicate,
    RelationExists,
)
from app.domain.entities.field_selection import to_snake

logger = logging.getLogger(__name__)

KEYWORD_FIELDS: tuple[str, ...] = ("title", "description", "code", "location_text")

KM_PER_DEGREE = 111.0

# API date-range field → record column
_COMPLEX_RANGE_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "closedAt": "closed_at",
    "preferredDate": "preferred_date",
}


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _plain(value: Any) -> Any:
    """Unwrap str-enums to their literal value."""
    return getattr(value, "value", value)


class FilterCompiler:
    """Compiles ``SearchFilters`` for a caller into a single ``AndGroup``."""

    def compile(self, filters: SearchFilters, caller: Caller) -> AndGroup:
        branches: list[Predicate] = []

        # Role scoping comes first so it can never be displaced.
        if caller.is_citizen and not filters.show_all:
            branches.append(FieldEquals("created_by", caller.user_id))

        self._add_membership(branches, "status", filters.status)
        self._add_membership(branches, "priority", filters.priority)
        self._add_membership(branches, "department_slug", filters.department)
        self._add_membership(branches, "assigned_to", filters.assigned_to)
        self._add_category(branches, filters.category)

        if filters.location:
            branches.append(FieldContains("location_text", filters.location))

        self._add_range(branches, "created_at", filters.created_from, filters.created_to)
        self._add_range(branches, "updated_at", filters.updated_from, filters.updated_to)
        self._add_range(branches, "closed_at", filters.resolved_from, filters.resolved_to)

        if filters.complex_date_ranges:
            group = self._compile_complex_ranges(filters)
            if group is not None:
                branches.append(group)

        if filters.keyword:
            branches.append(self._contains_any(KEYWORD_FIELDS, filters.keyword))

        if filters.text_search is not None:
            ts = filters.text_search
            fields = [to_snake(f) for f in ts.fields] if ts.fields else list(KEYWORD_FIELDS)
            branches.append(
                self._contains_any(fields, ts.query, case_sensitive=ts.case_sensitive)
            )

        if filters.bulk_ids:
            branches.append(FieldIn("id", tuple(dict.fromkeys(filters.bulk_ids))))

        if filters.geo_location is not None:
            branches.extend(self._compile_bounding_box(filters))

        if filters.citizen_filters is not None:
            branches.extend(self._compile_citizen_filters(filters, caller))

        if filters.reporting_filters is not None:
            branches.extend(self._compile_reporting_filters(filters))

        return AndGroup(tuple(branches))

    # ── Basic filters ───────────────────────────────────────────────

    @staticmethod
    def _add_membership(branches: list[Predicate], field: str, value: Any) -> None:
        values = [_plain(v) for v in _as_list(value)]
        if not values:
            return
        if len(values) == 1:
            branches.append(FieldEquals(field, values[0]))
        else:
            branches.append(FieldIn(field, tuple(values)))

    @staticmethod
    def _add_category(branches: list[Predicate], value: Any) -> None:
        categories = _as_list(value)
        if not categories:
            return
        if len(categories) == 1:
            branches.append(FieldContains("category", categories[0]))
        else:
            branches.append(OrGroup(tuple(FieldContains("category", c) for c in categories)))

    @staticmethod
    def _add_range(branches: list[Predicate], field: str, lower: Any, upper: Any) -> None:
        if lower is None and upper is None:
            return
        branches.append(FieldRange(field, gte=lower, lte=upper))

    @staticmethod
    def _contains_any(
        fields: Sequence[str],
        text: str,
        *,
        case_sensitive: bool = False,
    ) -> OrGroup:
        return OrGroup(tuple(
            FieldContains(field, text, case_sensitive=case_sensitive) for field in fields
        ))

    # ── Advanced filters ────────────────────────────────────────────

    @staticmethod
    def _compile_complex_ranges(filters: SearchFilters) -> Predicate | None:
        """One group for all complex ranges.

        If any item asks for OR the whole set is a single OR group,
        otherwise every item is ANDed. Items without bounds are dropped.
        """
        items = filters.complex_date_ranges or []
        conditions = tuple(
            FieldRange(_COMPLEX_RANGE_FIELDS[item.field], gte=item.from_, lte=item.to)
            for item in items
            if item.from_ is not None or item.to is not None
        )
        if not conditions:
            return None
        if any(item.operator == "OR" for item in items):
            return OrGroup(conditions)
        return AndGroup(conditions)

    @staticmethod
    def _compile_bounding_box(filters: SearchFilters) -> list[Predicate]:
        """Flat lat/lng rectangle around the centre; not a true great-circle radius."""
        geo = filters.geo_location
        lat_delta = geo.radius_km / KM_PER_DEGREE
        cos_lat = math.cos(math.radians(geo.latitude))
        # at the poles every longitude is within the radius
        lng_delta = 180.0 if cos_lat < 1e-9 else geo.radius_km / (KM_PER_DEGREE * cos_lat)
        return [
            FieldRange("lat", gte=geo.latitude - lat_delta, lte=geo.latitude + lat_delta),
            FieldRange("lng", gte=geo.longitude - lng_delta, lte=geo.longitude + lng_delta),
        ]

    @staticmethod
    def _compile_citizen_filters(filters: SearchFilters, caller: Caller) -> list[Predicate]:
        cf = filters.citizen_filters
        out: list[Predicate] = []
        if cf.created_by:
            out.append(FieldEquals("created_by", cf.created_by))
        if cf.has_upvoted is not None:
            out.append(RelationExists("upvotes", exists=cf.has_upvoted, user_id=caller.user_id))
        if cf.has_commented is not None:
            out.append(RelationExists("comments", exists=cf.has_commented, user_id=caller.user_id))
        return out

    @staticmethod
    def _compile_reporting_filters(filters: SearchFilters) -> list[Predicate]:
        rf = filters.reporting_filters
        out: list[Predicate] = []
        if rf.has_attachments is not None:
            out.append(RelationExists("attachments", exists=rf.has_attachments))
        if rf.is_emergency is not None:
            out.append(FieldEquals("is_emergency", rf.is_emergency))
        if rf.is_recurring is not None:
            out.append(FieldEquals("is_recurring", rf.is_recurring))

        thresholds = {
            name: value
            for name, value in (
                ("minUpvotes", rf.min_upvotes),
                ("maxUpvotes", rf.max_upvotes),
                ("minComments", rf.min_comments),
                ("maxComments", rf.max_comments),
            )
            if value is not None
        }
        if thresholds:
            logger.info("Count-threshold filters are not applied: %s", thresholds)
        return out
