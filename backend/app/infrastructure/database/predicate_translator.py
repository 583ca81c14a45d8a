"""Translates domain predicate trees and sort plans into SQLAlchemy clauses."""

from typing import Any

from sqlalchemy import ColumnElement, and_, case, false, func, or_, select, true
from sqlalchemy.orm import InstrumentedAttribute

from app.domain.entities import (
    AndGroup,
    FieldContains,
    FieldEquals,
    FieldIn,
    FieldRange,
    OrGroup,
    Predicate,
    RelationExists,
    SearchPlan,
    SortField,
    SortOrder,
)
from app.infrastructure.database.models import (
    AttachmentModel,
    CommentModel,
    DepartmentModel,
    ServiceRequestModel,
    UpvoteModel,
)

# relation → (child model, column holding the acting user)
_RELATION_MODELS: dict[str, tuple[type, InstrumentedAttribute]] = {
    "comments": (CommentModel, CommentModel.author_id),
    "attachments": (AttachmentModel, AttachmentModel.uploaded_by_id),
    "upvotes": (UpvoteModel, UpvoteModel.user_id),
}

_PRIORITY_RANK = {"LOW": 1, "MEDIUM": 2, "HIGH": 3, "URGENT": 4}

_SORT_COLUMNS: dict[SortField, InstrumentedAttribute] = {
    SortField.CREATED_AT: ServiceRequestModel.created_at,
    SortField.UPDATED_AT: ServiceRequestModel.updated_at,
    SortField.CLOSED_AT: ServiceRequestModel.closed_at,
    SortField.STATUS: ServiceRequestModel.status,
    SortField.TITLE: ServiceRequestModel.title,
    SortField.CATEGORY: ServiceRequestModel.category,
}


def to_clause(predicate: Predicate) -> ColumnElement[bool]:
    """Build a WHERE clause for ``ServiceRequestModel`` from a predicate tree."""
    if isinstance(predicate, AndGroup):
        if not predicate.children:
            return true()
        return and_(*(to_clause(child) for child in predicate.children))

    if isinstance(predicate, OrGroup):
        if not predicate.children:
            return false()
        return or_(*(to_clause(child) for child in predicate.children))

    if isinstance(predicate, RelationExists):
        return _relation_clause(predicate)

    if predicate.field == "department_slug":
        return ServiceRequestModel.department.has(_field_clause(DepartmentModel.slug, predicate))

    return _field_clause(getattr(ServiceRequestModel, predicate.field), predicate)


def _field_clause(column: Any, predicate: Predicate) -> ColumnElement[bool]:
    if isinstance(predicate, FieldEquals):
        if predicate.value is None:
            return column.is_(None)
        return column == predicate.value

    if isinstance(predicate, FieldIn):
        return column.in_(predicate.values)

    if isinstance(predicate, FieldContains):
        if predicate.case_sensitive:
            return column.contains(predicate.value, autoescape=True)
        return column.icontains(predicate.value, autoescape=True)

    if isinstance(predicate, FieldRange):
        bounds = []
        if predicate.gte is not None:
            bounds.append(column >= predicate.gte)
        if predicate.lte is not None:
            bounds.append(column <= predicate.lte)
        return and_(*bounds)

    raise TypeError(f"Unsupported predicate node: {type(predicate).__name__}")


def _relation_clause(predicate: RelationExists) -> ColumnElement[bool]:
    relationship = getattr(ServiceRequestModel, predicate.relation)
    _, user_column = _RELATION_MODELS[predicate.relation]
    if predicate.user_id is not None:
        clause = relationship.any(user_column == predicate.user_id)
    else:
        clause = relationship.any()
    return clause if predicate.exists else ~clause


def relation_count(relation: str) -> ColumnElement[int]:
    """Correlated ``COUNT(*)`` of a to-many relation for each service request."""
    model, _ = _RELATION_MODELS[relation]
    return (
        select(func.count(model.id))
        .where(model.request_id == ServiceRequestModel.id)
        .correlate(ServiceRequestModel)
        .scalar_subquery()
    )


def order_clauses(plan: SearchPlan) -> list[ColumnElement[Any]]:
    clauses = []
    for term in plan.order_by:
        expression = _sort_expression(term.key)
        clauses.append(expression.asc() if term.order == SortOrder.ASC else expression.desc())
    return clauses


def _sort_expression(key: SortField | str) -> ColumnElement[Any]:
    if key == "id":
        return ServiceRequestModel.id
    if key == SortField.PRIORITY:
        # severity order rather than alphabetical
        return case(_PRIORITY_RANK, value=ServiceRequestModel.priority, else_=0)
    if key == SortField.UPVOTES:
        return relation_count("upvotes")
    if key == SortField.COMMENTS:
        return relation_count("comments")
    return _SORT_COLUMNS[SortField(key)]
