"""Concrete search repository for service requests backed by SQLAlchemy."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import load_only, selectinload

from app.application.interfaces import ServiceRequestSearchRepository
from app.domain.entities import RECORD_FIELDS, RELATIONS, FieldSelection, Predicate, SearchPlan
from app.infrastructure.database.models import (
    AttachmentModel,
    CommentModel,
    DepartmentModel,
    ServiceRequestModel,
    UpvoteModel,
    UserModel,
)
from app.infrastructure.database.predicate_translator import (
    order_clauses,
    relation_count,
    to_clause,
)

_SCALAR_COLUMNS: tuple[str, ...] = tuple(
    column.key for column in ServiceRequestModel.__table__.columns
)

# reference → (target model, local FK column, sub-fields in the default fetch)
_REFERENCES: dict[str, tuple[type, str, tuple[str, ...]]] = {
    "creator": (UserModel, "created_by", ("id", "name", "email")),
    "assignee": (UserModel, "assigned_to", ("id", "name", "email")),
    "department": (DepartmentModel, "department_id", ("id", "name", "slug")),
}

_RELATION_MODELS: dict[str, type] = {
    "comments": CommentModel,
    "attachments": AttachmentModel,
    "upvotes": UpvoteModel,
}


class SQLAlchemyServiceRequestSearchRepository(ServiceRequestSearchRepository):
    """Implements the search port using SQLAlchemy async sessions.

    Takes a session factory rather than a session: the executor awaits
    several queries at once and an ``AsyncSession`` cannot serve
    concurrent operations, so each query opens its own session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def count(self, predicate: Predicate) -> int:
        stmt = (
            select(func.count())
            .select_from(ServiceRequestModel)
            .where(to_clause(predicate))
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def count_by(self, predicate: Predicate, field: str) -> dict[str | None, int]:
        if field not in RECORD_FIELDS:
            raise ValueError(f"Cannot group by unknown field '{field}'")
        column = getattr(ServiceRequestModel, field)
        stmt = (
            select(column, func.count())
            .where(to_clause(predicate))
            .group_by(column)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return {value: int(count) for value, count in result.all()}

    async def fetch_page(
        self,
        predicate: Predicate,
        plan: SearchPlan,
        selection: FieldSelection | None = None,
    ) -> list[dict[str, Any]]:
        if selection is None:
            selection = _DEFAULT_SELECTION

        count_columns = {
            name: relation_count(name).label(f"{name}_count")
            for name in selection.relation_counts
        }
        stmt = (
            select(ServiceRequestModel, *count_columns.values())
            .where(to_clause(predicate))
            .options(*self._loader_options(selection))
            .order_by(*order_clauses(plan))
            .offset(plan.skip)
            .limit(plan.take)
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [
                self._to_record(row[0], row._mapping, selection, count_columns)
                for row in result.all()
            ]

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _loader_options(selection: FieldSelection) -> list[Any]:
        columns = set(selection.scalars) | {"id"}
        options: list[Any] = []

        for name, subfields in selection.references.items():
            model, fk, _ = _REFERENCES[name]
            columns.add(fk)
            options.append(
                selectinload(getattr(ServiceRequestModel, name)).load_only(
                    *(getattr(model, sub) for sub in {"id", *subfields})
                )
            )

        for name, subfields in selection.relation_lists.items():
            model = _RELATION_MODELS[name]
            options.append(
                selectinload(getattr(ServiceRequestModel, name)).load_only(
                    *(getattr(model, sub) for sub in {"id", "request_id", *subfields})
                )
            )

        options.insert(
            0,
            load_only(*(getattr(ServiceRequestModel, column) for column in sorted(columns))),
        )
        return options

    @staticmethod
    def _to_record(
        model: ServiceRequestModel,
        mapping: Any,
        selection: FieldSelection,
        count_columns: dict[str, Any],
    ) -> dict[str, Any]:
        """Map ORM row → plain dict holding only what was selected."""
        record: dict[str, Any] = {name: getattr(model, name) for name in selection.scalars}

        for name, subfields in selection.references.items():
            target = getattr(model, name)
            record[name] = (
                None if target is None else {sub: getattr(target, sub) for sub in subfields}
            )

        for name, subfields in selection.relation_lists.items():
            record[name] = [
                {sub: getattr(item, sub) for sub in subfields}
                for item in getattr(model, name)
            ]

        if count_columns:
            record["_count"] = {
                name: int(mapping[column.name] or 0) for name, column in count_columns.items()
            }
        return record


_DEFAULT_SELECTION = FieldSelection(
    scalars=_SCALAR_COLUMNS,
    references={name: default for name, (_, _, default) in _REFERENCES.items()},
    relation_counts=tuple(sorted(RELATIONS)),
)
