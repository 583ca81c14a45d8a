"""Abstract repository interface (port) for searching service requests."""

from abc import ABC, abstractmethod
from typing import Any

from app.domain.entities import FieldSelection, Predicate, SearchPlan


class ServiceRequestSearchRepository(ABC):
    """Port for read-only service request queries, implemented in the infrastructure layer.

    Implementations must allow ``count``, ``fetch_page`` and ``count_by``
    to be awaited concurrently.
    """

    @abstractmethod
    async def count(self, predicate: Predicate) -> int:
        """Count records matching the predicate."""
        ...

    @abstractmethod
    async def fetch_page(
        self,
        predicate: Predicate,
        plan: SearchPlan,
        selection: FieldSelection | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch one ordered page of matching records as plain dicts.

        Without a selection each dict holds every scalar column (snake_case),
        ``creator``/``assignee``/``department`` reference dicts and a
        ``_count`` dict with comment, attachment and upvote counts.
        With a selection only the selected parts are present.
        """
        ...

    @abstractmethod
    async def count_by(self, predicate: Predicate, field: str) -> dict[str | None, int]:
        """Group matching records by one column and count each group."""
        ...
