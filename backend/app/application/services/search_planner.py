"""Sort and pagination planner."""

import logging

from app.application.interfaces import FeatureFlagProvider
from app.domain.entities import OrderTerm, SearchPlan, SortField, SortOrder

logger = logging.getLogger(__name__)

WRONG_DEFAULT_SORT_FLAG = "UI_WrongDefaultSort"


class SortPaginationPlanner:
    """Resolves requested ordering and page window into safe parameters.

    Unknown sort keys or directions fall back to ``createdAt desc``.
    Page numbers below 1 become 1 and limits are clamped to
    ``[1, max_limit]``. Every plan ends with an ``id`` tiebreaker so
    pages are stable across equal sort values.
    """

    def __init__(self, feature_flags: FeatureFlagProvider, max_limit: int = 100):
        self._feature_flags = feature_flags
        self._max_limit = max_limit

    async def plan(
        self,
        sort_by: str | None,
        sort_order: str | None,
        page: int | None,
        limit: int | None,
        *,
        max_limit: int | None = None,
        allow_flag_override: bool = True,
    ) -> SearchPlan:
        key, order = self._resolve_sort(sort_by, sort_order)

        if (
            allow_flag_override
            and key == SortField.CREATED_AT
            and await self._feature_flags.is_enabled(WRONG_DEFAULT_SORT_FLAG)
        ):
            logger.debug("%s active: sorting by title asc", WRONG_DEFAULT_SORT_FLAG)
            key, order = SortField.TITLE, SortOrder.ASC

        ceiling = max_limit if max_limit is not None else self._max_limit
        page_number = max(1, page or 1)
        page_size = min(max(1, limit or 1), ceiling)

        return SearchPlan(
            order_by=(OrderTerm(key, order), OrderTerm("id", SortOrder.ASC)),
            page=page_number,
            limit=page_size,
        )

    @staticmethod
    def _resolve_sort(sort_by: str | None, sort_order: str | None) -> tuple[SortField, SortOrder]:
        try:
            key = SortField(sort_by or SortField.CREATED_AT.value)
            order = SortOrder((sort_order or SortOrder.DESC.value).lower())
        except ValueError:
            logger.warning(
                "Unsupported sort %r %r, falling back to createdAt desc",
                sort_by,
                sort_order,
            )
            return SortField.CREATED_AT, SortOrder.DESC
        return key, order
