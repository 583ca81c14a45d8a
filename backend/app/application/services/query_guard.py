"""Complexity classification, hard limits and load shedding for searches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.application.schemas.search import SearchFilters
from app.domain.entities import FieldSelection, QueryComplexity, parse_field_selection
from app.domain.exceptions import SearchValidationError, UrlTooLongError

logger = logging.getLogger(__name__)

COMPLEX_FILTER_KEYS: frozenset[str] = frozenset({
    "complexDateRanges",
    "customFields",
    "bulkIds",
    "geoLocation",
    "citizenFilters",
    "reportingFilters",
    "textSearch",
})


class QueryGuard:
    """Labels filter sets simple/complex and rejects oversized requests."""

    def __init__(
        self,
        *,
        max_bulk_ids: int = 1000,
        max_complex_date_ranges: int = 10,
        complex_key_threshold: int = 5,
        shedding_key_threshold: int = 10,
        shedding_delay_seconds: float = 0.1,
        max_url_length: int = 2000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._max_bulk_ids = max_bulk_ids
        self._max_complex_date_ranges = max_complex_date_ranges
        self._complex_key_threshold = complex_key_threshold
        self._shedding_key_threshold = shedding_key_threshold
        self._shedding_delay = shedding_delay_seconds
        self._max_url_length = max_url_length
        self._sleep = sleep

    def classify(self, filters: SearchFilters) -> QueryComplexity:
        keys = filters.supplied_keys()
        if COMPLEX_FILTER_KEYS.intersection(keys) or len(keys) > self._complex_key_threshold:
            return QueryComplexity.COMPLEX
        return QueryComplexity.SIMPLE

    def validate(self, filters: SearchFilters) -> None:
        ranges = filters.complex_date_ranges or []
        if len(ranges) > self._max_complex_date_ranges:
            raise SearchValidationError(
                f"Maximum {self._max_complex_date_ranges} complex date ranges allowed",
                code="TOO_MANY_DATE_RANGES",
                details={"count": len(ranges), "max": self._max_complex_date_ranges},
            )
        bulk_ids = filters.bulk_ids or []
        if len(bulk_ids) > self._max_bulk_ids:
            raise SearchValidationError(
                f"Maximum {self._max_bulk_ids} IDs allowed in bulk search",
                code="TOO_MANY_IDS",
                details={"count": len(bulk_ids), "max": self._max_bulk_ids},
            )

    @staticmethod
    def validate_field_selection(names: list[str] | None) -> FieldSelection | None:
        if not names:
            return None
        try:
            return parse_field_selection(names)
        except ValueError as exc:
            raise SearchValidationError(
                "Unsupported field selection",
                details={"unknownFields": str(exc).split(", ")},
            ) from exc

    def check_url_length(self, url: str) -> None:
        if len(url) > self._max_url_length:
            raise UrlTooLongError(len(url), self._max_url_length)

    async def shed_load(self, filters: SearchFilters, complexity: QueryComplexity) -> bool:
        """Delay unusually broad complex queries. Returns True if delayed."""
        key_count = len(filters.supplied_keys())
        if complexity != QueryComplexity.COMPLEX or key_count <= self._shedding_key_threshold:
            return False
        logger.info(
            "Delaying complex search with %d filter keys by %.3fs",
            key_count,
            self._shedding_delay,
        )
        await self._sleep(self._shedding_delay)
        return True
