"""Search service: orchestrates a service request search end to end.

Flow for one call:
  1. Guardrails: hard limits and field selection are checked before any
     store access.
  2. Planning: sort/pagination resolved (feature flags consulted).
  3. Cache lookup by request fingerprint unless ``skipCache``.
  4. On a miss: compile filters, apply load shedding, execute, transform,
     and store the page.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from app.application.interfaces import (
    FeatureFlagProvider,
    ServiceRequestSearchRepository,
    SuggestionProvider,
)
from app.application.schemas.search import (
    ExportRequestBody,
    Pagination,
    SearchFilters,
    SearchOptions,
    SearchRequest,
    Sorting,
)
from app.application.services.export_service import ExportEncoder, check_export_format
from app.application.services.filter_compiler import FilterCompiler
from app.application.services.query_executor import QueryExecutor
from app.application.services.query_guard import QueryGuard
from app.application.services.result_transformer import ResultTransformer
from app.application.services.search_cache import SearchResultCache, build_cache_key
from app.application.services.search_planner import SortPaginationPlanner
from app.domain.entities import Caller, ExportDocument, SearchPage, SearchPlan, SearchResult
from app.domain.exceptions import (
    ExportExecutionError,
    PermissionDeniedError,
    SearchError,
    SearchExecutionError,
    SearchValidationError,
)
from app.infrastructure.logging.colored_logger import PipelineLogger, SearchStage

logger = logging.getLogger(__name__)
plog = PipelineLogger(__name__)

# API field name → record column
SUGGESTION_FIELDS: dict[str, str] = {
    "category": "category",
    "locationText": "location_text",
    "title": "title",
}


class SearchService:
    """Application service behind every search endpoint."""

    def __init__(
        self,
        repository: ServiceRequestSearchRepository,
        cache: SearchResultCache,
        feature_flags: FeatureFlagProvider,
        suggestions: SuggestionProvider | None = None,
        *,
        guard: QueryGuard | None = None,
        max_page_size: int = 100,
        export_max_records: int = 10000,
        suggestion_limit: int = 10,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._cache = cache
        self._suggestions = suggestions
        self._guard = guard or QueryGuard()
        self._compiler = FilterCompiler()
        self._planner = SortPaginationPlanner(feature_flags, max_limit=max_page_size)
        self._executor = QueryExecutor(repository)
        self._transformer = ResultTransformer()
        self._exporter = ExportEncoder()
        self._export_max_records = export_max_records
        self._suggestion_limit = suggestion_limit
        self._clock = clock

    @property
    def guard(self) -> QueryGuard:
        return self._guard

    # ── Search ──────────────────────────────────────────────────────

    async def perform_search(
        self,
        request: SearchRequest,
        *,
        max_limit: int | None = None,
        allow_flag_override: bool = True,
    ) -> SearchResult:
        started = self._clock()
        filters, options, caller = request.filters, request.options, request.caller

        self._guard.validate(filters)
        selection = self._guard.validate_field_selection(options.field_selection)
        complexity = self._guard.classify(filters)
        plog.step(
            SearchStage.GUARD,
            "Filters accepted",
            user=caller.user_id,
            complexity=complexity.value,
            keys=len(filters.supplied_keys()),
        )

        plan = await self._planner.plan(
            request.sorting.sort_by,
            request.sorting.sort_order,
            request.pagination.page,
            request.pagination.limit,
            max_limit=max_limit,
            allow_flag_override=allow_flag_override,
        )
        plog.step(
            SearchStage.PLAN,
            "Plan resolved",
            order=",".join(f"{getattr(t.key, 'value', t.key)}:{t.order.value}" for t in plan.order_by),
            page=plan.page,
            limit=plan.limit,
        )
        echo = self._echo_filters(filters)
        key = build_cache_key(self._cache_scope(request, plan))

        if not options.skip_cache:
            entry = self._cache.get(key)
            if entry is not None:
                plog.step(SearchStage.CACHE, "Cache hit", key=key[:12], user=caller.user_id)
                return SearchResult(
                    page=entry.page,
                    filters=echo,
                    complexity=complexity,
                    duration_ms=self._elapsed_ms(started),
                    cached=True,
                    aggregations=entry.aggregations,
                )

        predicate = self._compiler.compile(filters, caller)
        await self._guard.shed_load(filters, complexity)

        try:
            with plog.timed_step(SearchStage.EXECUTE, "Querying store", page=plan.page, limit=plan.limit):
                execution = await self._executor.execute(
                    predicate,
                    plan,
                    include_aggregations=options.include_aggregations or options.include_stats,
                    selection=selection,
                )
        except SearchError:
            raise
        except Exception as exc:
            logger.exception(
                "Search execution failed for user %s (%s); filters=%s",
                caller.user_id,
                caller.role.value,
                echo,
            )
            raise SearchExecutionError() from exc

        page = SearchPage(
            records=tuple(self._transformer.transform(raw) for raw in execution.records),
            total_count=execution.total_count,
            page_index=plan.page,
            page_size=plan.limit,
        )

        if not options.skip_cache:
            self._cache.put(key, page, execution.aggregations)
            plog.step(SearchStage.CACHE, "Page stored", key=key[:12])

        duration_ms = self._elapsed_ms(started)
        plog.step_complete(
            SearchStage.COMPLETE,
            "Search finished",
            total=page.total_count,
            returned=len(page.records),
            ms=duration_ms,
        )
        return SearchResult(
            page=page,
            filters=echo,
            complexity=complexity,
            duration_ms=duration_ms,
            cached=False,
            aggregations=execution.aggregations,
        )

    # ── Suggestions ─────────────────────────────────────────────────

    async def suggest(self, field: str | None, query: str | None) -> list[str]:
        if not field or not query:
            raise SearchValidationError(
                "field and query parameters are required",
                code="MISSING_PARAMETERS",
            )
        column = SUGGESTION_FIELDS.get(field)
        if column is None:
            raise SearchValidationError(
                f"Field must be one of: {', '.join(SUGGESTION_FIELDS)}",
                code="INVALID_FIELD",
            )
        if self._suggestions is None:
            return []
        try:
            values = await self._suggestions.suggest(column, query, self._suggestion_limit)
        except Exception as exc:
            logger.exception("Suggestion lookup failed for %s=%r", field, query)
            raise SearchExecutionError("Failed to get search suggestions") from exc
        return values[: self._suggestion_limit]

    # ── Export ──────────────────────────────────────────────────────

    async def export(self, body: ExportRequestBody, caller: Caller) -> ExportDocument:
        if not caller.is_staff:
            raise PermissionDeniedError("Export functionality is only available to staff members")
        check_export_format(body.format)

        request = SearchRequest(
            filters=body.filters,
            pagination=Pagination(page=1, limit=self._export_max_records),
            sorting=Sorting(sort_by="createdAt", sort_order="desc"),
            options=SearchOptions(skip_cache=True, field_selection=body.fields),
            caller=caller,
        )
        try:
            result = await self.perform_search(
                request,
                max_limit=self._export_max_records,
                allow_flag_override=False,
            )
        except SearchExecutionError as exc:
            raise ExportExecutionError() from exc
        document = self._exporter.encode(
            list(result.page.records),
            body.format,
            timestamp_ms=int(time.time() * 1000),
        )
        plog.step_complete(
            SearchStage.EXPORT,
            "Export encoded",
            format=body.format,
            records=document.record_count,
            user=caller.user_id,
        )
        return document

    # ── Cache administration ────────────────────────────────────────

    def clear_cache(self, caller: Caller) -> int:
        if not caller.is_admin:
            raise PermissionDeniedError("Only administrators can clear the search cache")
        return self._cache.clear()

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _echo_filters(filters: SearchFilters) -> dict[str, Any]:
        echo = filters.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not filters.show_all:
            echo.pop("showAll", None)
        return echo

    @classmethod
    def _cache_scope(cls, request: SearchRequest, plan: SearchPlan) -> dict[str, Any]:
        """An explicit cacheKey replaces the fingerprint but never the caller."""
        caller = {"id": request.caller.user_id, "role": request.caller.role.value}
        if request.options.cache_key:
            return {"cacheKey": request.options.cache_key, "caller": caller}
        return {**cls._fingerprint(request, plan), "caller": caller}

    @staticmethod
    def _fingerprint(request: SearchRequest, plan: SearchPlan) -> dict[str, Any]:
        options = request.options
        return {
            "filters": request.filters.model_dump(mode="json", by_alias=True, exclude_none=True),
            "pagination": {"page": plan.page, "limit": plan.limit},
            "sorting": [
                [getattr(term.key, "value", term.key), term.order.value] for term in plan.order_by
            ],
            "options": {
                "aggregations": options.include_aggregations or options.include_stats,
                "fieldSelection": options.field_selection,
            },
        }

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)
