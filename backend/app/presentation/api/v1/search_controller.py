"""Search API controller: simple and rich search, suggestions, export and cache admin."""

from fastapi import APIRouter, Depends, Query, Request, Response

from app.application.schemas.search import (
    CacheClearedResponse,
    ExportRequestBody,
    Pagination,
    PaginationResponse,
    SearchFilters,
    SearchMetadataResponse,
    SearchOptions,
    SearchRequest,
    SearchRequestBody,
    SearchResponse,
    Sorting,
    SuggestionsResponse,
)
from app.application.services import SearchService
from app.domain.entities import Caller, SearchResult
from app.infrastructure.dependencies import get_current_caller, get_search_service
from app.presentation.api.error_handlers import get_correlation_id

router = APIRouter(prefix="/service-requests", tags=["search"])


# ── Helpers ──────────────────────────────────────────────────────────


def _split(value: str | None) -> str | list[str] | None:
    """``"A,B"`` → ``["A", "B"]``; a single value stays scalar."""
    if value is None or value == "":
        return None
    if "," not in value:
        return value.strip()
    parts = [part.strip() for part in value.split(",") if part.strip()]
    return parts or None


def _to_response(result: SearchResult, correlation_id: str) -> SearchResponse:
    """Map domain SearchResult to response schema."""
    page = result.page
    return SearchResponse(
        data=list(page.records),
        pagination=PaginationResponse(
            page=page.page_index,
            limit=page.page_size,
            total_count=page.total_count,
            total_pages=page.total_pages,
        ),
        filters=result.filters,
        aggregations=result.aggregations,
        metadata=SearchMetadataResponse(
            search_duration=result.duration_ms,
            cached=result.cached,
            query_complexity=result.complexity.value,
        ),
        correlation_id=correlation_id,
    )


def _set_count_headers(response: Response, result: SearchResult) -> None:
    response.headers["X-Total-Count"] = str(result.page.total_count)
    response.headers["X-Search-Duration"] = str(result.duration_ms)


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/search", response_model=SearchResponse)
async def search_simple(
    request: Request,
    response: Response,
    status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    category: str | None = Query(default=None),
    department: str | None = Query(default=None),
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
    location: str | None = Query(default=None),
    keyword: str | None = Query(default=None),
    created_from: str | None = Query(default=None, alias="createdFrom"),
    created_to: str | None = Query(default=None, alias="createdTo"),
    updated_from: str | None = Query(default=None, alias="updatedFrom"),
    updated_to: str | None = Query(default=None, alias="updatedTo"),
    resolved_from: str | None = Query(default=None, alias="resolvedFrom"),
    resolved_to: str | None = Query(default=None, alias="resolvedTo"),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    include_stats: bool = Query(default=False, alias="includeStats"),
    caller: Caller = Depends(get_current_caller),
    service: SearchService = Depends(get_search_service),
):
    """Bookmarkable search with scalar or comma-separated query parameters."""
    service.guard.check_url_length(str(request.url))

    raw_filters = {
        "status": _split(status),
        "priority": _split(priority),
        "category": _split(category),
        "department": _split(department),
        "assignedTo": _split(assigned_to),
        "location": location or None,
        "keyword": keyword or None,
        "createdFrom": created_from or None,
        "createdTo": created_to or None,
        "updatedFrom": updated_from or None,
        "updatedTo": updated_to or None,
        "resolvedFrom": resolved_from or None,
        "resolvedTo": resolved_to or None,
    }
    filters = SearchFilters.model_validate(
        {key: value for key, value in raw_filters.items() if value is not None}
    )

    result = await service.perform_search(
        SearchRequest(
            filters=filters,
            pagination=Pagination(page=page, limit=limit),
            sorting=Sorting(sort_by=sort_by, sort_order=sort_order),
            options=SearchOptions(include_stats=include_stats),
            caller=caller,
        )
    )

    _set_count_headers(response, result)
    response.headers["Cache-Control"] = "public, max-age=60"
    return _to_response(result, get_correlation_id(request))


@router.post("/search", response_model=SearchResponse)
async def search_advanced(
    body: SearchRequestBody,
    request: Request,
    response: Response,
    caller: Caller = Depends(get_current_caller),
    service: SearchService = Depends(get_search_service),
):
    """Rich search with nested basic and advanced filters in the body."""
    result = await service.perform_search(
        SearchRequest(
            filters=body.filters,
            pagination=body.pagination,
            sorting=body.sorting,
            options=body.options,
            caller=caller,
        )
    )

    _set_count_headers(response, result)
    response.headers["X-Query-Complexity"] = result.complexity.value
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return _to_response(result, get_correlation_id(request))


@router.get("/search/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    request: Request,
    field: str | None = Query(default=None),
    query: str | None = Query(default=None),
    caller: Caller = Depends(get_current_caller),
    service: SearchService = Depends(get_search_service),
):
    """Type-ahead values for category, locationText or title."""
    values = await service.suggest(field, query)
    return SuggestionsResponse(data=values, correlation_id=get_correlation_id(request))


@router.post("/search/export")
async def export_search_results(
    body: ExportRequestBody,
    caller: Caller = Depends(get_current_caller),
    service: SearchService = Depends(get_search_service),
) -> Response:
    """Download matching records as CSV or JSON (staff only)."""
    document = await service.export(body, caller)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "X-Export-Count": str(document.record_count),
        },
    )


@router.delete("/search/cache", response_model=CacheClearedResponse)
async def clear_search_cache(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    service: SearchService = Depends(get_search_service),
):
    """Drop every cached search result (administrators only)."""
    cleared = service.clear_cache(caller)
    return CacheClearedResponse(
        message="Search cache cleared successfully",
        cleared_entries=cleared,
        correlation_id=get_correlation_id(request),
    )
