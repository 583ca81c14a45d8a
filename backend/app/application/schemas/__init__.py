from .search import (
    BasicSearchFilters,
    CacheClearedResponse,
    CitizenFilters,
    ComplexDateRange,
    ExportRequestBody,
    GeoLocation,
    Pagination,
    PaginationResponse,
    ReportingFilters,
    SearchFilters,
    SearchMetadataResponse,
    SearchOptions,
    SearchRequest,
    SearchRequestBody,
    SearchResponse,
    Sorting,
    SuggestionsResponse,
    TextSearch,
)

__all__ = [
    "BasicSearchFilters",
    "CacheClearedResponse",
    "CitizenFilters",
    "ComplexDateRange",
    "ExportRequestBody",
    "GeoLocation",
    "Pagination",
    "PaginationResponse",
    "ReportingFilters",
    "SearchFilters",
    "SearchMetadataResponse",
    "SearchOptions",
    "SearchRequest",
    "SearchRequestBody",
    "SearchResponse",
    "Sorting",
    "SuggestionsResponse",
    "TextSearch",
]
