"""Pydantic schemas for service request search requests and responses."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.entities import Caller, Priority


class _ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown keys are rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ── Filter Schemas ───────────────────────────────────────────────────


class BasicSearchFilters(_ApiModel):
    """Filters reachable from both the simple (GET) and rich (POST) forms."""

    status: str | list[str] | None = None
    priority: Priority | list[Priority] | None = None
    category: str | list[str] | None = None
    department: str | list[str] | None = None
    assigned_to: str | list[str] | None = None
    location: str | None = None
    keyword: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    updated_from: datetime | None = None
    updated_to: datetime | None = None
    resolved_from: datetime | None = None
    resolved_to: datetime | None = None
    show_all: bool = False


class ComplexDateRange(_ApiModel):
    field: Literal["createdAt", "updatedAt", "closedAt", "preferredDate"]
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None
    operator: Literal["AND", "OR"] = "AND"


class GeoLocation(_ApiModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(..., gt=0)


class CitizenFilters(_ApiModel):
    created_by: str | None = None
    has_upvoted: bool | None = None
    has_commented: bool | None = None


class ReportingFilters(_ApiModel):
    min_upvotes: int | None = Field(default=None, ge=0)
    max_upvotes: int | None = Field(default=None, ge=0)
    min_comments: int | None = Field(default=None, ge=0)
    max_comments: int | None = Field(default=None, ge=0)
    has_attachments: bool | None = None
    is_emergency: bool | None = None
    is_recurring: bool | None = None


class TextSearch(_ApiModel):
    query: str = Field(..., min_length=1)
    fields: list[
        Literal["title", "description", "code", "locationText", "formComments"]
    ] | None = None
    fuzzy: bool = False
    case_sensitive: bool = False


class SearchFilters(BasicSearchFilters):
    """Full filter set accepted by the rich (POST) form."""

    complex_date_ranges: list[ComplexDateRange] | None = None
    custom_fields: dict[str, Any] | None = None
    bulk_ids: list[str] | None = None
    geo_location: GeoLocation | None = None
    workflow_stage: str | None = None
    citizen_filters: CitizenFilters | None = None
    reporting_filters: ReportingFilters | None = None
    text_search: TextSearch | None = None

    def supplied_keys(self) -> list[str]:
        """Top-level filter keys the caller actually supplied, in API form.

        ``showAll`` is a scoping switch rather than a filter and is not counted.
        """
        dumped = self.model_dump(by_alias=True, exclude_none=True, exclude={"show_all"})
        return [key for key, value in dumped.items() if value != []]


# ── Request Schemas ──────────────────────────────────────────────────


class Pagination(_ApiModel):
    """Requested page window; out-of-range values are clamped by the planner."""

    page: int = 1
    limit: int = 10


class Sorting(_ApiModel):
    """Requested ordering; unknown keys fall back to the default ordering."""

    sort_by: str = "createdAt"
    sort_order: str = "desc"


class SearchOptions(_ApiModel):
    include_stats: bool = False
    include_aggregations: bool = False
    field_selection: list[str] | None = None
    skip_cache: bool = False
    cache_key: str | None = None


class SearchRequestBody(_ApiModel):
    """Body of ``POST /service-requests/search``."""

    filters: SearchFilters = Field(default_factory=SearchFilters)
    pagination: Pagination = Field(default_factory=Pagination)
    sorting: Sorting = Field(default_factory=Sorting)
    options: SearchOptions = Field(default_factory=SearchOptions)


class SearchRequest(BaseModel):
    """A fully assembled, immutable search request including the caller."""

    model_config = ConfigDict(frozen=True)

    filters: SearchFilters
    pagination: Pagination = Field(default_factory=Pagination)
    sorting: Sorting = Field(default_factory=Sorting)
    options: SearchOptions = Field(default_factory=SearchOptions)
    caller: Caller


class ExportRequestBody(_ApiModel):
    """Body of ``POST /service-requests/search/export``."""

    filters: SearchFilters = Field(default_factory=SearchFilters)
    format: str = "csv"
    fields: list[str] | None = None

    @field_validator("format")
    @classmethod
    def _normalize_format(cls, value: str) -> str:
        return value.strip().lower()


# ── Response Schemas ─────────────────────────────────────────────────


class PaginationResponse(_ApiModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class SearchMetadataResponse(_ApiModel):
    search_duration: int
    cached: bool
    query_complexity: Literal["simple", "complex"]


class SearchResponse(_ApiModel):
    """Envelope returned by both search endpoints."""

    data: list[dict[str, Any]]
    pagination: PaginationResponse
    filters: dict[str, Any]
    aggregations: dict[str, dict[str, int]] | None = None
    metadata: SearchMetadataResponse
    correlation_id: str | None = None


class SuggestionsResponse(_ApiModel):
    data: list[str]
    correlation_id: str | None = None


class CacheClearedResponse(_ApiModel):
    message: str
    cleared_entries: int = 0
    correlation_id: str | None = None
