"""Domain entities for service request search: plans, pages and cache entries."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    CITIZEN = "CITIZEN"
    CLERK = "CLERK"
    FIELD_AGENT = "FIELD_AGENT"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class SortField(str, Enum):
    """Allow-listed sort keys as they appear in the API."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    CLOSED_AT = "closedAt"
    PRIORITY = "priority"
    STATUS = "status"
    TITLE = "title"
    CATEGORY = "category"
    UPVOTES = "upvotes"
    COMMENTS = "comments"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class QueryComplexity(str, Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"


@dataclass(frozen=True)
class Caller:
    """The authenticated user on whose behalf a search runs."""

    user_id: str
    role: UserRole
    department_id: str | None = None

    @property
    def is_citizen(self) -> bool:
        return self.role == UserRole.CITIZEN

    @property
    def is_staff(self) -> bool:
        return self.role != UserRole.CITIZEN

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class OrderTerm:
    """One ORDER BY term. ``key`` is a SortField or ``"id"`` for the tiebreaker."""

    key: SortField | str
    order: SortOrder


@dataclass(frozen=True)
class SearchPlan:
    """Resolved ordering and page window."""

    order_by: tuple[OrderTerm, ...]
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit


@dataclass(frozen=True)
class ExecutionResult:
    """Raw executor output before transformation."""

    records: list[dict[str, Any]]
    total_count: int
    aggregations: dict[str, dict[str, int]] | None = None


@dataclass(frozen=True)
class SearchPage:
    records: tuple[dict[str, Any], ...]
    total_count: int
    page_index: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


@dataclass(frozen=True)
class CacheEntry:
    """A memoized page; replaced wholesale, never mutated."""

    key: str
    page: SearchPage
    aggregations: dict[str, dict[str, int]] | None
    created_at: float


@dataclass
class SearchResult:
    """Everything a search call hands back to the HTTP layer."""

    page: SearchPage
    filters: dict[str, Any]
    complexity: QueryComplexity
    duration_ms: int = 0
    cached: bool = False
    aggregations: dict[str, dict[str, int]] | None = None


@dataclass
class ExportDocument:
    """An encoded export body ready to be streamed to the client."""

    content: str
    media_type: str
    filename: str
    record_count: int
