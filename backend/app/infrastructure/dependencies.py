"""FastAPI dependency injection; wires infrastructure to the application layer."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.application.interfaces import FeatureFlagProvider
from app.application.services import QueryGuard, SearchResultCache, SearchService
from app.domain.entities import Caller, UserRole
from app.domain.exceptions import AuthenticationRequiredError
from app.infrastructure.database.session import async_session_factory
from app.infrastructure.database.repositories import (
    SQLAlchemyFeatureFlagProvider,
    SQLAlchemyServiceRequestSearchRepository,
    SQLAlchemySuggestionProvider,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """The application-wide session factory (overridden in tests)."""
    return async_session_factory


@lru_cache
def get_search_cache() -> SearchResultCache:
    """Process-wide result cache shared by every request."""
    settings = get_settings()
    return SearchResultCache(ttl_seconds=settings.search_cache_ttl_seconds)


@lru_cache
def _feature_flags_for(
    session_factory: async_sessionmaker[AsyncSession],
) -> SQLAlchemyFeatureFlagProvider:
    settings = get_settings()
    return SQLAlchemyFeatureFlagProvider(
        session_factory,
        ttl_seconds=settings.feature_flag_cache_ttl_seconds,
    )


def get_feature_flag_provider(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> FeatureFlagProvider:
    """One flag provider (and flag cache) per session factory."""
    return _feature_flags_for(session_factory)


async def get_current_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_department_id: str | None = Header(default=None),
) -> Caller:
    """Caller identity as forwarded by the authenticating gateway."""
    if not x_user_id or not x_user_role:
        raise AuthenticationRequiredError("Authentication required")
    try:
        role = UserRole(x_user_role.strip().upper())
    except ValueError as exc:
        raise AuthenticationRequiredError(f"Unknown role '{x_user_role}'") from exc
    return Caller(user_id=x_user_id, role=role, department_id=x_department_id or None)


async def get_search_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    cache: SearchResultCache = Depends(get_search_cache),
    feature_flags: FeatureFlagProvider = Depends(get_feature_flag_provider),
) -> AsyncGenerator[SearchService, None]:
    """Provides a SearchService wired to the SQLAlchemy repositories."""
    settings = get_settings()
    guard = QueryGuard(
        max_bulk_ids=settings.search_max_bulk_ids,
        max_complex_date_ranges=settings.search_max_complex_date_ranges,
        complex_key_threshold=settings.search_complex_key_threshold,
        shedding_key_threshold=settings.search_shedding_key_threshold,
        shedding_delay_seconds=settings.search_shedding_delay_seconds,
        max_url_length=settings.search_max_url_length,
    )
    yield SearchService(
        repository=SQLAlchemyServiceRequestSearchRepository(session_factory),
        cache=cache,
        feature_flags=feature_flags,
        suggestions=SQLAlchemySuggestionProvider(session_factory),
        guard=guard,
        max_page_size=settings.search_max_page_size,
        export_max_records=settings.search_export_max_records,
        suggestion_limit=settings.search_suggestion_limit,
    )
