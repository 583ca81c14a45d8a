"""Search suggestions drawn from distinct service request column values."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import SuggestionProvider
from app.infrastructure.database.models import ServiceRequestModel

_SUGGESTIBLE_COLUMNS = {
    "category": ServiceRequestModel.category,
    "location_text": ServiceRequestModel.location_text,
    "title": ServiceRequestModel.title,
}


class SQLAlchemySuggestionProvider(SuggestionProvider):
    """Implements the SuggestionProvider port with a DISTINCT ... LIKE query."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def suggest(self, field: str, query: str, limit: int) -> list[str]:
        column = _SUGGESTIBLE_COLUMNS.get(field)
        if column is None:
            raise ValueError(f"Suggestions are not available for '{field}'")
        stmt = (
            select(column)
            .where(column.is_not(None), column.icontains(query, autoescape=True))
            .distinct()
            .order_by(column)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [value for value in result.scalars().all()]
