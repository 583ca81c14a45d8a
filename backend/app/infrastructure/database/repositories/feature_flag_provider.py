"""Feature flags read from the ``feature_flags`` table."""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import FeatureFlagProvider
from app.infrastructure.database.models import FeatureFlagModel

logger = logging.getLogger(__name__)


class SQLAlchemyFeatureFlagProvider(FeatureFlagProvider):
    """Loads the whole flag table and serves it from memory for ``ttl_seconds``.

    Values are stored as JSON text. A value that does not parse is
    treated as ``False``. If the table cannot be read the last loaded
    flags stay in effect until the next refresh.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._ttl = ttl_seconds
        self._clock = clock
        self._flags: dict[str, Any] = {}
        self._loaded_at: float | None = None

    async def get(self, key: str, default: Any = False) -> Any:
        await self._refresh_if_stale()
        return self._flags.get(key, default)

    async def is_enabled(self, key: str) -> bool:
        return bool(await self.get(key, False))

    async def _refresh_if_stale(self) -> None:
        now = self._clock()
        if self._loaded_at is not None and now - self._loaded_at < self._ttl:
            return

        try:
            async with self._session_factory() as session:
                result = await session.execute(select(FeatureFlagModel))
                rows = result.scalars().all()
        except SQLAlchemyError:
            logger.exception("Could not load feature flags; keeping previous values")
            self._loaded_at = now
            return

        flags: dict[str, Any] = {}
        for row in rows:
            try:
                flags[row.key] = json.loads(row.value)
            except json.JSONDecodeError:
                logger.error("Failed to parse feature flag %s: %r", row.key, row.value)
                flags[row.key] = False
        self._flags = flags
        self._loaded_at = now
