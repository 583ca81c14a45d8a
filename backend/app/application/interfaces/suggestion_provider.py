"""Abstract search suggestion source (port)."""

from abc import ABC, abstractmethod


class SuggestionProvider(ABC):
    """Port for type-ahead suggestions on a single record field."""

    @abstractmethod
    async def suggest(self, field: str, query: str, limit: int) -> list[str]:
        """Return up to ``limit`` distinct values of ``field`` containing ``query``."""
        ...
