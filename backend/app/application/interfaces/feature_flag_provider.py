"""Abstract feature flag lookup (port)."""

from abc import ABC, abstractmethod


class FeatureFlagProvider(ABC):
    """Port for reading runtime feature toggles."""

    @abstractmethod
    async def is_enabled(self, key: str) -> bool:
        """Return True when the flag exists and is truthy."""
        ...
