from .feature_flag_provider import SQLAlchemyFeatureFlagProvider
from .service_request_search_repository import SQLAlchemyServiceRequestSearchRepository
from .suggestion_provider import SQLAlchemySuggestionProvider

__all__ = [
    "SQLAlchemyFeatureFlagProvider",
    "SQLAlchemyServiceRequestSearchRepository",
    "SQLAlchemySuggestionProvider",
]
