from .feature_flag_provider import FeatureFlagProvider
from .service_request_search_repository import ServiceRequestSearchRepository
from .suggestion_provider import SuggestionProvider

__all__ = [
    "FeatureFlagProvider",
    "ServiceRequestSearchRepository",
    "SuggestionProvider",
]
