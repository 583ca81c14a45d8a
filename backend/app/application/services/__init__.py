from .export_service import ExportEncoder
from .filter_compiler import FilterCompiler
from .query_executor import QueryExecutor
from .query_guard import QueryGuard
from .result_transformer import ResultTransformer
from .search_cache import SearchResultCache, build_cache_key
from .search_planner import SortPaginationPlanner
from .search_service import SearchService

__all__ = [
    "ExportEncoder",
    "FilterCompiler",
    "QueryExecutor",
    "QueryGuard",
    "ResultTransformer",
    "SearchResultCache",
    "build_cache_key",
    "SortPaginationPlanner",
    "SearchService",
]
