"""Query executor: count, page fetch and aggregations against the record store."""

import asyncio

from app.application.interfaces import ServiceRequestSearchRepository
from app.domain.entities import ExecutionResult, FieldSelection, Predicate, SearchPlan

UNSET = "UNSET"
UNASSIGNED = "UNASSIGNED"

# aggregation name → (grouped column, label used for NULL)
AGGREGATIONS: dict[str, tuple[str, str]] = {
    "byStatus": ("status", UNSET),
    "byPriority": ("priority", UNSET),
    "byCategory": ("category", UNSET),
    "byDepartment": ("department_id", UNASSIGNED),
}


class QueryExecutor:
    """Runs a compiled predicate through the search repository.

    The count and the page fetch are awaited together, as are the four
    aggregations; a failure in any of them fails the whole call.
    """

    def __init__(self, repository: ServiceRequestSearchRepository):
        self._repository = repository

    async def execute(
        self,
        predicate: Predicate,
        plan: SearchPlan,
        *,
        include_aggregations: bool = False,
        selection: FieldSelection | None = None,
    ) -> ExecutionResult:
        total_count, records = await asyncio.gather(
            self._repository.count(predicate),
            self._repository.fetch_page(predicate, plan, selection),
        )

        aggregations = None
        if include_aggregations:
            aggregations = await self._aggregate(predicate)

        return ExecutionResult(
            records=records,
            total_count=total_count,
            aggregations=aggregations,
        )

    async def _aggregate(self, predicate: Predicate) -> dict[str, dict[str, int]]:
        names = list(AGGREGATIONS)
        grouped = await asyncio.gather(
            *(self._repository.count_by(predicate, AGGREGATIONS[name][0]) for name in names)
        )
        result: dict[str, dict[str, int]] = {}
        for name, counts in zip(names, grouped):
            null_label = AGGREGATIONS[name][1]
            bucket: dict[str, int] = {}
            for value, count in counts.items():
                label = null_label if value is None or value == "" else str(value)
                bucket[label] = bucket.get(label, 0) + count
            result[name] = bucket
        return result
