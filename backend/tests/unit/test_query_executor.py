"""Unit tests for the QueryExecutor."""

import asyncio

import pytest

from app.application.interfaces import ServiceRequestSearchRepository
from app.application.services import QueryExecutor
from app.domain.entities import AndGroup, OrderTerm, SearchPlan, SortField, SortOrder

PLAN = SearchPlan(order_by=(OrderTerm(SortField.CREATED_AT, SortOrder.DESC),), page=1, limit=10)


class FakeSearchRepository(ServiceRequestSearchRepository):
    """Records call overlap so concurrency can be asserted."""

    def __init__(self, groups=None, fail_on: str | None = None):
        self._groups = groups or {}
        self._fail_on = fail_on
        self.in_flight = 0
        self.max_in_flight = 0
        self.selections = []

    async def _enter(self, name: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        if name == self._fail_on:
            raise RuntimeError(f"{name} exploded")

    async def count(self, predicate):
        await self._enter("count")
        return 3

    async def fetch_page(self, predicate, plan, selection=None):
        await self._enter("fetch")
        self.selections.append(selection)
        return [{"id": "a"}, {"id": "b"}, {"id": "c"}]

    async def count_by(self, predicate, field):
        await self._enter(f"count_by:{field}")
        return self._groups.get(field, {})


@pytest.mark.asyncio
async def test_count_and_fetch_run_concurrently():
    repository = FakeSearchRepository()
    result = await QueryExecutor(repository).execute(AndGroup(()), PLAN)

    assert result.total_count == 3
    assert [r["id"] for r in result.records] == ["a", "b", "c"]
    assert result.aggregations is None
    assert repository.max_in_flight == 2


@pytest.mark.asyncio
async def test_aggregations_use_sentinels_for_null_groups():
    repository = FakeSearchRepository(groups={
        "status": {"SUBMITTED": 2, "RESOLVED": 1},
        "priority": {"HIGH": 2, None: 1},
        "category": {"roads": 3},
        "department_id": {"dep-1": 1, None: 2},
    })
    result = await QueryExecutor(repository).execute(AndGroup(()), PLAN, include_aggregations=True)

    assert result.aggregations == {
        "byStatus": {"SUBMITTED": 2, "RESOLVED": 1},
        "byPriority": {"HIGH": 2, "UNSET": 1},
        "byCategory": {"roads": 3},
        "byDepartment": {"dep-1": 1, "UNASSIGNED": 2},
    }
    assert repository.max_in_flight >= 2


@pytest.mark.asyncio
async def test_any_store_failure_fails_the_whole_call():
    repository = FakeSearchRepository(fail_on="count")
    with pytest.raises(RuntimeError):
        await QueryExecutor(repository).execute(AndGroup(()), PLAN)


@pytest.mark.asyncio
async def test_aggregation_failure_is_not_swallowed():
    repository = FakeSearchRepository(fail_on="count_by:category")
    with pytest.raises(RuntimeError):
        await QueryExecutor(repository).execute(AndGroup(()), PLAN, include_aggregations=True)
