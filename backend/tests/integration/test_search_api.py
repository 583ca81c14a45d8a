"""End-to-end tests for the service request search endpoints."""

import csv
import io
import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.application.services import SearchResultCache
from app.infrastructure.database.repositories import SQLAlchemyFeatureFlagProvider
from app.infrastructure.dependencies import (
    get_feature_flag_provider,
    get_search_cache,
    get_session_factory,
)
from app.main import app

SEARCH_URL = "/api/v1/service-requests/search"

CLERK = {"X-User-Id": "clerk-1", "X-User-Role": "CLERK", "X-Department-Id": "dept-pw"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}
ALICE = {"X-User-Id": "alice", "X-User-Role": "CITIZEN"}


@pytest_asyncio.fixture
async def client(session_factory):
    cache = SearchResultCache()
    flags = SQLAlchemyFeatureFlagProvider(session_factory, ttl_seconds=0)
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_search_cache] = lambda: cache
    app.dependency_overrides[get_feature_flag_provider] = lambda: flags

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


# ── GET /search ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_simple_search_with_comma_separated_status(client):
    response = await client.get(
        SEARCH_URL,
        params={"status": "SUBMITTED,TRIAGED", "priority": "HIGH"},
        headers=CLERK,
    )

    assert response.status_code == 200
    body = response.json()
    assert [r["id"] for r in body["data"]] == ["req-1"]
    assert body["pagination"] == {"page": 1, "limit": 10, "totalCount": 1, "totalPages": 1}
    assert body["filters"] == {"status": ["SUBMITTED", "TRIAGED"], "priority": "HIGH"}
    assert body["metadata"]["queryComplexity"] == "simple"
    assert response.headers["X-Total-Count"] == "1"
    assert "X-Search-Duration" in response.headers
    assert response.headers["Cache-Control"] == "public, max-age=60"


@pytest.mark.asyncio
async def test_records_are_camel_cased_with_decoded_documents(client):
    response = await client.get(SEARCH_URL, params={"keyword": "pothole"}, headers=CLERK)

    records = {r["id"]: r for r in response.json()["data"]}
    elm = records["req-1"]
    assert elm["locationText"] == "Elm Street & 3rd"
    assert elm["affectedServices"] == ["traffic", "buses"]
    assert elm["upvotes"] == 2
    assert elm["comments"] == 2
    assert elm["latitude"] == 40.0
    assert records["req-4"]["additionalContacts"] is None


@pytest.mark.asyncio
async def test_citizens_see_only_their_own_requests(client):
    response = await client.get(SEARCH_URL, headers=ALICE)
    assert {r["createdBy"] for r in response.json()["data"]} == {"alice"}
    assert response.json()["pagination"]["totalCount"] == 3


@pytest.mark.asyncio
async def test_limit_is_clamped(client):
    response = await client.get(SEARCH_URL, params={"limit": 500, "page": 0}, headers=CLERK)
    assert response.json()["pagination"]["limit"] == 100
    assert response.json()["pagination"]["page"] == 1


@pytest.mark.asyncio
async def test_unknown_sort_falls_back_to_newest_first(client):
    response = await client.get(
        SEARCH_URL, params={"sortBy": "password", "sortOrder": "sideways"}, headers=CLERK
    )
    ids = [r["id"] for r in response.json()["data"]]
    assert ids == ["req-5", "req-4", "req-3", "req-2", "req-1"]


@pytest.mark.asyncio
async def test_wrong_default_sort_flag_switches_to_title(client, set_flag):
    await set_flag("UI_WrongDefaultSort", "true")

    response = await client.get(SEARCH_URL, headers=CLERK)

    titles = [r["title"] for r in response.json()["data"]]
    assert titles == sorted(titles)


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(client):
    response = await client.get(SEARCH_URL)

    assert response.status_code == 401
    error = response.json()["error"]
    assert error["code"] == "UNAUTHORIZED"
    assert error["correlationId"]


@pytest.mark.asyncio
async def test_overlong_url_is_rejected(client):
    response = await client.get(SEARCH_URL, params={"keyword": "x" * 2100}, headers=CLERK)

    assert response.status_code == 414
    error = response.json()["error"]
    assert error["code"] == "URL_TOO_LONG"
    assert error["details"]["maxLength"] == 2000


@pytest.mark.asyncio
async def test_invalid_priority_is_a_validation_error(client):
    response = await client.get(SEARCH_URL, params={"priority": "CRITICAL"}, headers=CLERK)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get(
        SEARCH_URL, headers={**CLERK, "X-Correlation-ID": "trace-123"}
    )

    assert response.headers["X-Correlation-ID"] == "trace-123"
    assert response.json()["correlationId"] == "trace-123"


# ── POST /search ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rich_search_is_cached_on_repeat(client):
    payload = {
        "filters": {"department": "public-works", "citizenFilters": {"hasUpvoted": True}},
        "options": {"includeAggregations": True},
    }

    first = await client.post(SEARCH_URL, json=payload, headers=CLERK)
    second = await client.post(SEARCH_URL, json=payload, headers=CLERK)

    assert first.status_code == 200
    assert [r["id"] for r in first.json()["data"]] == ["req-1"]
    assert first.json()["metadata"]["cached"] is False
    assert second.json()["metadata"]["cached"] is True
    assert second.json()["data"] == first.json()["data"]
    assert first.headers["X-Query-Complexity"] == "complex"
    assert first.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
    assert first.json()["aggregations"]["byStatus"] == {"SUBMITTED": 1}


@pytest.mark.asyncio
async def test_aggregations_label_missing_groups(client):
    response = await client.post(
        SEARCH_URL, json={"options": {"includeAggregations": True}}, headers=CLERK
    )

    aggregations = response.json()["aggregations"]
    assert aggregations["byPriority"]["UNSET"] == 1
    assert aggregations["byDepartment"] == {"dept-pw": 3, "dept-parks": 1, "UNASSIGNED": 1}


@pytest.mark.asyncio
async def test_field_selection(client):
    response = await client.post(
        SEARCH_URL,
        json={
            "filters": {"bulkIds": ["req-1", "req-3"]},
            "options": {"fieldSelection": ["title", "department.slug", "comments"]},
            "sorting": {"sortBy": "title", "sortOrder": "asc"},
        },
        headers=CLERK,
    )

    data = response.json()["data"]
    assert data == [
        {"id": "req-3", "title": "Overflowing bin", "department": {"slug": "parks"}, "comments": 1},
        {"id": "req-1", "title": "Pothole on Elm Street", "department": {"slug": "public-works"}, "comments": 2},
    ]


@pytest.mark.asyncio
async def test_unknown_field_selection_is_rejected(client):
    response = await client.post(
        SEARCH_URL, json={"options": {"fieldSelection": ["title", "secret"]}}, headers=CLERK
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"unknownFields": ["secret"]}


@pytest.mark.asyncio
async def test_too_many_bulk_ids(client):
    response = await client.post(
        SEARCH_URL,
        json={"filters": {"bulkIds": [f"id-{i}" for i in range(1001)]}},
        headers=CLERK,
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "TOO_MANY_IDS"
    assert error["details"] == {"count": 1001, "max": 1000}


@pytest.mark.asyncio
async def test_too_many_complex_date_ranges(client):
    ranges = [{"field": "createdAt", "from": "2024-01-01T00:00:00Z"}] * 11
    response = await client.post(
        SEARCH_URL, json={"filters": {"complexDateRanges": ranges}}, headers=CLERK
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "TOO_MANY_DATE_RANGES"


@pytest.mark.asyncio
async def test_malformed_body_is_a_validation_error(client):
    response = await client.post(
        SEARCH_URL, json={"pagination": {"page": "first"}}, headers=CLERK
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# ── Suggestions ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_suggestions(client):
    response = await client.get(
        f"{SEARCH_URL}/suggestions",
        params={"field": "category", "query": "ROADS"},
        headers=CLERK,
    )

    assert response.status_code == 200
    assert response.json()["data"] == ["roads-transportation"]


@pytest.mark.asyncio
async def test_suggestions_require_a_known_field(client):
    response = await client.get(
        f"{SEARCH_URL}/suggestions", params={"field": "email", "query": "a"}, headers=CLERK
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_FIELD"


# ── Export ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_export_csv(client):
    response = await client.post(
        f"{SEARCH_URL}/export",
        json={"filters": {"category": "roads"}, "format": "CSV", "fields": ["code", "status"]},
        headers=CLERK,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["X-Export-Count"] == "3"
    assert response.headers["Content-Disposition"].startswith(
        'attachment; filename="service-requests-'
    )
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["code"] for row in rows] == ["REQ-0004", "REQ-0002", "REQ-0001"]
    assert set(rows[0]) == {"id", "code", "status"}


@pytest.mark.asyncio
async def test_export_json(client):
    response = await client.post(
        f"{SEARCH_URL}/export", json={"format": "json"}, headers=ADMIN
    )

    assert response.status_code == 200
    assert len(json.loads(response.text)) == 5
    assert response.headers["Content-Disposition"].endswith('.json"')


@pytest.mark.asyncio
async def test_export_xlsx_is_not_implemented(client):
    response = await client.post(f"{SEARCH_URL}/export", json={"format": "xlsx"}, headers=CLERK)

    assert response.status_code == 501
    assert response.json()["error"]["code"] == "NOT_IMPLEMENTED"


@pytest.mark.asyncio
async def test_export_unknown_format(client):
    response = await client.post(f"{SEARCH_URL}/export", json={"format": "pdf"}, headers=CLERK)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_FORMAT"


@pytest.mark.asyncio
async def test_citizens_cannot_export(client):
    response = await client.post(f"{SEARCH_URL}/export", json={"format": "csv"}, headers=ALICE)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


# ── Cache administration ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_clearing_the_cache_is_admin_only(client):
    await client.get(SEARCH_URL, headers=ADMIN)

    denied = await client.delete(f"{SEARCH_URL}/cache", headers=CLERK)
    assert denied.status_code == 403

    cleared = await client.delete(f"{SEARCH_URL}/cache", headers=ADMIN)
    assert cleared.status_code == 200
    assert cleared.json()["message"] == "Search cache cleared successfully"
    assert cleared.json()["clearedEntries"] == 1

    again = await client.get(SEARCH_URL, headers=ADMIN)
    assert again.json()["metadata"]["cached"] is False
