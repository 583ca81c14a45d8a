"""Shared fixtures: a seeded, file-backed SQLite database per test."""

from datetime import datetime, timedelta, timezone

import pytest_asyncio

from app.infrastructure.database import (
    AttachmentModel,
    Base,
    CommentModel,
    DepartmentModel,
    FeatureFlagModel,
    ServiceRequestModel,
    UpvoteModel,
    UserModel,
    create_engine_for,
    create_session_factory,
)

BASE_TIME = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def _request(index: int, **fields) -> ServiceRequestModel:
    moment = BASE_TIME + timedelta(hours=index)
    return ServiceRequestModel(
        id=f"req-{index}",
        code=f"REQ-{index:04d}",
        created_at=moment,
        updated_at=moment,
        **fields,
    )


def seed_rows() -> list:
    """Five requests across two departments with a few comments and upvotes."""
    return [
        DepartmentModel(id="dept-pw", name="Public Works", slug="public-works"),
        DepartmentModel(id="dept-parks", name="Parks", slug="parks"),
        UserModel(id="alice", name="Alice", email="alice@example.org", role="CITIZEN"),
        UserModel(id="bob", name="Bob", email="bob@example.org", role="CITIZEN"),
        UserModel(
            id="clerk-1", name="Clara Clerk", email="clerk@example.org",
            role="CLERK", department_id="dept-pw",
        ),
        UserModel(
            id="agent-7", name="Field Agent", email="agent@example.org",
            role="FIELD_AGENT", department_id="dept-pw",
        ),
        UserModel(id="admin-1", name="Admin", email="admin@example.org", role="ADMIN"),
        _request(
            1,
            title="Pothole on Elm Street",
            category="roads-transportation",
            priority="HIGH",
            status="SUBMITTED",
            created_by="alice",
            department_id="dept-pw",
            location_text="Elm Street & 3rd",
            lat=40.0,
            lng=-75.0,
            affected_services='["traffic", "buses"]',
        ),
        _request(
            2,
            title="Streetlight out",
            category="roads-transportation",
            priority="LOW",
            status="TRIAGED",
            created_by="bob",
            assigned_to="agent-7",
            department_id="dept-pw",
            location_text="Main Street",
            lat=40.5,
            lng=-75.5,
        ),
        _request(
            3,
            title="Overflowing bin",
            description="Bin next to the playground",
            category="parks-recreation",
            priority="MEDIUM",
            status="SUBMITTED",
            created_by="alice",
            department_id="dept-parks",
            location_text="Central Park",
        ),
        _request(
            4,
            title="Deep pothole near school",
            category="roads-transportation",
            priority="URGENT",
            status="TRIAGED",
            created_by="bob",
            department_id="dept-pw",
            is_emergency=True,
            additional_contacts="{not json",
        ),
        _request(
            5,
            title="Graffiti on wall",
            category="sanitation",
            priority=None,
            status="RESOLVED",
            created_by="alice",
            closed_at=BASE_TIME + timedelta(days=2),
        ),
        CommentModel(request_id="req-1", author_id="clerk-1", body="Crew scheduled"),
        CommentModel(request_id="req-1", author_id="bob", body="Same on my street"),
        CommentModel(request_id="req-3", author_id="alice", body="Still full"),
        UpvoteModel(request_id="req-1", user_id="bob"),
        UpvoteModel(request_id="req-1", user_id="clerk-1"),
        UpvoteModel(request_id="req-4", user_id="alice"),
        AttachmentModel(
            request_id="req-2", uploaded_by_id="bob", filename="light.jpg",
            mime="image/jpeg", size=2048,
        ),
    ]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite:///{tmp_path / 'search.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = create_session_factory(engine)
    async with factory() as session:
        # parents first so foreign keys resolve
        rows = seed_rows()
        session.add_all([r for r in rows if isinstance(r, DepartmentModel)])
        await session.flush()
        session.add_all([r for r in rows if isinstance(r, UserModel)])
        await session.flush()
        session.add_all([r for r in rows if isinstance(r, ServiceRequestModel)])
        await session.flush()
        session.add_all([
            r for r in rows
            if isinstance(r, (CommentModel, UpvoteModel, AttachmentModel))
        ])
        await session.commit()
    return factory


@pytest_asyncio.fixture
async def set_flag(session_factory):
    """Returns a coroutine function that upserts one feature flag row."""

    async def _set(key: str, value: str) -> None:
        async with session_factory() as session:
            await session.merge(FeatureFlagModel(key=key, value=value))
            await session.commit()

    return _set
