"""Pytest configuration and shared fixtures."""
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import models  # noqa: F401
from core.database import Base, get_db
from core.locks import ProblemLockRegistry
from core.security import SINGLE_USER_ID, get_current_user_id
from main import app
from models.problem import Category, Difficulty, Platform, Problem, ProblemStatus


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite file per test; each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _reset_locks():
    ProblemLockRegistry.reset()
    yield
    ProblemLockRegistry.reset()


@pytest.fixture
def user_id() -> UUID:
    return SINGLE_USER_ID


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database wired in."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def act_as():
    """Switch the identity the API sees for the rest of the test."""

    def _act_as(uid: UUID) -> None:
        app.dependency_overrides[get_current_user_id] = lambda: uid

    return _act_as


@pytest.fixture
def make_problem(db) -> Callable[..., Awaitable[Problem]]:
    """Persist a problem for ``SINGLE_USER_ID`` unless overridden."""

    async def _make(**overrides) -> Problem:
        fields = {
            "user_id": SINGLE_USER_ID,
            "problem_name": f"two-sum-{uuid4().hex[:6]}",
            "problem_title": "Two Sum",
            "description": "Find two numbers adding up to target",
            "problem_link": "https://leetcode.com/problems/two-sum/",
            "platform": Platform.LEETCODE,
            "platform_difficulty": Difficulty.EASY,
            "real_difficulty": Difficulty.EASY,
            "time_taken": 15,
            "main_category": Category.ARRAYS,
            "topic_tags": ["hash-map"],
            "status": ProblemStatus.SOLVED,
            "solve_date": datetime(2024, 3, 10, 12, 0),
        }
        fields.update(overrides)
        problem = Problem(**fields)
        db.add(problem)
        await db.commit()
        await db.refresh(problem)
        return problem

    return _make


PROBLEM_PAYLOAD = {
    "problem_name": "valid-anagram",
    "problem_title": "Valid Anagram",
    "description": "Check whether two strings are anagrams",
    "problem_link": "https://leetcode.com/problems/valid-anagram/",
    "platform": "LeetCode",
    "platform_difficulty": "Easy",
    "real_difficulty": "Medium",
    "time_taken": 20,
    "main_category": "Hash Tables",
    "problem_pattern": "Two Pointers",
    "topic_tags": ["strings", "sorting"],
}


@pytest.fixture
def problem_payload() -> dict:
    return dict(PROBLEM_PAYLOAD)
