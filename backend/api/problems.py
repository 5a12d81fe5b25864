"""Problems API

CRUD over the current user's problems, the dashboard statistics and the
explicit revision date override.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db, fetch_owned, create_entity, commit_entity, delete_entity
from core.security import get_current_user_id
from core.errors import raise_result
from core.locks import ProblemLockRegistry
from core.logging import api_logger
from models.problem import Category, Difficulty, Pattern, Platform, Problem, ProblemStatus
from engines.dashboard import DashboardBuilder
from engines.profile import ProfileTracker
from engines.revisions import RevisionTracker

from api.schemas import Pagination, ProblemResponse, naive_utc

router = APIRouter()

log = api_logger()

CLEARABLE_FIELDS = frozenset({"description", "problem_pattern", "approach_notes", "code_snippet"})

SORT_COLUMNS = {
    "created_at": Problem.created_at,
    "solve_date": Problem.solve_date,
    "time_taken": Problem.time_taken,
    "problem_name": Problem.problem_name,
    "next_revision_date": Problem.next_revision_date,
}


class ProblemCreate(BaseModel):
    problem_name: str = Field(min_length=1, max_length=255)
    problem_title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    problem_link: str = Field(min_length=1, max_length=500)
    platform: Platform
    platform_difficulty: Difficulty
    real_difficulty: Difficulty
    time_taken: int = Field(ge=1)
    main_category: Category
    problem_pattern: Pattern | None = None
    topic_tags: list[str] = Field(default_factory=list)
    approach_notes: str | None = None
    code_snippet: str | None = None
    status: ProblemStatus = ProblemStatus.SOLVED
    is_favorite: bool = False
    solve_date: datetime | None = None

    @field_validator("solve_date")
    @classmethod
    def _solve_date_utc(cls, v):
        return naive_utc(v)


class ProblemUpdate(BaseModel):
    """Descriptive fields only; the revision schedule has its own endpoints."""
    problem_name: str | None = Field(None, min_length=1, max_length=255)
    problem_title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    problem_link: str | None = Field(None, min_length=1, max_length=500)
    platform: Platform | None = None
    platform_difficulty: Difficulty | None = None
    real_difficulty: Difficulty | None = None
    time_taken: int | None = Field(None, ge=1)
    main_category: Category | None = None
    problem_pattern: Pattern | None = None
    topic_tags: list[str] | None = None
    approach_notes: str | None = None
    code_snippet: str | None = None
    status: ProblemStatus | None = None
    solve_date: datetime | None = None

    @field_validator("solve_date")
    @classmethod
    def _solve_date_utc(cls, v):
        return naive_utc(v)


class ScheduleRevisionRequest(BaseModel):
    revision_date: str


class ProblemList(BaseModel):
    problems: list[ProblemResponse]
    pagination: Pagination


@router.get("", response_model=ProblemList)
async def list_problems(
    status: ProblemStatus | None = Query(None),
    platform: Platform | None = Query(None),
    difficulty: Difficulty | None = Query(None),
    category: Category | None = Query(None),
    pattern: Pattern | None = Query(None),
    favorites: bool = Query(False),
    search: str | None = Query(None, max_length=200),
    sort_by: Literal["created_at", "solve_date", "time_taken", "problem_name", "next_revision_date"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the user's problems with filters and pagination."""
    conditions = [Problem.user_id == user_id]
    if status:
        conditions.append(Problem.status == status)
    if platform:
        conditions.append(Problem.platform == platform)
    if difficulty:
        conditions.append(Problem.platform_difficulty == difficulty)
    if category:
        conditions.append(Problem.main_category == category)
    if pattern:
        conditions.append(Problem.problem_pattern == pattern)
    if favorites:
        conditions.append(Problem.is_favorite.is_(True))
    if search:
        needle = f"%{search.lower()}%"
        conditions.append(or_(
            func.lower(Problem.problem_name).like(needle),
            func.lower(Problem.problem_title).like(needle),
            func.lower(Problem.description).like(needle),
            func.lower(cast(Problem.topic_tags, String)).like(needle),
        ))

    total = (await db.execute(select(func.count(Problem.id)).where(*conditions))).scalar_one()

    column = SORT_COLUMNS[sort_by]
    query = (
        select(Problem)
        .where(*conditions)
        .order_by(column.desc() if sort_order == "desc" else column.asc(), Problem.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    return ProblemList(
        problems=[ProblemResponse.model_validate(p) for p in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats")
async def get_problem_stats(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard statistics: totals, streaks, distributions, time analysis, heatmap."""
    return {"stats": await DashboardBuilder(db).problem_stats(user_id)}


@router.get("/{problem_id}", response_model=ProblemResponse)
async def get_problem(
    problem_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    result = await fetch_owned(db, Problem, problem_id, user_id, "Problem")
    raise_result(result)
    return result.unwrap()


@router.post("", response_model=ProblemResponse, status_code=201)
async def create_problem(
    data: ProblemCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Log a new problem. It starts without a revision scheduled."""
    fields = data.model_dump(exclude_none=True)
    problem = Problem(user_id=user_id, **fields)
    await ProfileTracker(db).adjust_problem_total(user_id, 1)

    result = await create_entity(db, problem)
    raise_result(result)
    log.info("problem_created", problem_id=str(problem.id), platform=data.platform.value)
    return result.unwrap()


@router.put("/{problem_id}", response_model=ProblemResponse)
async def update_problem(
    problem_id: UUID,
    data: ProblemUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    async with ProblemLockRegistry.hold(problem_id):
        loaded = await fetch_owned(db, Problem, problem_id, user_id, "Problem", refresh=True)
        raise_result(loaded)
        problem = loaded.unwrap()

        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }
        for field, value in changes.items():
            setattr(problem, field, value)

        result = await commit_entity(db, problem)
        raise_result(result)

    log.info("problem_updated", problem_id=str(problem_id), fields=sorted(changes))
    return result.unwrap()


@router.delete("/{problem_id}")
async def delete_problem(
    problem_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a problem together with its revision history."""
    async with ProblemLockRegistry.hold(problem_id):
        loaded = await fetch_owned(db, Problem, problem_id, user_id, "Problem")
        raise_result(loaded)

        await ProfileTracker(db).adjust_problem_total(user_id, -1)
        result = await delete_entity(db, loaded.unwrap())
        raise_result(result)

    log.info("problem_deleted", problem_id=str(problem_id))
    return {"deleted": str(problem_id)}


@router.put("/{problem_id}/favorite", response_model=ProblemResponse)
async def toggle_favorite(
    problem_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    async with ProblemLockRegistry.hold(problem_id):
        loaded = await fetch_owned(db, Problem, problem_id, user_id, "Problem", refresh=True)
        raise_result(loaded)
        problem = loaded.unwrap()
        problem.is_favorite = not problem.is_favorite

        result = await commit_entity(db, problem)
        raise_result(result)
    return result.unwrap()


@router.put("/{problem_id}/schedule-revision", response_model=ProblemResponse)
async def schedule_revision(
    problem_id: UUID,
    data: ScheduleRevisionRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Set the next revision date explicitly."""
    result = await RevisionTracker(db).reschedule_to(user_id, problem_id, data.revision_date)
    raise_result(result)
    return result.unwrap()
