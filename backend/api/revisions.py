"""Revisions API

Revision queue, revision statistics and every schedule mutation. All
mutations go through RevisionTracker so they are serialized per problem.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user_id
from core.errors import raise_result
from core.timeutils import end_of_day, utcnow
from models.problem import Category, Difficulty, Problem
from engines.dashboard import DashboardBuilder
from engines.profile import ProfileTracker
from engines.revisions import RevisionTracker
from engines.scheduler import RevisionScheduler, RevisionStatus

from api.schemas import Pagination, ProblemResponse

router = APIRouter()


class MarkRevisedRequest(BaseModel):
    time_taken: int
    notes: str | None = Field(None, max_length=2000)


class RescheduleRequest(BaseModel):
    revision_date: str


class RevisionItem(ProblemResponse):
    revision_status: RevisionStatus


class RevisionList(BaseModel):
    problems: list[RevisionItem]
    pagination: Pagination


def _item(problem: Problem, now: datetime, end_of_today: datetime) -> RevisionItem:
    base = ProblemResponse.model_validate(problem).model_dump()
    return RevisionItem(
        **base,
        revision_status=RevisionScheduler.classify(problem.next_revision_date, now, end_of_today),
    )


@router.get("", response_model=RevisionList)
async def list_revisions(
    status: Literal["pending", "overdue", "due_today", "all"] = Query("pending"),
    difficulty: Difficulty | None = Query(None),
    category: Category | None = Query(None),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Problems in the revision queue, ordered by next revision date.

    ``pending`` is everything not yet overdue, ``due_today`` is due
    between now and the end of the user's local day.
    """
    profiles = ProfileTracker(db)
    user = await profiles.get_or_create(user_id)
    now = utcnow()
    end_of_today = end_of_day(now, profiles.zone_for(user))

    conditions = [Problem.user_id == user_id]
    if status == "pending":
        conditions.append(Problem.next_revision_date >= now)
    elif status == "overdue":
        conditions.append(Problem.next_revision_date < now)
    elif status == "due_today":
        conditions.append(Problem.next_revision_date >= now)
        conditions.append(Problem.next_revision_date <= end_of_today)
    if difficulty:
        conditions.append(Problem.platform_difficulty == difficulty)
    if category:
        conditions.append(Problem.main_category == category)

    total = (await db.execute(select(func.count(Problem.id)).where(*conditions))).scalar_one()

    order = Problem.next_revision_date.desc() if sort_order == "desc" else Problem.next_revision_date.asc()
    result = await db.execute(
        select(Problem)
        .where(*conditions)
        .order_by(order, Problem.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return RevisionList(
        problems=[_item(p, now, end_of_today) for p in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats")
async def get_revision_stats(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return {"stats": await DashboardBuilder(db).revision_stats(user_id)}


@router.get("/notifications")
async def get_notifications(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Revisions coming up soon, plus everything already overdue."""
    return await DashboardBuilder(db).notifications(user_id)


@router.put("/{problem_id}/mark-revised", response_model=ProblemResponse)
async def mark_revised(
    problem_id: UUID,
    data: MarkRevisedRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Record a completed revision and schedule the next one."""
    result = await RevisionTracker(db).mark_revised(user_id, problem_id, data.time_taken, data.notes)
    raise_result(result)
    return result.unwrap()


@router.put("/{problem_id}/schedule-next", response_model=ProblemResponse)
async def schedule_next(
    problem_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Schedule from the interval table without recording a revision."""
    result = await RevisionTracker(db).schedule_next(user_id, problem_id)
    raise_result(result)
    return result.unwrap()


@router.put("/{problem_id}/reschedule", response_model=ProblemResponse)
async def reschedule(
    problem_id: UUID,
    data: RescheduleRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    result = await RevisionTracker(db).reschedule_to(user_id, problem_id, data.revision_date)
    raise_result(result)
    return result.unwrap()


@router.delete("/{problem_id}/schedule", response_model=ProblemResponse)
async def clear_schedule(
    problem_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    result = await RevisionTracker(db).clear_schedule(user_id, problem_id)
    raise_result(result)
    return result.unwrap()
