"""Revision Tracking Engine

Applies scheduler results to stored problems. Each mutation holds the
problem's lock from the fresh read through the commit, so concurrent
revisions of one problem are applied one after the other and none is
lost. A writer in another process is caught by the row version check
and reported as a state conflict.
"""
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.database import commit_entity, fetch_owned
from core.errors import AppError, Ok, Result
from core.locks import ProblemLockRegistry
from core.logging import engine_logger
from core.timeutils import utcnow
from models.problem import Problem, RevisionEntry

from engines.profile import ProfileTracker
from engines.records import RevisionSchedule
from engines.scheduler import RevisionScheduler

log = engine_logger()

Transform = Callable[[RevisionSchedule], Result[RevisionSchedule, AppError]]


def apply_schedule(problem: Problem, before: RevisionSchedule, after: RevisionSchedule) -> None:
    """Copy a computed schedule onto the ORM row, appending new history entries."""
    for record in after.history[len(before.history):]:
        problem.revision_history.append(RevisionEntry(
            sequence=record.sequence,
            date=record.date,
            time_taken=record.time_taken,
            notes=record.notes,
        ))
    problem.revision_count = after.revision_count
    problem.last_revision_date = after.last_revision_date
    problem.next_revision_date = after.next_revision_date


class RevisionTracker:
    """Serialized schedule mutations for a user's problems."""

    __slots__ = ("_db", "_scheduler", "_profiles")

    def __init__(self, db: AsyncSession, scheduler: RevisionScheduler | None = None):
        self._db = db
        self._scheduler = scheduler or RevisionScheduler()
        self._profiles = ProfileTracker(db)

    async def mark_revised(
        self,
        user_id: UUID,
        problem_id: UUID,
        time_taken: int,
        notes: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Result[Problem, AppError]:
        """Record a revision and schedule the next one.

        The history entry, counters and the user's revision total are
        committed together or not at all.
        """
        now = now or utcnow()
        return await self._mutate(
            user_id,
            problem_id,
            lambda schedule: self._scheduler.mark_revised(schedule, time_taken, notes, now),
            event="revision_marked",
            now=now,
            counts_revision=True,
        )

    async def schedule_next(
        self, user_id: UUID, problem_id: UUID, *, now: datetime | None = None
    ) -> Result[Problem, AppError]:
        now = now or utcnow()
        return await self._mutate(
            user_id,
            problem_id,
            lambda schedule: Ok(self._scheduler.schedule_next(schedule, now)),
            event="revision_scheduled",
            now=now,
        )

    async def reschedule_to(
        self,
        user_id: UUID,
        problem_id: UUID,
        revision_date: datetime | str,
        *,
        now: datetime | None = None,
    ) -> Result[Problem, AppError]:
        now = now or utcnow()
        return await self._mutate(
            user_id,
            problem_id,
            lambda schedule: self._scheduler.reschedule_to(schedule, revision_date, now),
            event="revision_rescheduled",
            now=now,
        )

    async def clear_schedule(self, user_id: UUID, problem_id: UUID) -> Result[Problem, AppError]:
        return await self._mutate(
            user_id,
            problem_id,
            lambda schedule: Ok(self._scheduler.clear(schedule)),
            event="revision_cleared",
            now=utcnow(),
        )

    async def _mutate(
        self,
        user_id: UUID,
        problem_id: UUID,
        transform: Transform,
        *,
        event: str,
        now: datetime,
        counts_revision: bool = False,
    ) -> Result[Problem, AppError]:
        async with ProblemLockRegistry.hold(problem_id):
            loaded = await fetch_owned(self._db, Problem, problem_id, user_id, "Problem", refresh=True)
            if loaded.is_err():
                await self._db.rollback()
                return loaded
            problem = loaded.unwrap()

            before = RevisionSchedule.from_model(problem)
            computed = transform(before)
            if computed.is_err():
                await self._db.rollback()
                return computed
            after = computed.unwrap()

            apply_schedule(problem, before, after)
            if counts_revision:
                await self._profiles.record_revision(user_id, now)

            saved = await commit_entity(self._db, problem)
            if saved.is_err():
                log.warning(
                    f"{event}_failed",
                    problem_id=str(problem_id),
                    error_code=saved.unwrap_err().code.name,
                )
                return saved

        log.info(
            event,
            problem_id=str(problem_id),
            revision_count=after.revision_count,
            next_revision_date=after.next_revision_date.isoformat() if after.next_revision_date else None,
        )
        return saved