"""RevisionTracker against a real database: atomicity, isolation, conflicts."""
import asyncio
from datetime import datetime, timedelta
from uuid import uuid4

from sqlalchemy import select

from core.database import commit_entity
from core.errors import ErrorCode
from engines.profile import ProfileTracker
from engines.revisions import RevisionTracker
from models.problem import Problem, RevisionEntry
from models.user import User

NOW = datetime(2024, 5, 1, 9, 0)


async def _seed_revisions(session_factory, user_id, problem_id, count: int) -> None:
    async with session_factory() as session:
        tracker = RevisionTracker(session)
        for n in range(count):
            result = await tracker.mark_revised(user_id, problem_id, 10, f"seed {n}", now=NOW + timedelta(days=n))
            assert result.is_ok()


async def _reload(session_factory, problem_id) -> Problem:
    async with session_factory() as session:
        result = await session.execute(select(Problem).where(Problem.id == problem_id))
        return result.scalar_one()


async def test_mark_revised_persists_entry_and_schedule(db, make_problem, user_id):
    problem = await make_problem()

    result = await RevisionTracker(db).mark_revised(user_id, problem.id, 25, "clean pass", now=NOW)

    saved = result.unwrap()
    assert saved.revision_count == 1
    assert saved.last_revision_date == NOW
    assert saved.next_revision_date == NOW + timedelta(days=3)
    assert [(e.sequence, e.time_taken, e.notes) for e in saved.revision_history] == [(1, 25, "clean pass")]

    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one()
    assert user.total_revision_count == 1


async def test_concurrent_mark_revised_loses_nothing(session_factory, make_problem, user_id):
    problem = await make_problem()
    await _seed_revisions(session_factory, user_id, problem.id, 2)

    async def revise(minutes: int):
        async with session_factory() as session:
            return await RevisionTracker(session).mark_revised(user_id, problem.id, minutes, now=NOW + timedelta(days=5))

    results = await asyncio.gather(revise(11), revise(12))

    assert all(r.is_ok() for r in results)
    stored = await _reload(session_factory, problem.id)
    assert stored.revision_count == 4
    assert [e.sequence for e in stored.revision_history] == [1, 2, 3, 4]
    assert sorted(e.time_taken for e in stored.revision_history[2:]) == [11, 12]


async def test_many_concurrent_revisions_on_distinct_problems(session_factory, make_problem, user_id):
    async with session_factory() as session:
        await ProfileTracker(session).get_or_create(user_id)
    problems = [await make_problem() for _ in range(3)]

    async def revise(problem_id):
        async with session_factory() as session:
            return await RevisionTracker(session).mark_revised(user_id, problem_id, 9, now=NOW)

    results = await asyncio.gather(*(revise(p.id) for p in problems for _ in range(3)))

    assert all(r.is_ok() for r in results)
    for p in problems:
        assert (await _reload(session_factory, p.id)).revision_count == 3


async def test_invalid_time_leaves_problem_untouched(session_factory, make_problem, user_id):
    problem = await make_problem()
    await _seed_revisions(session_factory, user_id, problem.id, 1)

    async with session_factory() as session:
        result = await RevisionTracker(session).mark_revised(user_id, problem.id, 0, now=NOW)

    assert result.unwrap_err().code == ErrorCode.E2003_OUT_OF_RANGE
    stored = await _reload(session_factory, problem.id)
    assert stored.revision_count == 1
    assert len(stored.revision_history) == 1


async def test_inconsistent_row_is_rejected_not_repaired(db, make_problem, user_id):
    problem = await make_problem(revision_count=2)

    result = await RevisionTracker(db).mark_revised(user_id, problem.id, 10, now=NOW)

    assert result.unwrap_err().code == ErrorCode.E5004_INVARIANT_VIOLATED
    entries = (await db.execute(select(RevisionEntry).where(RevisionEntry.problem_id == problem.id))).scalars().all()
    assert entries == []


async def test_other_users_problem_is_not_found(db, make_problem):
    problem = await make_problem()

    result = await RevisionTracker(db).mark_revised(uuid4(), problem.id, 10, now=NOW)

    assert result.unwrap_err().code == ErrorCode.E4010_NOT_FOUND


async def test_reschedule_and_clear(db, make_problem, user_id):
    problem = await make_problem()
    tracker = RevisionTracker(db)

    past = NOW - timedelta(days=2)
    rescheduled = (await tracker.reschedule_to(user_id, problem.id, past.isoformat(), now=NOW)).unwrap()
    assert rescheduled.next_revision_date == past

    cleared = (await tracker.clear_schedule(user_id, problem.id)).unwrap()
    assert cleared.next_revision_date is None
    assert cleared.revision_count == 0


async def test_schedule_next_does_not_record_revision(db, make_problem, user_id):
    problem = await make_problem()

    saved = (await RevisionTracker(db).schedule_next(user_id, problem.id, now=NOW)).unwrap()

    assert saved.next_revision_date == NOW + timedelta(days=1)
    assert saved.revision_count == 0
    assert saved.revision_history == []


async def test_stale_write_reports_state_conflict(session_factory, make_problem, user_id):
    problem = await make_problem()

    async with session_factory() as stale_session:
        stale = (await stale_session.execute(select(Problem).where(Problem.id == problem.id))).scalar_one()
        await stale_session.commit()

        await _seed_revisions(session_factory, user_id, problem.id, 1)

        stale.is_favorite = True
        result = await commit_entity(stale_session, stale)

    assert result.unwrap_err().code == ErrorCode.E5002_STATE_CONFLICT
    stored = await _reload(session_factory, problem.id)
    assert stored.revision_count == 1
    assert stored.is_favorite is False
