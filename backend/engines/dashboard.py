"""Dashboard Statistics

Loads a user's problems once and composes the streak and aggregation
engines into the payloads served by the stats endpoints.
"""
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.logging import analytics_logger
from core.timeutils import local_date, start_of_week, utcnow
from models.problem import Problem
from models.user import User

from engines import aggregation, streaks
from engines.profile import ProfileTracker
from engines.records import ProblemRecord

log = analytics_logger()

SOLVED = "Solved"


def _difficulty(p: ProblemRecord) -> str:
    return p.platform_difficulty


def _category(p: ProblemRecord) -> str:
    return p.main_category


def _platform(p: ProblemRecord) -> str:
    return p.platform


def _last_revised(p: ProblemRecord) -> datetime | None:
    return p.schedule.last_revision_date


def _solved(records: list[ProblemRecord]) -> list[ProblemRecord]:
    return [p for p in records if p.status == SOLVED]


class DashboardBuilder:
    """Builds statistics payloads for one user."""

    __slots__ = ("_db", "_profiles", "_settings")

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self._db = db
        self._profiles = ProfileTracker(db)
        self._settings = settings or get_settings()

    async def load_records(self, user_id: UUID) -> list[ProblemRecord]:
        result = await self._db.execute(
            select(Problem).where(Problem.user_id == user_id).order_by(Problem.solve_date)
        )
        return [ProblemRecord.from_model(p) for p in result.scalars().all()]

    async def _context(self, user_id: UUID) -> tuple[User, list[ProblemRecord]]:
        user = await self._profiles.get_or_create(user_id)
        return user, await self.load_records(user_id)

    async def problem_stats(self, user_id: UUID, now: datetime | None = None) -> dict:
        """Main dashboard. Also stores the recomputed streaks on the user.

        Totals and pending revisions cover every problem; the weekly count,
        averages, distributions and time analysis cover Solved ones only.
        """
        now = now or utcnow()
        user, records = await self._context(user_id)
        tz = self._profiles.zone_for(user)
        solved = _solved(records)

        summary = streaks.summarize(records, local_date(now, tz), tz, user.best_streak or 0)
        average = aggregation.average_time_taken(solved)
        await self._profiles.refresh_statistics(user, summary, average)

        window_start = now - timedelta(days=self._settings.ACTIVITY_WINDOW_DAYS)
        recent = aggregation.within_window(solved, aggregation.by_solve_date, window_start)

        return {
            "total_problems": len(records),
            "problems_this_week": len(
                aggregation.within_window(solved, aggregation.by_solve_date, start_of_week(now, tz))
            ),
            "current_streak": summary.current,
            "best_streak": summary.best,
            "average_solve_time": average,
            "pending_revisions": aggregation.pending_revisions_count(records, now, tz),
            "difficulty_stats": aggregation.count_by_dimension(solved, _difficulty),
            "category_stats": aggregation.count_by_dimension(solved, _category),
            "time_analysis": [b.to_dict() for b in aggregation.bucket_by_day(recent, aggregation.by_solve_date, tz)],
            "heatmap": aggregation.heatmap(records, tz),
        }

    async def revision_stats(self, user_id: UUID, now: datetime | None = None) -> dict:
        now = now or utcnow()
        user, records = await self._context(user_id)
        tz = self._profiles.zone_for(user)

        revised = [p for p in records if p.schedule.revision_count > 0]
        recent = sorted(
            (p for p in revised if p.schedule.last_revision_date is not None),
            key=_last_revised,
            reverse=True,
        )[: self._settings.RECENT_REVISIONS_LIMIT]

        return {
            "revised_this_week": len(aggregation.within_window(records, _last_revised, start_of_week(now, tz))),
            "total_problems": sum(1 for p in records if p.status == SOLVED),
            "missed_revisions": sum(
                1 for p in records
                if p.schedule.next_revision_date is not None and p.schedule.next_revision_date < now
            ),
            "average_revision_time": aggregation.average_revision_time(records),
            "pending_today": aggregation.pending_revisions_count(records, now, tz),
            "total_revisions": user.total_revision_count or 0,
            "difficulty_stats": aggregation.count_by_dimension(revised, _difficulty),
            "category_stats": aggregation.count_by_dimension(revised, _category),
            "recent_revisions": [
                {
                    "id": str(p.id),
                    "problem_name": p.problem_name,
                    "last_revision_date": p.schedule.last_revision_date.isoformat(),
                    "revision_count": p.schedule.revision_count,
                }
                for p in recent
            ],
        }

    async def notifications(self, user_id: UUID, now: datetime | None = None) -> dict:
        """Revisions due within the notification window, and overdue ones."""
        now = now or utcnow()
        records = await self.load_records(user_id)
        horizon = now + timedelta(hours=self._settings.NOTIFICATION_WINDOW_HOURS)

        upcoming, overdue = [], []
        for p in records:
            due = p.schedule.next_revision_date
            if due is None:
                continue
            if due < now:
                overdue.append(p)
            elif due <= horizon:
                upcoming.append(p)

        def _item(p: ProblemRecord) -> dict:
            return {
                "id": str(p.id),
                "problem_name": p.problem_name,
                "next_revision_date": p.schedule.next_revision_date.isoformat(),
                "revision_count": p.schedule.revision_count,
            }

        def _due(p: ProblemRecord) -> datetime:
            return p.schedule.next_revision_date

        return {
            "upcoming": [_item(p) for p in sorted(upcoming, key=_due)],
            "overdue": [_item(p) for p in sorted(overdue, key=_due)],
            "total": len(upcoming) + len(overdue),
        }

    async def profile(self, user_id: UUID) -> tuple[User, dict]:
        user, records = await self._context(user_id)
        tz = self._profiles.zone_for(user)
        solved = _solved(records)
        statistics = {
            "total_problems_solved": user.total_problems_solved,
            "current_streak": user.current_streak,
            "best_streak": user.best_streak,
            "average_solve_time": user.average_solve_time,
            "total_revision_count": user.total_revision_count,
            "total_solved": len(solved),
            "best_week": aggregation.best_week_count(solved, tz),
        }
        detailed = {
            "by_platform": aggregation.count_by_dimension(solved, _platform),
            "by_difficulty": aggregation.count_by_dimension(solved, _difficulty),
            "by_category": aggregation.count_by_dimension(solved, _category),
        }
        return user, {"statistics": statistics, "detailed_stats": detailed}

    async def activity(self, user_id: UUID, period_days: int | None = None, now: datetime | None = None) -> dict:
        now = now or utcnow()
        period_days = period_days or self._settings.ACTIVITY_WINDOW_DAYS
        user, records = await self._context(user_id)
        tz = self._profiles.zone_for(user)

        recent = aggregation.within_window(_solved(records), aggregation.by_solve_date, now - timedelta(days=period_days))
        log.debug("activity_computed", user_id=str(user_id), period_days=period_days, problems=len(recent))
        return {
            "period_days": period_days,
            "daily": [b.to_dict() for b in aggregation.bucket_by_day(recent, aggregation.by_solve_date, tz)],
            "weekly": [b.to_dict() for b in aggregation.bucket_by_week(recent, aggregation.by_solve_date, tz)],
            "monthly": [b.to_dict() for b in aggregation.bucket_by_month(recent, aggregation.by_solve_date, tz)],
        }
