"""User Profile Tracking

Owns the single ``User`` row per identity: creates it on first use, keeps
its cached statistics current and applies preference changes.
"""
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import case, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.logging import engine_logger
from core.timeutils import get_zone, utcnow
from models.user import User

from engines.streaks import StreakSummary

log = engine_logger()

_UPSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


class ProfileTracker:
    """Loads and updates a user's profile and statistics."""

    __slots__ = ("_db",)

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_or_create(self, user_id: UUID, *, commit: bool = True) -> User:
        """Fetch the user row, creating a default one on first access.

        Creation is an ``INSERT ... ON CONFLICT DO NOTHING`` followed by a
        re-select, so concurrent first requests for the same user all end
        up with the one stored row. With ``commit=False`` the insert joins
        the caller's transaction.
        """
        user = await self._load(user_id)
        if user is not None:
            return user

        insert = _UPSERTS[self._db.get_bind().dialect.name]
        result = await self._db.execute(
            insert(User)
            .values(id=user_id, timezone=settings.DEFAULT_TIMEZONE, platform_usernames={})
            .on_conflict_do_nothing(index_elements=[User.id])
        )
        created = result.rowcount == 1
        if commit:
            await self._db.commit()
        if created:
            log.info("user_created", user_id=str(user_id))
        else:
            log.debug("user_created_concurrently", user_id=str(user_id))
        return await self._load(user_id)

    async def _load(self, user_id: UUID) -> User | None:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    def zone_for(user: User) -> ZoneInfo:
        """User's reference timezone, falling back to the configured default."""
        try:
            return get_zone(user.timezone)
        except ValueError:
            log.warning("user_timezone_invalid", user_id=str(user.id), timezone=user.timezone)
            return get_zone(settings.DEFAULT_TIMEZONE)

    async def adjust_problem_total(self, user_id: UUID, delta: int) -> None:
        """Add ``delta`` to the solved-problem total (never below zero). Caller commits."""
        await self.get_or_create(user_id, commit=False)
        total = User.total_problems_solved + delta
        await self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                total_problems_solved=case((total < 0, 0), else_=total),
                last_active_date=utcnow(),
            )
        )

    async def record_revision(self, user_id: UUID, now: datetime) -> None:
        """Increment the revision total in the caller's transaction."""
        await self.get_or_create(user_id, commit=False)
        await self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                total_revision_count=User.total_revision_count + 1,
                last_active_date=now,
            )
        )

    async def refresh_statistics(
        self,
        user: User,
        streaks: StreakSummary,
        average_solve_time: float | None,
    ) -> User:
        """Store freshly computed statistics. Best streak only ever grows."""
        user.current_streak = streaks.current
        user.best_streak = max(user.best_streak or 0, streaks.best)
        user.average_solve_time = average_solve_time or 0.0
        await self._db.commit()
        log.debug(
            "user_statistics_refreshed",
            user_id=str(user.id),
            current_streak=user.current_streak,
            best_streak=user.best_streak,
        )
        return user

    async def update_preferences(
        self,
        user_id: UUID,
        *,
        timezone: str | None = None,
        dark_mode: bool | None = None,
        notifications: bool | None = None,
    ) -> User:
        user = await self.get_or_create(user_id, commit=False)
        if timezone is not None:
            user.timezone = timezone
        if dark_mode is not None:
            user.dark_mode = dark_mode
        if notifications is not None:
            user.notifications = notifications
        await self._db.commit()
        await self._db.refresh(user)
        log.info("preferences_updated", user_id=str(user_id))
        return user

    async def update_platform_usernames(self, user_id: UUID, usernames: dict[str, str]) -> User:
        """Merge handles into the stored map; an empty handle removes the entry."""
        user = await self.get_or_create(user_id, commit=False)
        merged = dict(user.platform_usernames or {})
        for platform, handle in usernames.items():
            if handle:
                merged[platform] = handle
            else:
                merged.pop(platform, None)
        user.platform_usernames = merged
        await self._db.commit()
        await self._db.refresh(user)
        log.info("platform_usernames_updated", user_id=str(user_id), platforms=sorted(merged))
        return user
