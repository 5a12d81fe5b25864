"""Revision Scheduling Engine with Result Types

Fixed-interval spaced repetition: the gap before the next revision is
looked up from an interval table by how many revisions have already been
done, and plateaus once the table runs out.

Every operation takes the current time explicitly and returns a new
``RevisionSchedule``; inputs are never modified.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from core.config import Settings, get_settings
from core.errors import (
    AppError,
    Ok,
    Result,
    inconsistent_state,
    invalid_date,
    invalid_format,
    out_of_range,
)
from core.logging import scheduler_logger
from core.timeutils import end_of_day, parse_timestamp, to_naive_utc

from engines.records import RevisionRecord, RevisionSchedule

log = scheduler_logger()

__all__ = [
    "IntervalTable",
    "RevisionScheduler",
    "RevisionStatus",
    "end_of_day",
]


class RevisionStatus(str, Enum):
    UNSCHEDULED = "unscheduled"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    UPCOMING = "upcoming"


@dataclass(frozen=True, slots=True)
class IntervalTable:
    """Days to wait before revision number ``count + 1``."""
    intervals: tuple[int, ...] = (1, 3, 7, 14, 30, 60)
    plateau_days: int = 90

    def __post_init__(self):
        if not self.intervals or any(days < 1 for days in self.intervals):
            raise ValueError("intervals must be a non-empty sequence of positive day counts")
        if self.plateau_days < 1:
            raise ValueError("plateau_days must be positive")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> IntervalTable:
        settings = settings or get_settings()
        return cls(
            intervals=tuple(settings.REVISION_INTERVALS_DAYS),
            plateau_days=settings.REVISION_PLATEAU_DAYS,
        )

    def days_for(self, revision_count: int) -> int:
        if 0 <= revision_count < len(self.intervals):
            return self.intervals[revision_count]
        return self.plateau_days


class RevisionScheduler:
    """Engine for computing revision schedules."""

    __slots__ = ("table",)

    def __init__(self, table: IntervalTable | None = None):
        self.table = table or IntervalTable.from_settings()

    def schedule_next(self, schedule: RevisionSchedule, now: datetime) -> RevisionSchedule:
        """Next revision date from ``now`` and the current revision count.

        The previous next-revision date plays no part, so an overdue
        problem is rescheduled relative to when it was actually revised.
        """
        days = self.table.days_for(schedule.revision_count)
        next_date = to_naive_utc(now) + timedelta(days=days)
        log.debug(
            "schedule_computed",
            revision_count=schedule.revision_count,
            interval_days=days,
            next_revision_date=next_date.isoformat(),
        )
        return schedule.evolve(next_revision_date=next_date)

    def mark_revised(
        self,
        schedule: RevisionSchedule,
        time_taken: int,
        notes: str | None,
        now: datetime,
    ) -> Result[RevisionSchedule, AppError]:
        """Record a completed revision and schedule the following one.

        Returns:
            Ok(RevisionSchedule) with one more history entry
            Err(AppError) if time_taken is invalid or the stored count
            disagrees with the stored history
        """
        if isinstance(time_taken, bool) or not isinstance(time_taken, int):
            log.warning("revision_time_invalid_type", time_taken=repr(time_taken))
            return invalid_format("time_taken", "integer minutes", repr(time_taken), origin="scheduler")
        if time_taken < 1:
            log.warning("revision_time_out_of_range", time_taken=time_taken)
            return out_of_range("time_taken", time_taken, 1, origin="scheduler")
        if schedule.revision_count != len(schedule.history):
            log.error(
                "revision_count_mismatch",
                revision_count=schedule.revision_count,
                history_length=len(schedule.history),
            )
            return inconsistent_state(
                "RevisionSchedule",
                "revision_count == len(revision_history)",
                origin="scheduler",
                revision_count=schedule.revision_count,
                history_length=len(schedule.history),
            )

        now = to_naive_utc(now)
        entry = RevisionRecord(
            sequence=schedule.revision_count + 1,
            date=now,
            time_taken=time_taken,
            notes=notes or "",
        )
        revised = schedule.evolve(
            history=schedule.history + (entry,),
            revision_count=schedule.revision_count + 1,
            last_revision_date=now,
        )
        return Ok(self.schedule_next(revised, now))

    def reschedule_to(
        self,
        schedule: RevisionSchedule,
        revision_date: datetime | str,
        now: datetime,
    ) -> Result[RevisionSchedule, AppError]:
        """Set the next revision date explicitly, bypassing the interval table.

        Dates in the past are accepted; the revision simply becomes overdue.
        """
        try:
            target = parse_timestamp(revision_date)
        except (TypeError, ValueError):
            log.warning("reschedule_date_invalid", revision_date=repr(revision_date))
            return invalid_date("revision_date", revision_date, origin="scheduler")

        if target < to_naive_utc(now):
            log.info("revision_rescheduled_to_past", revision_date=target.isoformat())
        return Ok(schedule.evolve(next_revision_date=target))

    def clear(self, schedule: RevisionSchedule) -> RevisionSchedule:
        """Drop the pending revision; history and count are kept."""
        return schedule.evolve(next_revision_date=None)

    @staticmethod
    def classify(
        next_revision_date: datetime | None,
        now: datetime,
        end_of_today: datetime,
    ) -> RevisionStatus:
        if next_revision_date is None:
            return RevisionStatus.UNSCHEDULED
        if next_revision_date < now:
            return RevisionStatus.OVERDUE
        if next_revision_date <= end_of_today:
            return RevisionStatus.DUE_TODAY
        return RevisionStatus.UPCOMING
