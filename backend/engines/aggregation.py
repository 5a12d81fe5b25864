"""Dashboard Aggregations

Counts, averages and calendar buckets over collections of problem
snapshots. Averages are raw floats; rounding is left to whoever displays
them. Buckets only exist for periods with at least one record.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from core.logging import analytics_logger
from core.timeutils import end_of_day, local_date

from engines.records import ProblemRecord

log = analytics_logger()

Selector = Callable[[ProblemRecord], object]
DateSelector = Callable[[ProblemRecord], datetime | None]


@dataclass(frozen=True, slots=True)
class TimeBucket:
    period: str
    start: date
    count: int
    avg_time: float | None

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "start": self.start.isoformat(),
            "count": self.count,
            "avg_time": self.avg_time,
        }


def by_solve_date(problem: ProblemRecord) -> datetime | None:
    return problem.solve_date


def count_by_dimension(problems: Iterable[ProblemRecord], selector: Selector) -> dict[str, int]:
    """Count problems per dimension value; records without a value are skipped."""
    counts: Counter[str] = Counter()
    for problem in problems:
        value = selector(problem)
        if value is None:
            continue
        counts[str(getattr(value, "value", value))] += 1
    return dict(counts)


def average_time_taken(problems: Iterable[ProblemRecord]) -> float | None:
    """Mean ``time_taken`` in minutes, or None for an empty collection."""
    times = [p.time_taken for p in problems]
    if not times:
        return None
    return sum(times) / len(times)


def _bucket(
    problems: Iterable[ProblemRecord],
    date_selector: DateSelector,
    tz: ZoneInfo,
    key: Callable[[date], tuple[str, date]],
) -> list[TimeBucket]:
    groups: dict[tuple[str, date], list[int]] = defaultdict(list)
    for problem in problems:
        moment = date_selector(problem)
        if moment is None:
            continue
        groups[key(local_date(moment, tz))].append(problem.time_taken)

    buckets = [
        TimeBucket(period=period, start=start, count=len(times), avg_time=sum(times) / len(times))
        for (period, start), times in groups.items()
    ]
    buckets.sort(key=lambda b: b.start)
    log.debug("buckets_computed", buckets=len(buckets))
    return buckets


def _day_key(day: date) -> tuple[str, date]:
    return day.isoformat(), day


def _week_key(day: date) -> tuple[str, date]:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}", date.fromisocalendar(year, week, 1)


def _month_key(day: date) -> tuple[str, date]:
    return f"{day.year}-{day.month:02d}", day.replace(day=1)


def bucket_by_day(
    problems: Iterable[ProblemRecord],
    date_selector: DateSelector = by_solve_date,
    tz: ZoneInfo = ZoneInfo("UTC"),
) -> list[TimeBucket]:
    return _bucket(problems, date_selector, tz, _day_key)


def bucket_by_week(
    problems: Iterable[ProblemRecord],
    date_selector: DateSelector = by_solve_date,
    tz: ZoneInfo = ZoneInfo("UTC"),
) -> list[TimeBucket]:
    """Group by ISO (year, week); periods look like ``2024-W07``."""
    return _bucket(problems, date_selector, tz, _week_key)


def bucket_by_month(
    problems: Iterable[ProblemRecord],
    date_selector: DateSelector = by_solve_date,
    tz: ZoneInfo = ZoneInfo("UTC"),
) -> list[TimeBucket]:
    return _bucket(problems, date_selector, tz, _month_key)


def pending_revisions_count(
    problems: Iterable[ProblemRecord],
    as_of: datetime,
    tz: ZoneInfo = ZoneInfo("UTC"),
) -> int:
    """Problems due by the end of the local day containing ``as_of`` (overdue included)."""
    cutoff = end_of_day(as_of, tz)
    return sum(
        1
        for p in problems
        if p.schedule.next_revision_date is not None and p.schedule.next_revision_date <= cutoff
    )


def heatmap(problems: Iterable[ProblemRecord], tz: ZoneInfo = ZoneInfo("UTC")) -> dict[str, int]:
    """Solved problems per local day; days without activity are absent."""
    solved = [p for p in problems if p.status == "Solved"]
    return {bucket.period: bucket.count for bucket in bucket_by_day(solved, by_solve_date, tz)}


def best_week_count(problems: Iterable[ProblemRecord], tz: ZoneInfo = ZoneInfo("UTC")) -> int:
    weeks = bucket_by_week(problems, by_solve_date, tz)
    return max((bucket.count for bucket in weeks), default=0)


def average_revision_time(problems: Iterable[ProblemRecord]) -> float | None:
    """Mean minutes over every recorded revision of every problem."""
    times = [entry.time_taken for p in problems for entry in p.schedule.history]
    if not times:
        return None
    return sum(times) / len(times)


def within_window(
    problems: Sequence[ProblemRecord],
    date_selector: DateSelector,
    since: datetime,
) -> list[ProblemRecord]:
    """Problems whose selected timestamp is at or after ``since``."""
    result = []
    for problem in problems:
        moment = date_selector(problem)
        if moment is not None and moment >= since:
            result.append(problem)
    return result
