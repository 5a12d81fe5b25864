"""Consecutive-day solve streaks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from core.logging import analytics_logger
from core.timeutils import local_date

from engines.records import ProblemRecord

log = analytics_logger()

SOLVED = "Solved"


@dataclass(frozen=True, slots=True)
class StreakSummary:
    current: int
    best: int


def solved_days(problems: Iterable[ProblemRecord], tz: ZoneInfo) -> set[date]:
    """Distinct local calendar days on which a Solved problem was solved."""
    return {
        local_date(p.solve_date, tz)
        for p in problems
        if p.status == SOLVED and p.solve_date is not None
    }


def current_streak(days: set[date], today: date) -> int:
    """Length of the run of solved days ending at ``today``.

    Zero when nothing was solved today, even if yesterday was.
    """
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def best_streak(days: set[date]) -> int:
    """Longest run of consecutive days anywhere in ``days``."""
    best = 0
    for day in days:
        if day - timedelta(days=1) in days:
            continue
        length = 1
        while day + timedelta(days=length) in days:
            length += 1
        best = max(best, length)
    return best


def update_best(stored_best: int, current: int) -> int:
    return max(stored_best or 0, current)


def summarize(
    problems: Iterable[ProblemRecord],
    today: date,
    tz: ZoneInfo,
    stored_best: int = 0,
) -> StreakSummary:
    days = solved_days(problems, tz)
    current = current_streak(days, today)
    best = update_best(update_best(stored_best, best_streak(days)), current)
    log.debug("streak_computed", solved_days=len(days), current=current, best=best)
    return StreakSummary(current=current, best=best)
