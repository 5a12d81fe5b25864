"""Immutable views of problems for the pure engines.

The scheduler, streak and aggregation engines never touch ORM rows. They
work on these frozen snapshots and return new values, so a computation
can never leave a half-updated row behind.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from models.problem import Problem


@dataclass(frozen=True, slots=True)
class RevisionRecord:
    """One completed revision."""
    sequence: int
    date: datetime
    time_taken: int
    notes: str = ""


@dataclass(frozen=True, slots=True)
class RevisionSchedule:
    """Revision state of one problem."""
    next_revision_date: datetime | None = None
    revision_count: int = 0
    last_revision_date: datetime | None = None
    history: tuple[RevisionRecord, ...] = ()

    def evolve(self, **changes) -> RevisionSchedule:
        return replace(self, **changes)

    @classmethod
    def from_model(cls, problem: Problem) -> RevisionSchedule:
        return cls(
            next_revision_date=problem.next_revision_date,
            revision_count=problem.revision_count or 0,
            last_revision_date=problem.last_revision_date,
            history=tuple(
                RevisionRecord(
                    sequence=entry.sequence,
                    date=entry.date,
                    time_taken=entry.time_taken,
                    notes=entry.notes or "",
                )
                for entry in problem.revision_history
            ),
        )


@dataclass(frozen=True, slots=True)
class ProblemRecord:
    """Snapshot of the fields the analytics engines read."""
    id: UUID | None
    status: str
    platform: str
    platform_difficulty: str
    real_difficulty: str
    main_category: str
    time_taken: int
    solve_date: datetime
    problem_pattern: str | None = None
    problem_name: str = ""
    is_favorite: bool = False
    created_at: datetime | None = None
    schedule: RevisionSchedule = field(default_factory=RevisionSchedule)

    @classmethod
    def from_model(cls, problem: Problem) -> ProblemRecord:
        return cls(
            id=problem.id,
            status=_value(problem.status),
            platform=_value(problem.platform),
            platform_difficulty=_value(problem.platform_difficulty),
            real_difficulty=_value(problem.real_difficulty),
            main_category=_value(problem.main_category),
            problem_pattern=_value(problem.problem_pattern),
            time_taken=problem.time_taken,
            solve_date=problem.solve_date,
            problem_name=problem.problem_name,
            is_favorite=bool(problem.is_favorite),
            created_at=problem.created_at,
            schedule=RevisionSchedule.from_model(problem),
        )


def _value(member):
    """Enum member -> stored value; plain strings and None pass through."""
    return getattr(member, "value", member)
