"""Response models shared by the problem and revision routers."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator

from core.timeutils import to_naive_utc
from models.problem import Category, Difficulty, Pattern, Platform, ProblemStatus


def naive_utc(value: datetime | None) -> datetime | None:
    """Field validator body: store aware timestamps as naive UTC."""
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return value


class RevisionEntryResponse(BaseModel):
    sequence: int
    date: datetime
    time_taken: int
    notes: str | None

    class Config:
        from_attributes = True


class ProblemResponse(BaseModel):
    id: UUID
    problem_name: str
    problem_title: str
    description: str | None
    problem_link: str
    platform: Platform
    platform_difficulty: Difficulty
    real_difficulty: Difficulty
    time_taken: int
    main_category: Category
    problem_pattern: Pattern | None
    topic_tags: list[str]
    approach_notes: str | None
    code_snippet: str | None
    status: ProblemStatus
    is_favorite: bool
    solve_date: datetime
    next_revision_date: datetime | None
    revision_count: int
    last_revision_date: datetime | None
    revision_history: list[RevisionEntryResponse]
    created_at: datetime | None
    updated_at: datetime | None

    class Config:
        from_attributes = True

    @field_validator("topic_tags", mode="before")
    @classmethod
    def _tags_default(cls, v):
        return v or []


class Pagination(BaseModel):
    current: int
    pages: int
    total: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(current=page, pages=(total + limit - 1) // limit, total=total)
