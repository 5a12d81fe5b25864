from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from core.database import Base, GUID
from core.timeutils import utcnow


class Platform(str, PyEnum):
    LEETCODE = "LeetCode"
    HACKERRANK = "HackerRank"
    CODEFORCES = "Codeforces"
    CODECHEF = "CodeChef"
    ATCODER = "AtCoder"
    OTHER = "Other"


class Difficulty(str, PyEnum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Category(str, PyEnum):
    ARRAYS = "Arrays"
    STRINGS = "Strings"
    LINKED_LISTS = "Linked Lists"
    TREES = "Trees"
    GRAPHS = "Graphs"
    DYNAMIC_PROGRAMMING = "Dynamic Programming"
    BACKTRACKING = "Backtracking"
    GREEDY = "Greedy"
    SORTING = "Sorting"
    SEARCHING = "Searching"
    HASH_TABLES = "Hash Tables"
    STACKS = "Stacks"
    QUEUES = "Queues"
    HEAPS = "Heaps"
    BINARY_SEARCH = "Binary Search"
    TWO_POINTERS = "Two Pointers"
    SLIDING_WINDOW = "Sliding Window"
    MATH = "Math"
    BIT_MANIPULATION = "Bit Manipulation"
    RECURSION = "Recursion"
    OTHER = "Other"


class Pattern(str, PyEnum):
    SLIDING_WINDOW = "Sliding Window"
    TWO_POINTERS = "Two Pointers"
    FAST_SLOW_POINTERS = "Fast & Slow Pointers"
    MERGE_INTERVALS = "Merge Intervals"
    CYCLIC_SORT = "Cyclic Sort"
    IN_PLACE_REVERSAL = "In-place Reversal"
    TREE_BFS = "Tree BFS"
    TREE_DFS = "Tree DFS"
    TWO_HEAPS = "Two Heaps"
    SUBSETS = "Subsets"
    MODIFIED_BINARY_SEARCH = "Modified Binary Search"
    TOP_K_ELEMENTS = "Top K Elements"
    K_WAY_MERGE = "K-way Merge"
    TOPOLOGICAL_SORT = "Topological Sort"
    DYNAMIC_PROGRAMMING = "Dynamic Programming"
    BACKTRACKING = "Backtracking"
    GREEDY = "Greedy"
    OTHER = "Other"


class ProblemStatus(str, PyEnum):
    SOLVED = "Solved"
    IN_PROGRESS = "In Progress"
    FOR_REVIEW = "For Review"


def _enum_column(enum_cls: type[PyEnum], **kwargs) -> Column:
    """Enum column stored by value ("Linked Lists", not "LINKED_LISTS")."""
    return Column(
        Enum(
            enum_cls,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            validate_strings=True,
            length=40,
        ),
        **kwargs,
    )


class Problem(Base):
    """A solved (or in-progress) practice problem with its revision schedule"""
    __tablename__ = "problems"

    id = Column(GUID, primary_key=True, default=uuid4)
    user_id = Column(GUID, nullable=False, index=True)
    problem_name = Column(String(255), nullable=False)
    problem_title = Column(String(200), nullable=False)
    description = Column(Text)
    problem_link = Column(String(500), nullable=False)
    platform = _enum_column(Platform, nullable=False)
    platform_difficulty = _enum_column(Difficulty, nullable=False)
    real_difficulty = _enum_column(Difficulty, nullable=False)
    time_taken = Column(Integer, nullable=False)  # minutes, >= 1
    main_category = _enum_column(Category, nullable=False)
    problem_pattern = _enum_column(Pattern)
    topic_tags = Column(JSON, default=list)
    approach_notes = Column(Text)
    code_snippet = Column(Text)
    status = _enum_column(ProblemStatus, nullable=False, default=ProblemStatus.SOLVED)
    is_favorite = Column(Boolean, nullable=False, default=False)
    solve_date = Column(DateTime, nullable=False, default=utcnow)

    # Revision schedule
    next_revision_date = Column(DateTime, index=True)
    revision_count = Column(Integer, nullable=False, default=0)
    last_revision_date = Column(DateTime)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    revision_history = relationship(
        "RevisionEntry",
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="RevisionEntry.sequence",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class RevisionEntry(Base):
    """One completed revision of a problem"""
    __tablename__ = "revision_entries"
    __table_args__ = (UniqueConstraint("problem_id", "sequence", name="uq_revision_sequence"),)

    id = Column(GUID, primary_key=True, default=uuid4)
    problem_id = Column(GUID, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)  # 1-based, append order
    date = Column(DateTime, nullable=False)
    time_taken = Column(Integer, nullable=False)
    notes = Column(Text, default="")

    problem = relationship("Problem", back_populates="revision_history")