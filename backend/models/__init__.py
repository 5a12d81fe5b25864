from models.problem import (
    Platform, Difficulty, Category, Pattern, ProblemStatus,
    Problem, RevisionEntry,
)
from models.user import User

__all__ = [
    "Platform", "Difficulty", "Category", "Pattern", "ProblemStatus",
    "Problem", "RevisionEntry",
    "User",
]
