from engines.records import ProblemRecord, RevisionRecord, RevisionSchedule
from engines.scheduler import IntervalTable, RevisionScheduler, RevisionStatus
from engines.streaks import StreakSummary
from engines.aggregation import TimeBucket
from engines.profile import ProfileTracker
from engines.revisions import RevisionTracker
from engines.dashboard import DashboardBuilder

__all__ = [
    "ProblemRecord",
    "RevisionRecord",
    "RevisionSchedule",
    "IntervalTable",
    "RevisionScheduler",
    "RevisionStatus",
    "StreakSummary",
    "TimeBucket",
    "ProfileTracker",
    "RevisionTracker",
    "DashboardBuilder",
]
