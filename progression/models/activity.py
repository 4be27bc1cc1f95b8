"""Activity snapshot consumed by the eligibility evaluator"""
from typing import Dict

from pydantic import BaseModel, Field

# Metric names reported by the application store
APPLICATION_COUNT = "application_count"
INTERVIEW_COUNT = "interview_count"
OFFER_COUNT = "offer_count"
REMOTE_COUNT = "remote_count"
ATTACHMENTS_COUNT = "attachments_count"
COVER_LETTER_COUNT = "cover_letter_count"
RESUME_COUNT = "resume_count"
NOTES_COUNT = "notes_count"
FAANG_COUNT = "faang_count"
EARLY_APPLICATION_COUNT = "early_application_count"  # submitted before 09:00
LATE_APPLICATION_COUNT = "late_application_count"  # submitted from 20:00
WEEKEND_APPLICATION_COUNT = "weekend_application_count"
WEEKLY_GOAL_PROGRESS = "weekly_goal_progress"  # percent of weekly goal reached
MONTHLY_GOAL_PROGRESS = "monthly_goal_progress"

# Metrics the engine adds itself
CURRENT_STREAK = "current_streak"
LONGEST_STREAK = "longest_streak"
ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"


class ActivitySnapshot(BaseModel):
    """
    A user's activity metrics at one point in time

    Absent metrics read as 0, so a requirement on a metric the store does
    not report is simply not met.
    """
    user_id: str
    metrics: Dict[str, int] = Field(default_factory=dict)

    def value(self, metric: str) -> int:
        return int(self.metrics.get(metric) or 0)

    def with_metrics(self, **metrics: int) -> "ActivitySnapshot":
        """Return a copy with the given metrics overridden"""
        merged = dict(self.metrics)
        merged.update(metrics)
        return self.model_copy(update={"metrics": merged})
