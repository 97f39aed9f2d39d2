"""
SLA breach detection for feedback requests.

A request is breached when it has an SLA and either

- finished (Closed/Completed/Breached) after more than its threshold, or
- is still Active and its threshold has already elapsed.

Three-sixty review requests use their own threshold; every other type uses
the standard one. Exactly reaching the threshold is compliant.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from pms_core.core.clock import as_naive_utc, utcnow
from pms_core.models.enums import FeedbackRequestType, SLA_FINISHED_STATUSES, Status

_FINISHED = {s.value for s in SLA_FINISHED_STATUSES}


@dataclass(frozen=True)
class SLAThresholds:
    standard_hours: int
    three_sixty_hours: int

    def for_type(self, request_type: str) -> int:
        if request_type == FeedbackRequestType.THREE_SIXTY_REVIEW.value:
            return self.three_sixty_hours
        return self.standard_hours


@dataclass(frozen=True)
class SLABreachReport:
    completed_overdue: int
    pending_overdue: int
    deducted_points: float

    @property
    def breached(self) -> int:
        return self.completed_overdue + self.pending_overdue


class SLABreachDetector:

    def __init__(self, thresholds: SLAThresholds):
        self.thresholds = thresholds

    def is_completed_overdue(self, request) -> bool:
        if not request.has_sla or request.time_completed is None:
            return False
        if request.status not in _FINISHED:
            return False
        elapsed = as_naive_utc(request.time_completed) - as_naive_utc(request.time_initiated)
        return elapsed.total_seconds() / 3600 > self.thresholds.for_type(request.feedback_request_type)

    def is_pending_overdue(self, request, now: datetime) -> bool:
        if not request.has_sla or request.status != Status.ACTIVE.value:
            return False
        deadline = as_naive_utc(request.time_initiated) + timedelta(
            hours=self.thresholds.for_type(request.feedback_request_type)
        )
        return deadline < as_naive_utc(now)

    def detect(self, requests: Iterable, max_points: float, now: Optional[datetime] = None) -> SLABreachReport:
        """Count breaches and derive the deduction: one point per breach, capped at ``max_points``."""
        now = now or utcnow()
        completed_overdue = 0
        pending_overdue = 0
        for request in requests:
            # The two classes are counted independently
            if self.is_completed_overdue(request):
                completed_overdue += 1
            if self.is_pending_overdue(request, now):
                pending_overdue += 1
        total = completed_overdue + pending_overdue
        deducted = float(min(total, max(max_points or 0, 0)))
        return SLABreachReport(completed_overdue, pending_overdue, deducted)
