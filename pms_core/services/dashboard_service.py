from typing import Callable, Optional
from datetime import datetime

from sqlalchemy.orm import Session

from pms_core.core.clock import utcnow
from pms_core.models.enums import Status
from pms_core.schemas.score_card import PerformancePoints, RequestStatistics
from pms_core.services.base import BaseService
from pms_core.services.interfaces import OrgLookup, SettingsLookup
from pms_core.services.org_lookup import NullOrgLookup
from pms_core.services.record_store import SqlRecordStore
from pms_core.services.score_card import ScoreCardCalculator
from pms_core.services.settings_lookup import GlobalSettingService, resolve_sla_thresholds
from pms_core.services.sla import SLABreachDetector


class DashboardService(BaseService):
    """Staff dashboard figures for the staff member's active review period."""

    def __init__(
        self,
        db: Session,
        org_lookup: Optional[OrgLookup] = None,
        settings_lookup: Optional[SettingsLookup] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(db)
        self.store = SqlRecordStore(db)
        self.org_lookup = org_lookup or NullOrgLookup()
        self.settings_lookup = settings_lookup or GlobalSettingService(db)
        self.clock = clock
        self.calculator = ScoreCardCalculator(
            self.store, self.org_lookup, self.settings_lookup, clock=clock
        )

    def get_request_statistics(self, staff_id: str) -> RequestStatistics:
        with self.store.consistent_read():
            period = self.store.get_active_review_period_for_staff(staff_id)
            requests = self.store.list_feedback_request_logs(staff_id, period.start_date, period.end_date)
            detector = SLABreachDetector(resolve_sla_thresholds(self.settings_lookup))
            report = detector.detect(requests, period.max_points, now=self.clock())
            pending_reviews = self.store.count_pending_reviews_to_treat(
                staff_id, period.start_date, period.end_date
            )

            stats = RequestStatistics(
                staff_id=staff_id,
                review_period_id=period.id,
                completed_requests=sum(1 for r in requests if r.time_completed is not None),
                pending_requests=sum(1 for r in requests if r.status == Status.ACTIVE.value),
                completed_overdue_requests=report.completed_overdue,
                pending_overdue_requests=report.pending_overdue,
                breached_requests=report.breached,
                deducted_points=report.deducted_points,
                pending_360_feedbacks_to_treat=pending_reviews,
            )
        self.log_info("request statistics computed", staff_id=staff_id, review_period_id=stats.review_period_id)
        return stats

    def get_performance_points(self, staff_id: str) -> PerformancePoints:
        with self.store.consistent_read():
            period = self.store.get_active_review_period_for_staff(staff_id)
            card = self.calculator.calculate(staff_id, period.id)
        return PerformancePoints(
            staff_id=staff_id,
            review_period_id=card.review_period_id,
            max_points=card.max_points,
            accumulated_points=card.accumulated_points,
            deducted_points=card.deducted_points,
            actual_points=card.actual_points,
            percentage_score=card.percentage_score,
            grade=card.grade,
        )
