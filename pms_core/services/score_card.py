"""
Score card for one staff member in one review period.

    accumulated = work products + living the values + gap closure
    actual      = max(0, accumulated - SLA deduction)
    percentage  = 100 * actual / period max points

Missing inputs count as zero. Any failure aborts the whole card; a partial
card is never returned.
"""
import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from pms_core.core.clock import as_naive_utc, utcnow
from pms_core.core.config import settings
from pms_core.core.exceptions import OrgLookupUnavailableError
from pms_core.models.enums import EXCLUDED_STATUSES, WORK_PRODUCT_COMPLETED_STATUSES, Status
from pms_core.schemas.score_card import ScoreCard, WorkProductStatistics
from pms_core.services.competency_scoring import CategoryWeightedScorer
from pms_core.services.grading import GradeBander
from pms_core.services.interfaces import OrgLookup, RecordStore, SettingsLookup
from pms_core.services.settings_lookup import resolve_sla_thresholds
from pms_core.services.sla import SLABreachDetector

logger = logging.getLogger(__name__)

_COMPLETED = {s.value for s in WORK_PRODUCT_COMPLETED_STATUSES}


def work_product_statistics(products: Sequence, now: datetime) -> WorkProductStatistics:
    total = len(products)
    completed = [p for p in products if p.status in _COMPLETED]
    on_schedule = sum(
        1 for p in completed if p.completion_date is not None and p.completion_date <= p.end_date
    )
    behind = sum(
        1 for p in products
        if (p.status == Status.ACTIVE.value and p.end_date < now)
        or (p.status in _COMPLETED and p.completion_date is not None and p.completion_date > p.end_date)
    )
    return WorkProductStatistics(
        total=total,
        completed=len(completed),
        completed_on_schedule=on_schedule,
        behind_schedule=behind,
        completion_percentage=100.0 * len(completed) / total if total else 0.0,
    )


class ScoreCardCalculator:

    def __init__(
        self,
        store: RecordStore,
        org_lookup: OrgLookup,
        settings_lookup: SettingsLookup,
        grade_bander: Optional[GradeBander] = None,
        scorer: Optional[CategoryWeightedScorer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.org_lookup = org_lookup
        self.settings_lookup = settings_lookup
        self.grade_bander = grade_bander or GradeBander()
        self.scorer = scorer or CategoryWeightedScorer()
        self.clock = clock

    def resolve_grade_group(self, staff_id: str) -> int:
        try:
            grade_group = self.org_lookup.get_staff_grade_group(staff_id)
        except OrgLookupUnavailableError:
            grade_group = None
        if grade_group is None:
            logger.info(
                f"Grade group unresolved for {staff_id}, using default {settings.default_grade_group_id}"
            )
            return settings.default_grade_group_id
        return grade_group

    def calculate(self, staff_id: str, period_id: str) -> ScoreCard:
        with self.store.consistent_read():
            return self._calculate(staff_id, period_id)

    def _calculate(self, staff_id: str, period_id: str) -> ScoreCard:
        period = self.store.get_review_period(period_id)
        now = as_naive_utc(self.clock())
        grade_group = self.resolve_grade_group(staff_id)
        max_points = period.max_points or 0.0

        products = self.store.list_work_products(
            staff_id, period.start_date, period.end_date, EXCLUDED_STATUSES
        )
        work_product_points = float(sum(p.final_score or 0.0 for p in products))

        feedbacks = self.store.list_competency_feedbacks(staff_id, period_id, EXCLUDED_STATUSES)
        definitions = self.store.list_category_definitions(period_id, grade_group)
        competency = self.scorer.score(feedbacks, definitions)

        gap_closure_points = 0.0
        gap = self.store.get_gap_closure(staff_id, period_id)
        if gap is not None:
            definition = self.store.get_category_definition(period_id, grade_group, gap.objective_category_id)
            if definition is not None:
                gap_closure_points = definition.max_points * ((gap.final_score or 0.0) / 100)

        requests = self.store.list_feedback_request_logs(staff_id, period.start_date, period.end_date)
        detector = SLABreachDetector(resolve_sla_thresholds(self.settings_lookup))
        breaches = detector.detect(requests, max_points, now=now)

        accumulated = work_product_points + competency.ltv_points + gap_closure_points
        actual = max(0.0, accumulated - breaches.deducted_points)

        percentage = None
        grade = None
        if max_points > 0:
            percentage = 100 * (actual / max_points)
            grade = self.grade_bander.grade(percentage)
        else:
            logger.warning(f"Review period {period_id} has no max points; percentage and grade omitted")

        return ScoreCard(
            staff_id=staff_id,
            staff_name=self.org_lookup.get_staff_name(staff_id),
            review_period_id=period.id,
            review_period=period.name,
            review_period_short_name=period.display_short_name,
            year=period.year,
            max_points=max_points,
            work_product_points=work_product_points,
            living_the_values_points=competency.ltv_points,
            gap_closure_points=gap_closure_points,
            accumulated_points=accumulated,
            completed_overdue_requests=breaches.completed_overdue,
            pending_overdue_requests=breaches.pending_overdue,
            deducted_points=breaches.deducted_points,
            actual_points=actual,
            percentage_score=percentage,
            grade=grade,
            is_under_performing=percentage is not None and percentage < settings.under_performance_cutoff,
            work_products=work_product_statistics(products, now),
            pms_competencies=competency.details,
            pms_competency_category=competency.category_points,
        )
