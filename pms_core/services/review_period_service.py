"""
Review Period Service Layer

Creation, validation and workflow of review periods and the category
definitions that weight them. Every status change goes through the review
period workflow engine; approval additionally enforces one active period
per year and cascades to the period's pending category definitions.
"""
import calendar
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pms_core.core.exceptions import BusinessRuleError, NotFoundError
from pms_core.models.enums import ACTIVE_PERIOD_STATUSES, Operation, ReviewPeriodRange, Status
from pms_core.models.review_period import CategoryDefinition, ObjectiveCategory, ReviewPeriod, Strategy
from pms_core.services.base import BaseService
from pms_core.services.interfaces import NotificationSink
from pms_core.services.workflow_engine import WorkflowEngine, review_period_workflow_engine
from pms_core.services.workflow_service import WorkflowService
from pms_core.services import workflow_mutators as mutators

WEIGHT_TOLERANCE = 0.01

_RANGE_BOUNDS = {
    ReviewPeriodRange.QUARTERLY: (1, 4),
    ReviewPeriodRange.BI_ANNUAL: (1, 2),
    ReviewPeriodRange.ANNUAL: (1, 1),
}
_MONTHS_PER_RANGE = {
    ReviewPeriodRange.QUARTERLY: 3,
    ReviewPeriodRange.BI_ANNUAL: 6,
    ReviewPeriodRange.ANNUAL: 12,
}
_ACTIVE = [s.value for s in ACTIVE_PERIOD_STATUSES]
# Category definitions still waiting on their period's approval
_CASCADE_STATUSES = {Status.DRAFT.value, Status.PENDING_APPROVAL.value}


def validate_range_value(period_range: ReviewPeriodRange, range_value: int):
    period_range = ReviewPeriodRange(period_range)
    low, high = _RANGE_BOUNDS[period_range]
    if not low <= range_value <= high:
        if low == high:
            raise BusinessRuleError(f"{period_range.value} range value must be {low}")
        raise BusinessRuleError(f"{period_range.value} range value must be between {low} and {high}")


def period_bounds(year: int, period_range: ReviewPeriodRange, range_value: int) -> Tuple[datetime, datetime]:
    """First instant and last second of the period, both naive UTC."""
    period_range = ReviewPeriodRange(period_range)
    validate_range_value(period_range, range_value)
    months = _MONTHS_PER_RANGE[period_range]
    first_month = (range_value - 1) * months + 1
    last_month = range_value * months
    last_day = calendar.monthrange(year, last_month)[1]
    return (
        datetime(year, first_month, 1, 0, 0, 0),
        datetime(year, last_month, last_day, 23, 59, 59),
    )


def validate_category_weights(weights: Iterable[float]) -> float:
    """Weights of a period's categories must add up to 100%."""
    weights = list(weights)
    if not weights:
        raise BusinessRuleError("At least one category weight is required")
    total = sum(weights)
    if abs(total - 100) > WEIGHT_TOLERANCE:
        raise BusinessRuleError(
            f"Category weights must sum to 100, got {total:.2f}",
            details={"total": total, "expected_total": 100},
        )
    return total


def _new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:13].upper()}"


class ReviewPeriodService(BaseService):

    def __init__(self, db: Session, engine: Optional[WorkflowEngine] = None,
                 notifier: Optional[NotificationSink] = None):
        super().__init__(db)
        engine = engine or review_period_workflow_engine()
        engine.set_before_hook(self._check_transition)
        self.workflow = WorkflowService(db, engine, notifier)

    def get_period(self, period_id: str) -> ReviewPeriod:
        period = self.db.get(ReviewPeriod, period_id)
        if period is None:
            raise NotFoundError("ReviewPeriod", period_id)
        return period

    # --- Creation ---

    def create_draft(
        self,
        name: str,
        year: int,
        period_range: ReviewPeriodRange,
        range_value: int,
        max_points: float,
        strategy_id: str,
        min_objectives: int = 0,
        max_objectives: int = 0,
        short_name: Optional[str] = None,
    ) -> ReviewPeriod:
        period_range = ReviewPeriodRange(period_range)
        if max_points is None or max_points <= 0:
            raise BusinessRuleError("Maximum points must be greater than 0")
        if min_objectives < 0:
            raise BusinessRuleError("Minimum number of objectives must be at least 0")
        if min_objectives > max_objectives:
            raise BusinessRuleError("Minimum number of objectives must not exceed maximum")

        strategy = self.db.get(Strategy, strategy_id)
        if strategy is None:
            raise NotFoundError("Strategy", strategy_id)
        if not strategy.is_approved and strategy.status not in _ACTIVE:
            raise BusinessRuleError("The selected strategy has not been approved")

        start_date, end_date = period_bounds(year, period_range, range_value)
        self._ensure_unique(name, short_name, year, period_range, range_value)

        period = ReviewPeriod(
            id=_new_id("RP"),
            name=name,
            short_name=short_name,
            year=year,
            range=period_range.value,
            range_value=range_value,
            start_date=start_date,
            end_date=end_date,
            max_points=max_points,
            min_objectives=min_objectives,
            max_objectives=max_objectives,
            strategy_id=strategy_id,
            status=Status.DRAFT.value,
        )
        self.db.add(period)
        self.commit()
        self.db.refresh(period)
        self.log_info("review period draft saved", review_period_id=period.id, year=year)
        return period

    def _ensure_unique(self, name, short_name, year, period_range, range_value):
        live = self.db.query(ReviewPeriod).filter(
            ReviewPeriod.year == year, ReviewPeriod.status != Status.CANCELLED.value
        )
        if live.filter(func.lower(ReviewPeriod.name) == name.lower()).first():
            raise BusinessRuleError("A review period with this name already exists for the selected year")
        if short_name and live.filter(func.lower(ReviewPeriod.short_name) == short_name.lower()).first():
            raise BusinessRuleError("A review period with this short name already exists for the selected year")
        duplicate = live.filter(
            ReviewPeriod.range == period_range.value, ReviewPeriod.range_value == range_value
        ).first()
        if duplicate:
            raise BusinessRuleError("A review period already exists for the selected range and year")

    # --- Workflow ---

    def _check_transition(self, entity_id: str, from_status: Status, to_status: Status, actor_id: str):
        if to_status != Status.APPROVED_AND_ACTIVE:
            return
        period = self.get_period(entity_id)
        other_active = (
            self.db.query(ReviewPeriod)
            .filter(
                ReviewPeriod.year == period.year,
                ReviewPeriod.status.in_(_ACTIVE),
                ReviewPeriod.id != period.id,
            )
            .first()
        )
        if other_active is not None:
            raise BusinessRuleError(
                "An active review period already exists for the selected year",
                details={"active_review_period_id": other_active.id},
            )
        if not self._live_definitions(period.id):
            raise BusinessRuleError("Review period must have at least one category definition before approval")

    def _live_definitions(self, period_id: str) -> List[CategoryDefinition]:
        return (
            self.db.query(CategoryDefinition)
            .filter(
                CategoryDefinition.review_period_id == period_id,
                CategoryDefinition.status != Status.CANCELLED.value,
            )
            .all()
        )

    def submit(self, period_id: str, actor_id: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.COMMIT_DRAFT, actor_id)

    def approve(self, period_id: str, approver_id: str) -> ReviewPeriod:
        period = self.get_period(period_id)

        def _cascade(target: Status):
            for definition in self._live_definitions(period.id):
                if definition.status in _CASCADE_STATUSES:
                    mutators.apply_approval(definition, approver_id)

        self.workflow.transition(period, Operation.APPROVE, approver_id, cascade=_cascade)
        self.log_info("review period approved", review_period_id=period.id, approver_id=approver_id)
        return period

    def reject(self, period_id: str, actor_id: str, reason: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.REJECT, actor_id, reason=reason)

    def return_period(self, period_id: str, actor_id: str, reason: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.RETURN, actor_id, reason=reason)

    def resubmit(self, period_id: str, actor_id: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.RESUBMIT, actor_id)

    def close(self, period_id: str, actor_id: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.CLOSE, actor_id)

    def cancel(self, period_id: str, actor_id: str) -> ReviewPeriod:
        return self.workflow.transition(self.get_period(period_id), Operation.CANCEL, actor_id)

    # --- Category definitions ---

    def add_category_definition(
        self,
        period_id: str,
        objective_category_id: str,
        grade_group_id: int,
        weight: float,
        max_no_objectives: int = 0,
    ) -> CategoryDefinition:
        period = self.get_period(period_id)
        if period.status not in (Status.DRAFT.value, Status.PENDING_APPROVAL.value):
            raise BusinessRuleError("Category definitions cannot be added to this review period")
        if self.db.get(ObjectiveCategory, objective_category_id) is None:
            raise NotFoundError("ObjectiveCategory", objective_category_id)
        if weight is None or weight <= 0 or weight > 100:
            raise BusinessRuleError("Weight must be between 0 - 100%")
        if max_no_objectives > (period.max_objectives or 0):
            raise BusinessRuleError(
                f"Selected maximum objectives of {max_no_objectives} cannot be more than "
                f"review period maximum objectives of {period.max_objectives}"
            )

        existing = (
            self.db.query(CategoryDefinition)
            .filter(
                CategoryDefinition.review_period_id == period_id,
                CategoryDefinition.objective_category_id == objective_category_id,
                CategoryDefinition.grade_group_id == grade_group_id,
            )
            .first()
        )
        if existing is not None:
            raise BusinessRuleError("Objective Category Definition already exists, provide another definition")

        definition = CategoryDefinition(
            id=_new_id("CD"),
            review_period_id=period_id,
            objective_category_id=objective_category_id,
            grade_group_id=grade_group_id,
            weight=weight,
            max_points=period.max_points * weight / 100,
            max_no_objectives=max_no_objectives,
            # Follows its period through approval
            status=period.status,
        )
        self.db.add(definition)
        self.commit()
        self.db.refresh(definition)
        return definition
