"""
SQLAlchemy implementation of the ``RecordStore`` contract.

Every read used by score-card computation lives here so the calculator and
aggregators can be exercised against any store honouring the protocol.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import and_, exists
from sqlalchemy.orm import Session, selectinload

from pms_core.core.exceptions import NotFoundError
from pms_core.models.competency import CompetencyGapClosure
from pms_core.models.enums import ACTIVE_PERIOD_STATUSES, Status
from pms_core.models.feedback import (
    CompetencyReviewer,
    CompetencyReviewerRating,
    CompetencyReviewFeedback,
    FeedbackRequestLog,
)
from pms_core.models.objective import PlannedObjective
from pms_core.models.review_period import CategoryDefinition, PmsCompetency, ReviewPeriod
from pms_core.models.work_product import WorkProduct
from pms_core.services.base import BaseService


def _values(statuses: Sequence[Status]) -> List[str]:
    return [s.value for s in statuses]


class SqlRecordStore(BaseService):

    def __init__(self, db: Session):
        super().__init__(db)

    @contextmanager
    def consistent_read(self) -> Iterator[None]:
        """
        Run the enclosed reads in one transaction so a concurrent workflow
        commit cannot be half-observed. PostgreSQL gets REPEATABLE READ.
        Nested use joins the already-open transaction. Nothing is written, so
        the transaction opened here is always rolled back.
        """
        if self.db.in_transaction():
            yield
            return
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.connection(execution_options={"isolation_level": "REPEATABLE READ"})
        try:
            yield
        finally:
            self.db.rollback()

    # --- Review periods ---

    def get_review_period(self, period_id: str) -> ReviewPeriod:
        period = self.db.get(ReviewPeriod, period_id)
        if period is None:
            raise NotFoundError("ReviewPeriod", period_id)
        return period

    def get_active_review_period_for_staff(self, staff_id: str) -> ReviewPeriod:
        active = _values(ACTIVE_PERIOD_STATUSES)
        objective = (
            self.db.query(PlannedObjective)
            .filter(PlannedObjective.staff_id == staff_id, PlannedObjective.status.in_(active))
            .order_by(PlannedObjective.created_at.desc())
            .first()
        )
        if objective is not None and objective.review_period is not None:
            return objective.review_period

        period = (
            self.db.query(ReviewPeriod)
            .filter(ReviewPeriod.status.in_(active))
            .order_by(ReviewPeriod.start_date.desc())
            .first()
        )
        if period is None:
            raise NotFoundError("Active ReviewPeriod", staff_id)
        return period

    def list_review_periods_for_year(self, year: int, statuses: Sequence[Status]) -> List[ReviewPeriod]:
        return (
            self.db.query(ReviewPeriod)
            .filter(ReviewPeriod.year == year, ReviewPeriod.status.in_(_values(statuses)))
            .order_by(ReviewPeriod.start_date.asc())
            .all()
        )

    # --- Score inputs ---

    def list_work_products(self, staff_id: str, start: datetime, end: datetime,
                           excluded_statuses: Sequence[Status]) -> List[WorkProduct]:
        return (
            self.db.query(WorkProduct)
            .filter(
                WorkProduct.staff_id == staff_id,
                WorkProduct.status.notin_(_values(excluded_statuses)),
                WorkProduct.start_date >= start,
                WorkProduct.end_date <= end,
            )
            .order_by(WorkProduct.start_date.asc())
            .all()
        )

    def list_feedback_request_logs(self, staff_id: str, start: datetime, end: datetime) -> List[FeedbackRequestLog]:
        return (
            self.db.query(FeedbackRequestLog)
            .filter(
                FeedbackRequestLog.assigned_staff_id == staff_id,
                FeedbackRequestLog.time_initiated >= start,
                FeedbackRequestLog.time_initiated <= end,
            )
            .all()
        )

    def list_competency_feedbacks(self, staff_id: str, period_id: str,
                                  excluded_statuses: Sequence[Status]) -> List[CompetencyReviewFeedback]:
        return (
            self.db.query(CompetencyReviewFeedback)
            .options(
                selectinload(CompetencyReviewFeedback.reviewers)
                .selectinload(CompetencyReviewer.ratings)
                .selectinload(CompetencyReviewerRating.pms_competency)
            )
            .filter(
                CompetencyReviewFeedback.staff_id == staff_id,
                CompetencyReviewFeedback.review_period_id == period_id,
                CompetencyReviewFeedback.status.notin_(_values(excluded_statuses)),
            )
            .order_by(CompetencyReviewFeedback.id.asc())
            .all()
        )

    def list_unit_competency_feedbacks(self, staff_ids: Sequence[str], period_id: str,
                                       excluded_statuses: Sequence[Status]) -> List[CompetencyReviewFeedback]:
        if not staff_ids:
            return []
        return (
            self.db.query(CompetencyReviewFeedback)
            .options(selectinload(CompetencyReviewFeedback.reviewers))
            .filter(
                CompetencyReviewFeedback.staff_id.in_(list(staff_ids)),
                CompetencyReviewFeedback.review_period_id == period_id,
                CompetencyReviewFeedback.status.notin_(_values(excluded_statuses)),
            )
            .all()
        )

    def list_category_definitions(self, period_id: str, grade_group_id: int) -> List[CategoryDefinition]:
        mapped = exists().where(PmsCompetency.objective_category_id == CategoryDefinition.objective_category_id)
        return (
            self.db.query(CategoryDefinition)
            .options(selectinload(CategoryDefinition.category))
            .filter(
                CategoryDefinition.review_period_id == period_id,
                CategoryDefinition.grade_group_id == grade_group_id,
                CategoryDefinition.status != Status.CANCELLED.value,
                mapped,
            )
            .order_by(CategoryDefinition.objective_category_id.asc())
            .all()
        )

    def get_category_definition(self, period_id: str, grade_group_id: int,
                                category_id: str) -> Optional[CategoryDefinition]:
        return (
            self.db.query(CategoryDefinition)
            .filter(
                CategoryDefinition.review_period_id == period_id,
                CategoryDefinition.grade_group_id == grade_group_id,
                CategoryDefinition.objective_category_id == category_id,
                CategoryDefinition.status != Status.CANCELLED.value,
            )
            .first()
        )

    def get_gap_closure(self, staff_id: str, period_id: str) -> Optional[CompetencyGapClosure]:
        return (
            self.db.query(CompetencyGapClosure)
            .filter(
                CompetencyGapClosure.staff_id == staff_id,
                CompetencyGapClosure.review_period_id == period_id,
            )
            .order_by(CompetencyGapClosure.created_at.asc(), CompetencyGapClosure.id.asc())
            .first()
        )

    def list_gap_closures(self, staff_ids: Sequence[str], period_id: str) -> List[CompetencyGapClosure]:
        if not staff_ids:
            return []
        return (
            self.db.query(CompetencyGapClosure)
            .filter(
                CompetencyGapClosure.staff_id.in_(list(staff_ids)),
                CompetencyGapClosure.review_period_id == period_id,
            )
            .all()
        )

    # --- Roster and dashboard helpers ---

    def list_staff_with_objectives_approved_by(self, manager_id: str, period_id: str,
                                               statuses: Sequence[Status]) -> List[str]:
        rows = (
            self.db.query(PlannedObjective.staff_id)
            .filter(
                PlannedObjective.approved_by == manager_id,
                PlannedObjective.review_period_id == period_id,
                PlannedObjective.status.in_(_values(statuses)),
            )
            .distinct()
            .order_by(PlannedObjective.staff_id.asc())
            .all()
        )
        return [staff_id for (staff_id,) in rows]

    def count_pending_reviews_to_treat(self, reviewer_staff_id: str, start: datetime, end: datetime) -> int:
        return (
            self.db.query(CompetencyReviewer)
            .filter(
                and_(
                    CompetencyReviewer.review_staff_id == reviewer_staff_id,
                    CompetencyReviewer.status == Status.ACTIVE.value,
                    CompetencyReviewer.created_at >= start,
                    CompetencyReviewer.created_at <= end,
                )
            )
            .count()
        )
