import pytest
from datetime import datetime, timedelta

from pms_core.core.exceptions import NotFoundError
from pms_core.models import CompetencyReviewer, CompetencyReviewFeedback, FeedbackRequestLog, GlobalSetting, PlannedObjective, WorkProduct
from pms_core.models.enums import FeedbackRequestType, Status
from pms_core.services.dashboard_service import DashboardService


def _request(initiated, status, hours=None, request_type=FeedbackRequestType.WORK_PRODUCT_EVALUATION.value):
    return FeedbackRequestLog(
        assigned_staff_id="S-1", review_period_id="RP-Q1", feedback_request_type=request_type,
        has_sla=True, time_initiated=initiated, status=status,
        time_completed=initiated + timedelta(hours=hours) if hours is not None else None,
    )


@pytest.fixture
def service(db_session, fixed_now):
    return DashboardService(db_session, clock=lambda: fixed_now)


def test_request_statistics(db_session, service, period, fixed_now):
    db_session.add_all([
        GlobalSetting(key="REQUEST_SLA_HOURS", value="48"),
        _request(datetime(2025, 2, 1), Status.COMPLETED.value, hours=10),
        _request(datetime(2025, 2, 2), Status.CLOSED.value, hours=72),
        _request(fixed_now - timedelta(hours=10), Status.ACTIVE.value),
        _request(fixed_now - timedelta(hours=100), Status.ACTIVE.value),
        # outside the period window
        _request(datetime(2024, 12, 1), Status.ACTIVE.value),
    ])
    feedback = CompetencyReviewFeedback(staff_id="S-9", review_period_id=period.id, status=Status.ACTIVE.value)
    feedback.reviewers.append(CompetencyReviewer(review_staff_id="S-1", status=Status.ACTIVE.value,
                                                 created_at=datetime(2025, 2, 1)))
    feedback.reviewers.append(CompetencyReviewer(review_staff_id="S-1", status=Status.COMPLETED.value,
                                                 created_at=datetime(2025, 2, 1)))
    db_session.add(feedback)
    db_session.commit()

    stats = service.get_request_statistics("S-1")

    assert stats.review_period_id == "RP-Q1"
    assert stats.completed_requests == 2
    assert stats.pending_requests == 2
    assert stats.completed_overdue_requests == 1
    assert stats.pending_overdue_requests == 1
    assert stats.breached_requests == 2
    assert stats.deducted_points == 2
    assert stats.pending_360_feedbacks_to_treat == 1


def test_performance_points(db_session, service, period):
    db_session.add(WorkProduct(id="WP-1", staff_id="S-1", name="Loan book review", start_date=datetime(2025, 1, 5),
                               end_date=datetime(2025, 1, 25), final_score=42, status=Status.COMPLETED.value))
    db_session.commit()

    points = service.get_performance_points("S-1")

    assert points.review_period_id == "RP-Q1"
    assert points.max_points == 100
    assert points.accumulated_points == pytest.approx(42)
    assert points.actual_points == pytest.approx(42)
    assert points.percentage_score == pytest.approx(42.0)


def test_active_period_prefers_staff_objective(db_session, service, period, strategy):
    from pms_core.models import ReviewPeriod
    db_session.add(ReviewPeriod(
        id="RP-2026", name="FY 2026", year=2026, range="Annual", range_value=1,
        start_date=datetime(2026, 1, 1), end_date=datetime(2026, 12, 31, 23, 59, 59),
        max_points=100, strategy_id=strategy.id, status=Status.ACTIVE.value,
    ))
    db_session.add(PlannedObjective(id="O-1", staff_id="S-1", review_period_id=period.id, title="t",
                                    status=Status.APPROVED_AND_ACTIVE.value, created_at=datetime(2025, 1, 3)))
    db_session.commit()

    assert service.get_request_statistics("S-1").review_period_id == "RP-Q1"
    # No objective for S-2: most recent globally active period
    assert service.get_request_statistics("S-2").review_period_id == "RP-2026"


def test_no_active_period(service, db_session):
    with pytest.raises(NotFoundError):
        service.get_request_statistics("S-1")
