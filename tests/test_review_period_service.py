import pytest
from datetime import datetime

from pms_core.core.exceptions import BusinessRuleError, InvalidTransitionError, MissingReasonError, NotFoundError
from pms_core.models import CategoryDefinition, ReviewPeriod
from pms_core.models.enums import ReviewPeriodRange, Status
from pms_core.services.review_period_service import (
    ReviewPeriodService,
    period_bounds,
    validate_category_weights,
    validate_range_value,
)


@pytest.fixture
def service(db_session):
    return ReviewPeriodService(db_session)


@pytest.fixture
def draft(service, strategy):
    return service.create_draft(
        name="Q2 2025", year=2025, period_range=ReviewPeriodRange.QUARTERLY, range_value=2,
        max_points=100, strategy_id=strategy.id, min_objectives=1, max_objectives=6,
    )


@pytest.mark.parametrize("period_range,value,start,end", [
    (ReviewPeriodRange.QUARTERLY, 1, datetime(2024, 1, 1), datetime(2024, 3, 31, 23, 59, 59)),
    (ReviewPeriodRange.QUARTERLY, 4, datetime(2024, 10, 1), datetime(2024, 12, 31, 23, 59, 59)),
    (ReviewPeriodRange.BI_ANNUAL, 1, datetime(2024, 1, 1), datetime(2024, 6, 30, 23, 59, 59)),
    (ReviewPeriodRange.ANNUAL, 1, datetime(2024, 1, 1), datetime(2024, 12, 31, 23, 59, 59)),
])
def test_period_bounds(period_range, value, start, end):
    assert period_bounds(2024, period_range, value) == (start, end)


@pytest.mark.parametrize("period_range,value", [
    (ReviewPeriodRange.QUARTERLY, 0),
    (ReviewPeriodRange.QUARTERLY, 5),
    (ReviewPeriodRange.BI_ANNUAL, 3),
    (ReviewPeriodRange.ANNUAL, 2),
])
def test_range_value_out_of_bounds(period_range, value):
    with pytest.raises(BusinessRuleError):
        validate_range_value(period_range, value)


def test_category_weights_must_sum_to_100():
    assert validate_category_weights([60, 39.995]) == pytest.approx(99.995)
    with pytest.raises(BusinessRuleError):
        validate_category_weights([60, 30])
    with pytest.raises(BusinessRuleError):
        validate_category_weights([])


def test_create_draft(draft):
    assert draft.status == Status.DRAFT.value
    assert draft.start_date == datetime(2025, 4, 1)
    assert draft.end_date == datetime(2025, 6, 30, 23, 59, 59)


def test_create_draft_validation(service, strategy, draft):
    with pytest.raises(BusinessRuleError):
        service.create_draft("Zero", 2025, ReviewPeriodRange.QUARTERLY, 3, 0, strategy.id)
    with pytest.raises(BusinessRuleError):
        service.create_draft("Inverted", 2025, ReviewPeriodRange.QUARTERLY, 3, 100, strategy.id,
                             min_objectives=5, max_objectives=2)
    with pytest.raises(BusinessRuleError):
        service.create_draft("Q2 again", 2025, ReviewPeriodRange.QUARTERLY, 2, 100, strategy.id)
    with pytest.raises(BusinessRuleError):
        service.create_draft("q2 2025", 2025, ReviewPeriodRange.QUARTERLY, 3, 100, strategy.id)
    with pytest.raises(NotFoundError):
        service.create_draft("Q3 2025", 2025, ReviewPeriodRange.QUARTERLY, 3, 100, "missing")


def test_create_draft_requires_approved_strategy(db_session, service):
    from pms_core.models import Strategy
    db_session.add(Strategy(id="STR-D", name="Draft strategy", status=Status.DRAFT.value, is_approved=False))
    db_session.commit()
    with pytest.raises(BusinessRuleError):
        service.create_draft("Q3 2025", 2025, ReviewPeriodRange.QUARTERLY, 3, 100, "STR-D")


def test_add_category_definition_derives_max_points(service, draft, categories):
    definition = service.add_category_definition(draft.id, "CAT-VAL", 0, weight=40, max_no_objectives=3)
    assert definition.max_points == pytest.approx(40.0)
    assert definition.status == Status.DRAFT.value


def test_add_category_definition_validation(service, draft, categories):
    with pytest.raises(BusinessRuleError):
        service.add_category_definition(draft.id, "CAT-VAL", 0, weight=0)
    with pytest.raises(BusinessRuleError):
        service.add_category_definition(draft.id, "CAT-VAL", 0, weight=120)
    with pytest.raises(BusinessRuleError):
        service.add_category_definition(draft.id, "CAT-VAL", 0, weight=50, max_no_objectives=7)
    service.add_category_definition(draft.id, "CAT-VAL", 0, weight=50)
    with pytest.raises(BusinessRuleError):
        service.add_category_definition(draft.id, "CAT-VAL", 0, weight=50)
    with pytest.raises(NotFoundError):
        service.add_category_definition(draft.id, "CAT-NONE", 0, weight=50)


def test_approval_cascades_to_category_definitions(db_session, service, draft, categories):
    service.add_category_definition(draft.id, "CAT-VAL", 0, weight=60)
    service.add_category_definition(draft.id, "CAT-LEAD", 0, weight=40)
    service.submit(draft.id, "hr-1")

    period = service.approve(draft.id, "ceo-1")

    assert period.status == Status.APPROVED_AND_ACTIVE.value
    assert period.approved_by == "ceo-1"
    definitions = db_session.query(CategoryDefinition).filter_by(review_period_id=draft.id).all()
    assert {d.status for d in definitions} == {Status.APPROVED_AND_ACTIVE.value}
    assert all(d.approved_by == "ceo-1" for d in definitions)


def test_approval_requires_a_category_definition(service, draft):
    service.submit(draft.id, "hr-1")
    with pytest.raises(BusinessRuleError):
        service.approve(draft.id, "ceo-1")
    assert service.get_period(draft.id).status == Status.PENDING_APPROVAL.value


def test_only_one_active_period_per_year(service, draft, period, categories):
    # ``period`` (Q1 2025) is already ApprovedAndActive
    service.add_category_definition(draft.id, "CAT-VAL", 0, weight=100)
    service.submit(draft.id, "hr-1")
    with pytest.raises(BusinessRuleError):
        service.approve(draft.id, "ceo-1")

    service.close(period.id, "hr-1")
    service.approve(draft.id, "ceo-1")
    assert service.get_period(draft.id).status == Status.APPROVED_AND_ACTIVE.value


def test_reject_and_resubmit(service, draft):
    service.submit(draft.id, "hr-1")
    with pytest.raises(MissingReasonError):
        service.reject(draft.id, "ceo-1", "")
    service.reject(draft.id, "ceo-1", "Wrong quarter")
    assert service.get_period(draft.id).is_rejected is True

    service.resubmit(draft.id, "hr-1")
    period = service.get_period(draft.id)
    assert period.status == Status.PENDING_APPROVAL.value
    assert period.is_rejected is False


def test_return_period(service, draft):
    service.submit(draft.id, "hr-1")
    service.return_period(draft.id, "ceo-1", "Fix the short name")
    assert service.get_period(draft.id).status == Status.RETURNED.value


def test_cancel_and_invalid_moves(service, draft, period):
    with pytest.raises(InvalidTransitionError):
        service.close(draft.id, "hr-1")
    service.cancel(period.id, "hr-1")
    assert service.get_period(period.id).status == Status.CANCELLED.value
    with pytest.raises(InvalidTransitionError):
        service.approve(period.id, "ceo-1")


def test_unknown_period(service):
    with pytest.raises(NotFoundError):
        service.submit("RP-NONE", "hr-1")
