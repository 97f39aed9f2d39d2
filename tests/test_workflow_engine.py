import pytest
from itertools import product

from pms_core.core.exceptions import BusinessRuleError, InvalidTransitionError, WorkflowHookError
from pms_core.models.enums import INITIAL_STATUS, TERMINAL_STATUSES, Operation, Status
from pms_core.services.workflow_engine import (
    BASE_RULES,
    HRD_RULES,
    REVIEW_PERIOD_RULES,
    base_workflow_engine,
    hrd_workflow_engine,
    review_period_workflow_engine,
)


def test_base_happy_path_transitions_are_valid():
    engine = base_workflow_engine()
    engine.validate_transition(Status.DRAFT, Status.PENDING_APPROVAL)
    engine.validate_transition(Status.PENDING_APPROVAL, Status.APPROVED_AND_ACTIVE)
    engine.validate_transition(Status.APPROVED_AND_ACTIVE, Status.CLOSED)
    engine.validate_transition(Status.ACTIVE, Status.COMPLETED)


def test_base_rejects_skipping_approval():
    engine = base_workflow_engine()
    with pytest.raises(InvalidTransitionError) as exc:
        engine.validate_transition(Status.DRAFT, Status.APPROVED_AND_ACTIVE, entity_id="OBJ-1")
    assert exc.value.from_status == Status.DRAFT
    assert exc.value.to_status == Status.APPROVED_AND_ACTIVE
    assert exc.value.entity_id == "OBJ-1"
    assert exc.value.status_code == 409


def test_hrd_inserts_extra_hop():
    engine = hrd_workflow_engine()
    assert engine.resolve_target(Status.PENDING_APPROVAL, Operation.APPROVE) == Status.PENDING_HRD_APPROVAL
    assert engine.resolve_target(Status.PENDING_HRD_APPROVAL, Operation.APPROVE) == Status.APPROVED_AND_ACTIVE
    assert engine.can_transition(Status.PENDING_HRD_APPROVAL, Status.REJECTED)
    assert not engine.can_transition(Status.PENDING_APPROVAL, Status.APPROVED_AND_ACTIVE)


def test_review_period_allows_resubmit_from_rejected_and_cancel():
    engine = review_period_workflow_engine()
    assert engine.resolve_target(Status.REJECTED, Operation.RESUBMIT) == Status.PENDING_APPROVAL
    assert engine.can_transition(Status.APPROVED_AND_ACTIVE, Status.CANCELLED)
    assert engine.can_transition(Status.ACTIVE, Status.CANCELLED)
    assert not base_workflow_engine().can_transition(Status.REJECTED, Status.PENDING_APPROVAL)


def test_resolve_target_unknown_operation():
    with pytest.raises(InvalidTransitionError):
        base_workflow_engine().resolve_target(Status.CLOSED, Operation.APPROVE)


def test_get_valid_transitions_in_table_order():
    rules = base_workflow_engine().get_valid_transitions(Status.PENDING_APPROVAL)
    assert [r.operation for r in rules] == [Operation.APPROVE, Operation.REJECT, Operation.RETURN]


@pytest.mark.parametrize("rules,factory", [
    (BASE_RULES, base_workflow_engine),
    (HRD_RULES, hrd_workflow_engine),
    (REVIEW_PERIOD_RULES, review_period_workflow_engine),
])
def test_execute_rejects_every_pair_outside_the_table(rules, factory):
    engine = factory()
    allowed = {(r.from_status, r.to_status) for r in rules}
    applied = []
    for from_status, to_status in product(Status, Status):
        if (from_status, to_status) in allowed:
            continue
        with pytest.raises(InvalidTransitionError):
            engine.execute("E-1", from_status, to_status, "actor", apply=lambda: applied.append(1))
    assert applied == []


def test_execute_runs_steps_in_order():
    engine = base_workflow_engine()
    calls = []
    engine.set_before_hook(lambda *args: calls.append(("before",) + args))
    engine.set_after_hook(lambda *args: calls.append(("after",) + args))

    engine.execute("E-1", Status.DRAFT, Status.PENDING_APPROVAL, "u1", apply=lambda: calls.append(("apply",)))

    assert [c[0] for c in calls] == ["before", "apply", "after"]
    assert calls[0][1:] == ("E-1", Status.DRAFT, Status.PENDING_APPROVAL, "u1")


def test_failing_before_hook_aborts_before_apply():
    engine = base_workflow_engine()
    applied = []

    def boom(*args):
        raise RuntimeError("db down")

    engine.set_before_hook(boom)
    with pytest.raises(WorkflowHookError) as exc:
        engine.execute("E-1", Status.DRAFT, Status.PENDING_APPROVAL, "u1", apply=lambda: applied.append(1))
    assert exc.value.phase == "before"
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert applied == []


def test_failing_after_hook_is_reported_but_apply_already_ran():
    engine = base_workflow_engine()
    applied = []

    def boom(*args):
        raise RuntimeError("mail relay down")

    engine.set_after_hook(boom)
    with pytest.raises(WorkflowHookError) as exc:
        engine.execute("E-1", Status.DRAFT, Status.PENDING_APPROVAL, "u1", apply=lambda: applied.append(1))
    assert exc.value.phase == "after"
    assert applied == [1]


def test_domain_errors_from_hooks_pass_through():
    engine = base_workflow_engine()

    def veto(*args):
        raise BusinessRuleError("not today")

    engine.set_before_hook(veto)
    with pytest.raises(BusinessRuleError):
        engine.execute("E-1", Status.DRAFT, Status.PENDING_APPROVAL, "u1")


def test_execute_logs_transition(caplog):
    engine = base_workflow_engine()
    with caplog.at_level("INFO", logger="pms_core.services.workflow_engine"):
        engine.execute("E-9", Status.DRAFT, Status.PENDING_APPROVAL, "u1")
    record = next(r for r in caplog.records if r.getMessage() == "workflow transition executed")
    assert record.entity_id == "E-9"
    assert record.actor_id == "u1"


def test_terminal_statuses_are_dead_ends_except_deactivated():
    for factory in (base_workflow_engine, hrd_workflow_engine, review_period_workflow_engine):
        engine = factory()
        for status in TERMINAL_STATUSES:
            operations = [r.operation for r in engine.get_valid_transitions(status)]
            if status == Status.DEACTIVATED and factory is not review_period_workflow_engine:
                assert operations == [Operation.REACTIVATE]
            else:
                assert operations == []
        assert engine.get_valid_transitions(INITIAL_STATUS)
