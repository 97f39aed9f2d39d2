"""
Workflow state machine.

A ``WorkflowEngine`` holds an immutable table of ``(from, to, operation)``
rules and validates/dispatches transitions against it. It never persists
anything: the caller supplies the mutation as the ``apply`` step of
:meth:`WorkflowEngine.execute` and owns the commit.

Three configurations exist:

- base: single (line-manager) approval, used by most records
- hrd: two-level approval, line manager then HRD
- review period: re-submission from Rejected and cancellation of live periods
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from pms_core.core.exceptions import AppException, InvalidTransitionError, WorkflowHookError
from pms_core.models.enums import Operation, Status

logger = logging.getLogger(__name__)

# (entity_id, from_status, to_status, actor_id); raising aborts (before) or is reported (after)
TransitionHook = Callable[[str, Status, Status, str], None]


@dataclass(frozen=True)
class TransitionRule:
    from_status: Status
    to_status: Status
    operation: Operation


def _rules(*triples: Tuple[Status, Status, Operation]) -> Tuple[TransitionRule, ...]:
    return tuple(TransitionRule(f, t, op) for f, t, op in triples)


_SUBMISSION = (
    (Status.DRAFT, Status.PENDING_APPROVAL, Operation.COMMIT_DRAFT),
    (Status.DRAFT, Status.PENDING_APPROVAL, Operation.ADD),
)

_DEACTIVATION = (
    (Status.APPROVED_AND_ACTIVE, Status.DEACTIVATED, Operation.CANCEL),
    (Status.APPROVED_AND_ACTIVE, Status.DEACTIVATED, Operation.DELETE),
    (Status.DEACTIVATED, Status.APPROVED_AND_ACTIVE, Operation.REACTIVATE),
)

_CLOSURE_AND_COMPLETION = (
    (Status.APPROVED_AND_ACTIVE, Status.CLOSED, Operation.CLOSE),
    (Status.ACTIVE, Status.CLOSED, Operation.CLOSE),
    (Status.ACTIVE, Status.COMPLETED, Operation.COMPLETE),
)

BASE_RULES = _rules(
    *_SUBMISSION,
    (Status.PENDING_APPROVAL, Status.APPROVED_AND_ACTIVE, Operation.APPROVE),
    (Status.PENDING_APPROVAL, Status.REJECTED, Operation.REJECT),
    (Status.PENDING_APPROVAL, Status.RETURNED, Operation.RETURN),
    (Status.RETURNED, Status.PENDING_APPROVAL, Operation.RESUBMIT),
    *_DEACTIVATION,
    *_CLOSURE_AND_COMPLETION,
)

HRD_RULES = _rules(
    *_SUBMISSION,
    # Line-manager approval escalates to HRD
    (Status.PENDING_APPROVAL, Status.PENDING_HRD_APPROVAL, Operation.APPROVE),
    (Status.PENDING_APPROVAL, Status.REJECTED, Operation.REJECT),
    (Status.PENDING_APPROVAL, Status.RETURNED, Operation.RETURN),
    (Status.PENDING_HRD_APPROVAL, Status.APPROVED_AND_ACTIVE, Operation.APPROVE),
    (Status.PENDING_HRD_APPROVAL, Status.REJECTED, Operation.REJECT),
    (Status.RETURNED, Status.PENDING_APPROVAL, Operation.RESUBMIT),
    *_DEACTIVATION,
    *_CLOSURE_AND_COMPLETION,
)

REVIEW_PERIOD_RULES = _rules(
    *_SUBMISSION,
    (Status.PENDING_APPROVAL, Status.APPROVED_AND_ACTIVE, Operation.APPROVE),
    (Status.PENDING_APPROVAL, Status.REJECTED, Operation.REJECT),
    (Status.PENDING_APPROVAL, Status.RETURNED, Operation.RETURN),
    (Status.RETURNED, Status.PENDING_APPROVAL, Operation.RESUBMIT),
    (Status.REJECTED, Status.PENDING_APPROVAL, Operation.RESUBMIT),
    (Status.APPROVED_AND_ACTIVE, Status.CLOSED, Operation.CLOSE),
    (Status.ACTIVE, Status.CLOSED, Operation.CLOSE),
    # An already-active period being formally approved
    (Status.ACTIVE, Status.APPROVED_AND_ACTIVE, Operation.APPROVE),
    (Status.APPROVED_AND_ACTIVE, Status.CANCELLED, Operation.CANCEL),
    (Status.ACTIVE, Status.CANCELLED, Operation.CANCEL),
)


class WorkflowEngine:
    """Finite-state machine validating and dispatching workflow transitions."""

    def __init__(self, name: str, rules: Sequence[TransitionRule]):
        self.name = name
        self._rules = tuple(rules)
        self._on_before: Optional[TransitionHook] = None
        self._on_after: Optional[TransitionHook] = None

    @property
    def rules(self) -> Tuple[TransitionRule, ...]:
        return self._rules

    def set_before_hook(self, hook: Optional[TransitionHook]):
        self._on_before = hook

    def set_after_hook(self, hook: Optional[TransitionHook]):
        self._on_after = hook

    def validate_transition(self, from_status: Status, to_status: Status, entity_id: Optional[str] = None):
        """Raise InvalidTransitionError unless some rule matches (from, to) exactly."""
        for rule in self._rules:
            if rule.from_status == from_status and rule.to_status == to_status:
                return
        raise InvalidTransitionError(from_status, to_status, entity_id=entity_id)

    def can_transition(self, from_status: Status, to_status: Status) -> bool:
        return any(r.from_status == from_status and r.to_status == to_status for r in self._rules)

    def get_valid_transitions(self, from_status: Status) -> List[TransitionRule]:
        """Rules originating at ``from_status``, in table order. Used to build action menus."""
        return [r for r in self._rules if r.from_status == from_status]

    def resolve_target(self, from_status: Status, operation: Operation, entity_id: Optional[str] = None) -> Status:
        for rule in self._rules:
            if rule.from_status == from_status and rule.operation == operation:
                return rule.to_status
        raise InvalidTransitionError(
            from_status,
            None,
            reason=f"operation {operation.value} is not allowed from {from_status.value}",
            entity_id=entity_id,
        )

    def execute(
        self,
        entity_id: str,
        from_status: Status,
        to_status: Status,
        actor_id: str,
        apply: Optional[Callable[[], None]] = None,
    ):
        """
        Validate, run the before-hook, apply the caller's mutation, log,
        then run the after-hook.

        A failing before-hook aborts before anything is applied or logged.
        A failing after-hook is re-raised, but the caller's mutation has
        already happened. Domain errors (AppException) raised by a hook pass
        through unchanged; anything else is wrapped in WorkflowHookError.
        """
        try:
            self.validate_transition(from_status, to_status, entity_id=entity_id)
        except InvalidTransitionError:
            logger.warning(
                "workflow transition denied",
                extra={"engine": self.name, "entity_id": entity_id, "actor_id": actor_id,
                       "from": from_status.value, "to": getattr(to_status, "value", to_status)},
            )
            raise

        if self._on_before is not None:
            try:
                self._on_before(entity_id, from_status, to_status, actor_id)
            except AppException:
                raise
            except Exception as e:
                raise WorkflowHookError("before", e) from e

        if apply is not None:
            apply()

        logger.info(
            "workflow transition executed",
            extra={"engine": self.name, "entity_id": entity_id, "actor_id": actor_id,
                   "from": from_status.value, "to": to_status.value},
        )

        if self._on_after is not None:
            try:
                self._on_after(entity_id, from_status, to_status, actor_id)
            except AppException:
                raise
            except Exception as e:
                raise WorkflowHookError("after", e) from e


def base_workflow_engine() -> WorkflowEngine:
    return WorkflowEngine("base", BASE_RULES)


def hrd_workflow_engine() -> WorkflowEngine:
    return WorkflowEngine("hrd", HRD_RULES)


def review_period_workflow_engine() -> WorkflowEngine:
    return WorkflowEngine("review_period", REVIEW_PERIOD_RULES)
