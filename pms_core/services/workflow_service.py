"""
Workflow orchestration for any record embedding ``WorkflowMixin``.

One ``transition`` entry point replaces per-entity approve/reject handlers:
the engine decides whether the move is legal, the mutators stamp the
record, and this service commits.
"""
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from pms_core.core.exceptions import MissingReasonError
from pms_core.models.enums import Operation, Status
from pms_core.services.base import BaseService
from pms_core.services.interfaces import NotificationSink
from pms_core.services.notification import notification_hook
from pms_core.services.workflow_engine import WorkflowEngine
from pms_core.services import workflow_mutators as mutators

_REASON_REQUIRED = {Operation.REJECT: "rejection", Operation.RETURN: "return"}
_RESUBMISSIONS = {Operation.ADD, Operation.COMMIT_DRAFT, Operation.RESUBMIT}


class WorkflowService(BaseService):

    def __init__(self, db: Session, engine: WorkflowEngine, notifier: Optional[NotificationSink] = None):
        super().__init__(db)
        self.engine = engine
        if notifier is not None:
            self.engine.set_after_hook(notification_hook(notifier))

    def available_operations(self, record) -> List[Operation]:
        current = Status(record.status)
        ops = []
        for rule in self.engine.get_valid_transitions(current):
            if rule.operation not in ops:
                ops.append(rule.operation)
        return ops

    def transition(self, record, operation: Operation, actor_id: str, reason: Optional[str] = None,
                   cascade: Optional[Callable[[Status], None]] = None):
        """
        Move ``record`` by ``operation`` and commit.

        ``cascade`` receives the target status and runs after the record is
        stamped, inside the same commit, e.g. to approve child rows.

        Raises InvalidTransitionError (record untouched) when the operation is
        not allowed from the current status, and MissingReasonError when a
        rejection or return has no reason.
        """
        current = Status(record.status)
        target = self.engine.resolve_target(current, operation, entity_id=record.id)

        if operation in _REASON_REQUIRED and (reason is None or not reason.strip()):
            raise MissingReasonError(_REASON_REQUIRED[operation])

        def _apply():
            self._mutate(record, operation, current, target, actor_id, reason)
            if cascade is not None:
                cascade(target)
            self.commit()

        self.engine.execute(record.id, current, target, actor_id, apply=_apply)
        # Anything the after-hook queued on the session
        self.commit()
        return record

    def _mutate(self, record, operation: Operation, current: Status, target: Status,
                actor_id: str, reason: Optional[str]):
        if operation == Operation.APPROVE:
            if current == Status.PENDING_HRD_APPROVAL:
                mutators.apply_hrd_approval(record, actor_id)
            else:
                mutators.apply_approval(record, actor_id, status=target)
        elif operation == Operation.REJECT:
            if current == Status.PENDING_HRD_APPROVAL:
                mutators.apply_hrd_rejection(record, actor_id, reason)
            else:
                mutators.apply_rejection(record, actor_id, reason)
        elif operation == Operation.RETURN:
            mutators.apply_return(record, actor_id, reason)
        elif operation in _RESUBMISSIONS:
            mutators.reset_workflow(record)
            record.status = target.value
        else:
            record.status = target.value
