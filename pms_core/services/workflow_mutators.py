"""
Stamp approval, rejection and return metadata onto a workflow record.

Each function mutates only the record it is given and never persists it.
They assume the engine has already validated the transition.
"""
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from pms_core.core.clock import utcnow
from pms_core.core.exceptions import InvalidTransitionError, MissingReasonError
from pms_core.models.enums import Status


@runtime_checkable
class WorkflowRecord(Protocol):
    id: str
    status: str
    is_approved: bool
    approved_by: Optional[str]
    date_approved: Optional[datetime]
    is_rejected: bool
    rejected_by: Optional[str]
    rejection_reason: Optional[str]
    date_rejected: Optional[datetime]


@runtime_checkable
class HrdWorkflowRecord(WorkflowRecord, Protocol):
    hrd_is_approved: bool
    hrd_approved_by: Optional[str]
    hrd_date_approved: Optional[datetime]
    hrd_is_rejected: bool
    hrd_rejected_by: Optional[str]
    hrd_rejection_reason: Optional[str]
    hrd_date_rejected: Optional[datetime]


def _require_reason(reason: Optional[str], action: str) -> str:
    if reason is None or not reason.strip():
        raise MissingReasonError(action)
    return reason


def apply_approval(record: WorkflowRecord, approver_id: str, status: Status = Status.APPROVED_AND_ACTIVE):
    """Mark approved and clear any prior rejection.

    ``status`` is PendingHRDApproval when the line-manager approval of a
    two-level workflow escalates to HRD.
    """
    record.is_approved = True
    record.approved_by = approver_id
    record.date_approved = utcnow()
    record.is_rejected = False
    record.rejected_by = None
    record.rejection_reason = None
    record.date_rejected = None
    record.status = status.value


def apply_rejection(record: WorkflowRecord, rejected_by: str, reason: str):
    reason = _require_reason(reason, "rejection")
    record.is_rejected = True
    record.rejected_by = rejected_by
    record.rejection_reason = reason
    record.date_rejected = utcnow()
    record.is_approved = False
    record.status = Status.REJECTED.value


def apply_return(record: WorkflowRecord, returned_by: str, reason: str):
    """Send back for revision. The record stays editable and can be re-submitted as is."""
    reason = _require_reason(reason, "return")
    record.is_rejected = False
    record.is_approved = False
    record.rejection_reason = reason
    record.status = Status.RETURNED.value


def apply_hrd_approval(record: HrdWorkflowRecord, approver_id: str):
    if not record.is_approved:
        raise InvalidTransitionError(
            Status(record.status),
            Status.APPROVED_AND_ACTIVE,
            reason="line-manager approval is required before HRD approval",
            entity_id=record.id,
        )
    record.hrd_is_approved = True
    record.hrd_approved_by = approver_id
    record.hrd_date_approved = utcnow()
    record.hrd_is_rejected = False
    record.hrd_rejected_by = None
    record.hrd_rejection_reason = None
    record.hrd_date_rejected = None
    record.status = Status.APPROVED_AND_ACTIVE.value


def apply_hrd_rejection(record: HrdWorkflowRecord, rejected_by: str, reason: str):
    reason = _require_reason(reason, "rejection")
    record.hrd_is_rejected = True
    record.hrd_rejected_by = rejected_by
    record.hrd_rejection_reason = reason
    record.hrd_date_rejected = utcnow()
    record.hrd_is_approved = False
    record.status = Status.REJECTED.value


def reset_workflow(record: WorkflowRecord):
    """Clear approval and rejection fields, e.g. when re-drafting."""
    record.is_approved = False
    record.approved_by = None
    record.date_approved = None
    record.is_rejected = False
    record.rejected_by = None
    record.rejection_reason = None
    record.date_rejected = None
    if hasattr(record, "hrd_is_approved"):
        record.hrd_is_approved = False
        record.hrd_approved_by = None
        record.hrd_date_approved = None
        record.hrd_is_rejected = False
        record.hrd_rejected_by = None
        record.hrd_rejection_reason = None
        record.hrd_date_rejected = None
