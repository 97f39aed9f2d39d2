from sqlalchemy import Column, String, Boolean, DateTime, Text
from pms_core.models.enums import INITIAL_STATUS


class WorkflowMixin:
    """Approval columns shared by every reviewable record.

    Only the functions in ``services.workflow_mutators`` write these fields.
    """
    status = Column(String, default=INITIAL_STATUS.value, index=True)
    is_approved = Column(Boolean, default=False)
    approved_by = Column(String, nullable=True)
    date_approved = Column(DateTime, nullable=True)
    is_rejected = Column(Boolean, default=False)
    rejected_by = Column(String, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    date_rejected = Column(DateTime, nullable=True)


class HrdWorkflowMixin(WorkflowMixin):
    """Second, HRD-level approval slot. Meaningful only after the line-manager approval."""
    hrd_is_approved = Column(Boolean, default=False)
    hrd_approved_by = Column(String, nullable=True)
    hrd_date_approved = Column(DateTime, nullable=True)
    hrd_is_rejected = Column(Boolean, default=False)
    hrd_rejected_by = Column(String, nullable=True)
    hrd_rejection_reason = Column(Text, nullable=True)
    hrd_date_rejected = Column(DateTime, nullable=True)
