from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pms_core.database import Base
from pms_core.models.workflow import WorkflowMixin, HrdWorkflowMixin


class PlannedObjective(WorkflowMixin, Base):
    """An individual staff objective planned for a review period and approved by the line manager."""
    __tablename__ = "planned_objectives"

    id = Column(String, primary_key=True, index=True)
    staff_id = Column(String, index=True, nullable=False)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=False, index=True)
    objective_category_id = Column(String, ForeignKey("objective_categories.id"), nullable=True)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    review_period = relationship("ReviewPeriod")


class Project(HrdWorkflowMixin, Base):
    """Projects need both line-manager and HRD sign-off."""
    __tablename__ = "projects"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    manager_id = Column(String, index=True)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
