from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pms_core.database import Base
from pms_core.models.workflow import WorkflowMixin


class CompetencyGapClosure(WorkflowMixin, Base):
    __tablename__ = "competency_gap_closures"

    id = Column(String, primary_key=True, index=True)
    staff_id = Column(String, index=True, nullable=False)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=False, index=True)
    objective_category_id = Column(String, ForeignKey("objective_categories.id"), nullable=False)
    final_score = Column(Float, default=0.0)  # percentage of the gap closed, 0-100
    created_at = Column(DateTime, server_default=func.now())

    objective_category = relationship("ObjectiveCategory")
