from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from pms_core.database import Base
from pms_core.models.workflow import WorkflowMixin


class WorkProduct(WorkflowMixin, Base):
    __tablename__ = "work_products"

    id = Column(String, primary_key=True, index=True)
    staff_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    project_id = Column(String, ForeignKey("projects.id"), nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    completion_date = Column(DateTime, nullable=True)
    final_score = Column(Float, default=0.0)  # already capped by evaluators
    created_at = Column(DateTime(timezone=True), server_default=func.now())
