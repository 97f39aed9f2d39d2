from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from pms_core.database import Base


class WorkflowNotification(Base):
    __tablename__ = "workflow_notifications"

    id = Column(Integer, primary_key=True, index=True)
    entity_id = Column(String, index=True, nullable=False)
    from_status = Column(String, nullable=False)
    to_status = Column(String, nullable=False)
    actor_id = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
