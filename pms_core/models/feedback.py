from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pms_core.database import Base
from pms_core.models.enums import FeedbackRequestType, Status


class FeedbackRequestLog(Base):
    __tablename__ = "feedback_request_logs"

    id = Column(Integer, primary_key=True, index=True)
    assigned_staff_id = Column(String, index=True, nullable=False)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=True, index=True)
    reference_id = Column(String, nullable=True)  # the record the request is about
    feedback_request_type = Column(String, default=FeedbackRequestType.WORK_PRODUCT_EVALUATION.value)
    has_sla = Column(Boolean, default=True)
    time_initiated = Column(DateTime, nullable=False, index=True)
    time_completed = Column(DateTime, nullable=True)
    status = Column(String, default=Status.ACTIVE.value)

    # SLA breach is derived by services.sla, never stored


class CompetencyReviewFeedback(Base):
    """One 360 feedback per (staff, review period)."""
    __tablename__ = "competency_review_feedbacks"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(String, index=True, nullable=False)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=False, index=True)
    final_score = Column(Float, default=0.0)
    status = Column(String, default=Status.ACTIVE.value)
    created_at = Column(DateTime, server_default=func.now())

    reviewers = relationship("CompetencyReviewer", back_populates="feedback", cascade="all, delete-orphan")


class CompetencyReviewer(Base):
    __tablename__ = "competency_reviewers"

    id = Column(Integer, primary_key=True, index=True)
    feedback_id = Column(Integer, ForeignKey("competency_review_feedbacks.id", ondelete="CASCADE"), nullable=False)
    review_staff_id = Column(String, index=True, nullable=False)
    status = Column(String, default=Status.ACTIVE.value)
    created_at = Column(DateTime, server_default=func.now())

    feedback = relationship("CompetencyReviewFeedback", back_populates="reviewers")
    ratings = relationship("CompetencyReviewerRating", back_populates="reviewer", cascade="all, delete-orphan")

    @property
    def final_rating(self) -> float:
        if not self.ratings:
            return 0.0
        return sum(r.rating for r in self.ratings) / len(self.ratings)


class CompetencyReviewerRating(Base):
    __tablename__ = "competency_reviewer_ratings"

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(Integer, ForeignKey("competency_reviewers.id", ondelete="CASCADE"), nullable=False)
    pms_competency_id = Column(String, ForeignKey("pms_competencies.id"), nullable=False)
    rating = Column(Float, nullable=False)  # 0-100

    reviewer = relationship("CompetencyReviewer", back_populates="ratings")
    pms_competency = relationship("PmsCompetency")
