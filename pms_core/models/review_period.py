from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pms_core.database import Base
from pms_core.models.enums import ReviewPeriodRange
from pms_core.models.workflow import WorkflowMixin


class Strategy(WorkflowMixin, Base):
    __tablename__ = "strategies"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ReviewPeriod(WorkflowMixin, Base):
    __tablename__ = "review_periods"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    short_name = Column(String, nullable=True)
    year = Column(Integer, index=True, nullable=False)
    range = Column(String, default=ReviewPeriodRange.QUARTERLY.value)
    range_value = Column(Integer, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    max_points = Column(Float, nullable=False)
    min_objectives = Column(Integer, default=0)
    max_objectives = Column(Integer, default=0)
    strategy_id = Column(String, ForeignKey("strategies.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    strategy = relationship("Strategy")
    category_definitions = relationship("CategoryDefinition", back_populates="review_period")

    @property
    def display_short_name(self) -> str:
        return self.short_name or self.name


class ObjectiveCategory(Base):
    __tablename__ = "objective_categories"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)

    competencies = relationship("PmsCompetency", back_populates="category")


class PmsCompetency(Base):
    """Behavioural competency rated in 360 reviews, mapped to one objective category."""
    __tablename__ = "pms_competencies"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    objective_category_id = Column(String, ForeignKey("objective_categories.id"), nullable=True, index=True)

    category = relationship("ObjectiveCategory", back_populates="competencies")


class CategoryDefinition(WorkflowMixin, Base):
    __tablename__ = "category_definitions"
    __table_args__ = (
        UniqueConstraint("review_period_id", "objective_category_id", "grade_group_id", name="uq_category_definition"),
    )

    id = Column(String, primary_key=True, index=True)
    review_period_id = Column(String, ForeignKey("review_periods.id"), nullable=False, index=True)
    objective_category_id = Column(String, ForeignKey("objective_categories.id"), nullable=False)
    grade_group_id = Column(Integer, nullable=False, index=True)
    weight = Column(Float, nullable=False)  # percentage of the period's max points
    max_points = Column(Float, nullable=False)
    max_no_objectives = Column(Integer, default=0)

    review_period = relationship("ReviewPeriod", back_populates="category_definitions")
    category = relationship("ObjectiveCategory")
