from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from pms_core.models.enums import OrganogramLevel, PerformanceGrade


class CompetencyRatingDetail(BaseModel):
    pms_competency_id: str
    pms_competency: Optional[str] = None
    rating_score: float

    model_config = ConfigDict(frozen=True)


class WorkProductStatistics(BaseModel):
    total: int = 0
    completed: int = 0
    completed_on_schedule: int = 0
    behind_schedule: int = 0
    completion_percentage: float = 0.0


class ScoreCard(BaseModel):
    """Derived score for one staff member in one review period. Never persisted."""
    staff_id: str
    staff_name: Optional[str] = None
    review_period_id: str
    review_period: str
    review_period_short_name: str
    year: int
    max_points: float

    work_product_points: float = 0.0
    living_the_values_points: float = 0.0
    gap_closure_points: float = 0.0
    accumulated_points: float = 0.0

    completed_overdue_requests: int = 0
    pending_overdue_requests: int = 0
    deducted_points: float = 0.0
    actual_points: float = 0.0

    # None when the period has no max points
    percentage_score: Optional[float] = None
    grade: Optional[PerformanceGrade] = None
    is_under_performing: bool = False

    work_products: WorkProductStatistics = Field(default_factory=WorkProductStatistics)
    pms_competencies: List[CompetencyRatingDetail] = Field(default_factory=list)
    pms_competency_category: Dict[str, float] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class AnnualScoreCard(BaseModel):
    staff_id: str
    year: int
    score_cards: List[ScoreCard] = Field(default_factory=list)
    skipped_period_ids: List[str] = Field(default_factory=list)
    cancelled: bool = False


class SubordinateScoreCards(BaseModel):
    manager_id: str
    review_period_id: str
    used_fallback: bool = False
    score_cards: List[ScoreCard] = Field(default_factory=list)
    skipped_staff_ids: List[str] = Field(default_factory=list)
    cancelled: bool = False


class UnitPerformanceSummary(BaseModel):
    reference_id: str
    level: OrganogramLevel
    review_period_id: str
    staff_count: int = 0
    max_points: float = 0.0
    total_actual_points: float = 0.0
    percentage_score: Optional[float] = None
    grade: Optional[PerformanceGrade] = None
    work_products: WorkProductStatistics = Field(default_factory=WorkProductStatistics)
    total_gaps: int = 0
    gaps_closed_percentage: float = 0.0
    percentage_work_products_closed: float = 0.0
    percentage_work_products_pending: float = 0.0
    total_360_feedbacks: int = 0
    completed_360_feedbacks_to_treat: int = 0
    pending_360_feedbacks_to_treat: int = 0
    score_cards: List[ScoreCard] = Field(default_factory=list)
    skipped_staff_ids: List[str] = Field(default_factory=list)
    cancelled: bool = False


class RequestStatistics(BaseModel):
    staff_id: str
    review_period_id: str
    completed_requests: int = 0
    pending_requests: int = 0
    completed_overdue_requests: int = 0
    pending_overdue_requests: int = 0
    breached_requests: int = 0
    deducted_points: float = 0.0
    pending_360_feedbacks_to_treat: int = 0


class PerformancePoints(BaseModel):
    staff_id: str
    review_period_id: str
    max_points: float
    accumulated_points: float
    deducted_points: float
    actual_points: float
    percentage_score: Optional[float] = None
    grade: Optional[PerformanceGrade] = None
