# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    review_period, objective, work_product, feedback,
    competency, setting, notification
)

# Explicit class exports for cleaner imports
from .review_period import Strategy, ReviewPeriod, ObjectiveCategory, PmsCompetency, CategoryDefinition
from .objective import PlannedObjective, Project
from .work_product import WorkProduct
from .feedback import FeedbackRequestLog, CompetencyReviewFeedback, CompetencyReviewer, CompetencyReviewerRating
from .competency import CompetencyGapClosure
from .setting import GlobalSetting
from .notification import WorkflowNotification

__all__ = [
    "Strategy",
    "ReviewPeriod",
    "ObjectiveCategory",
    "PmsCompetency",
    "CategoryDefinition",
    "PlannedObjective",
    "Project",
    "WorkProduct",
    "FeedbackRequestLog",
    "CompetencyReviewFeedback",
    "CompetencyReviewer",
    "CompetencyReviewerRating",
    "CompetencyGapClosure",
    "GlobalSetting",
    "WorkflowNotification",
]
