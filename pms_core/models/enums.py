import enum


class Status(str, enum.Enum):
    DRAFT = "Draft"
    PENDING_APPROVAL = "PendingApproval"
    PENDING_HRD_APPROVAL = "PendingHRDApproval"
    APPROVED_AND_ACTIVE = "ApprovedAndActive"
    RETURNED = "Returned"
    REJECTED = "Rejected"
    AWAITING_EVALUATION = "AwaitingEvaluation"
    ACTIVE = "Active"
    PAUSED = "Paused"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"
    DEACTIVATED = "Deactivated"
    COMPLETED = "Completed"
    BREACHED = "Breached"
    PENDING_ACCEPTANCE = "PendingAcceptance"


class Operation(str, enum.Enum):
    ADD = "Add"
    COMMIT_DRAFT = "CommitDraft"
    APPROVE = "Approve"
    REJECT = "Reject"
    RETURN = "Return"
    RESUBMIT = "ReSubmit"
    CLOSE = "Close"
    CANCEL = "Cancel"
    REACTIVATE = "Reactivate"
    COMPLETE = "Complete"
    DELETE = "Delete"
    PAUSE = "Pause"


INITIAL_STATUS = Status.DRAFT
TERMINAL_STATUSES = frozenset({Status.CANCELLED, Status.CLOSED, Status.DEACTIVATED})

# Records in these statuses never contribute points
EXCLUDED_STATUSES = (
    Status.CANCELLED,
    Status.PAUSED,
    Status.REJECTED,
    Status.RETURNED,
    Status.DRAFT,
    Status.PENDING_ACCEPTANCE,
)

# "Finished" statuses considered by the completed-overdue SLA class
SLA_FINISHED_STATUSES = (Status.CLOSED, Status.COMPLETED, Status.BREACHED)

WORK_PRODUCT_COMPLETED_STATUSES = (Status.COMPLETED, Status.AWAITING_EVALUATION, Status.CLOSED)

ACTIVE_PERIOD_STATUSES = (Status.ACTIVE, Status.APPROVED_AND_ACTIVE)

SCORED_PERIOD_STATUSES = (Status.ACTIVE, Status.APPROVED_AND_ACTIVE, Status.CLOSED, Status.COMPLETED)


class FeedbackRequestType(str, enum.Enum):
    WORK_PRODUCT_EVALUATION = "WorkProductEvaluation"
    OBJECTIVE_PLANNING = "ObjectivePlanning"
    PROJECT_PLANNING = "ProjectPlanning"
    WORK_PRODUCT_FEEDBACK = "WorkProductFeedback"
    THREE_SIXTY_REVIEW = "360ReviewFeedback"
    WORK_PRODUCT_PLANNING = "WorkProductPlanning"
    COMPETENCY_REVIEW = "CompetencyReview"
    REVIEW_PERIOD = "ReviewPeriod"


class ReviewPeriodRange(str, enum.Enum):
    QUARTERLY = "Quarterly"
    BI_ANNUAL = "BiAnnual"
    ANNUAL = "Annual"


class OrganogramLevel(str, enum.Enum):
    BANKWIDE = "Bankwide"
    DEPARTMENT = "Department"
    DIVISION = "Division"
    OFFICE = "Office"


class PerformanceGrade(str, enum.Enum):
    PROBATION = "Probation"
    DEVELOPING = "Developing"
    PROGRESSIVE = "Progressive"
    COMPETENT = "Competent"
    ACCOMPLISHED = "Accomplished"
    EXEMPLARY = "Exemplary"

    @property
    def rank(self) -> int:
        return _GRADE_ORDER.index(self)


_GRADE_ORDER = list(PerformanceGrade)
