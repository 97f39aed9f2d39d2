from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} '{entity_id}' not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )


class InvalidTransitionError(AppException):
    """Requested workflow move is not in the engine's rule table."""
    def __init__(self, from_status: Any, to_status: Any, reason: str = "no matching transition rule", entity_id: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        self.entity_id = entity_id
        msg = f"cannot transition from {_label(from_status)} to {_label(to_status)}"
        if entity_id:
            msg += f" (entity: {entity_id})"
        if reason:
            msg += f": {reason}"
        super().__init__(
            message=msg,
            status_code=409,
            error_code="INVALID_TRANSITION",
            details={"from": _label(from_status), "to": _label(to_status), "reason": reason}
        )


class MissingReasonError(AppException):
    def __init__(self, action: str = "rejection"):
        super().__init__(
            message=f"A reason is required for {action}",
            status_code=422,
            error_code="REASON_REQUIRED"
        )


class BusinessRuleError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="BUSINESS_RULE_VIOLATION",
            details=details
        )


class WorkflowHookError(AppException):
    """A before/after transition hook raised. The original error is chained as __cause__."""
    def __init__(self, phase: str, error: Exception):
        self.phase = phase
        self.error = error
        super().__init__(
            message=f"{phase}-hook failed: {error}",
            status_code=500,
            error_code="WORKFLOW_HOOK_FAILED",
            details={"phase": phase}
        )


class OrgLookupUnavailableError(AppException):
    def __init__(self, message: str = "Organisation lookup is unavailable"):
        super().__init__(
            message=message,
            status_code=503,
            error_code="ORG_LOOKUP_UNAVAILABLE"
        )


def _label(status: Any) -> str:
    return getattr(status, "value", str(status))
