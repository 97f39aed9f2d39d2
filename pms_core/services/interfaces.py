"""
Collaborator contracts consumed by the workflow and scoring services.

Concrete implementations: ``record_store.SqlRecordStore``,
``org_lookup.StaticOrgLookup`` / ``org_lookup.NullOrgLookup``,
``settings_lookup.GlobalSettingService`` and
``notification.NotificationService``.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import ContextManager, List, Optional, Protocol, Sequence

from pms_core.models.enums import Status


@dataclass(frozen=True)
class TransitionEvent:
    entity_id: str
    from_status: Status
    to_status: Status
    actor_id: str


class NotificationSink(Protocol):
    def dispatch(self, event: TransitionEvent) -> None: ...


class SettingsLookup(Protocol):
    def get_int_value(self, key: str) -> Optional[int]: ...


class OrgLookup(Protocol):
    def get_subordinates(self, staff_id: str) -> List[str]:
        """Direct reports. Raises OrgLookupUnavailableError when the directory cannot be reached."""
        ...

    def get_staff_grade_group(self, staff_id: str) -> Optional[int]:
        """None when the grade group cannot be resolved."""
        ...

    def get_staff_name(self, staff_id: str) -> Optional[str]: ...


class RecordStore(Protocol):
    def consistent_read(self) -> ContextManager[None]: ...

    def get_review_period(self, period_id: str): ...

    def get_active_review_period_for_staff(self, staff_id: str): ...

    def list_review_periods_for_year(self, year: int, statuses: Sequence[Status]) -> list: ...

    def list_work_products(self, staff_id: str, start: datetime, end: datetime,
                           excluded_statuses: Sequence[Status]) -> list: ...

    def list_feedback_request_logs(self, staff_id: str, start: datetime, end: datetime) -> list: ...

    def list_competency_feedbacks(self, staff_id: str, period_id: str,
                                  excluded_statuses: Sequence[Status]) -> list: ...

    def list_unit_competency_feedbacks(self, staff_ids: Sequence[str], period_id: str,
                                       excluded_statuses: Sequence[Status]) -> list:
        """360 feedbacks of several staff, reviewers loaded."""
        ...

    def list_category_definitions(self, period_id: str, grade_group_id: int) -> list:
        """Definitions for the grade group whose category has at least one mapped PMS competency."""
        ...

    def get_category_definition(self, period_id: str, grade_group_id: int, category_id: str): ...

    def get_gap_closure(self, staff_id: str, period_id: str): ...

    def list_gap_closures(self, staff_ids: Sequence[str], period_id: str) -> list: ...

    def list_staff_with_objectives_approved_by(self, manager_id: str, period_id: str,
                                               statuses: Sequence[Status]) -> List[str]: ...

    def count_pending_reviews_to_treat(self, reviewer_staff_id: str, start: datetime, end: datetime) -> int: ...
