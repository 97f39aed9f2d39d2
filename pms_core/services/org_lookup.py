from typing import Dict, List, Optional

from pms_core.core.exceptions import OrgLookupUnavailableError


class StaticOrgLookup:
    """Org directory held in memory, keyed by staff id."""

    def __init__(
        self,
        subordinates: Optional[Dict[str, List[str]]] = None,
        grade_groups: Optional[Dict[str, int]] = None,
        names: Optional[Dict[str, str]] = None,
    ):
        self.subordinates = subordinates or {}
        self.grade_groups = grade_groups or {}
        self.names = names or {}

    def get_subordinates(self, staff_id: str) -> List[str]:
        return list(self.subordinates.get(staff_id, []))

    def get_staff_grade_group(self, staff_id: str) -> Optional[int]:
        return self.grade_groups.get(staff_id)

    def get_staff_name(self, staff_id: str) -> Optional[str]:
        return self.names.get(staff_id)


class NullOrgLookup:
    """Stand-in until the ERP directory is wired: nothing resolves."""

    def get_subordinates(self, staff_id: str) -> List[str]:
        raise OrgLookupUnavailableError()

    def get_staff_grade_group(self, staff_id: str) -> Optional[int]:
        return None

    def get_staff_name(self, staff_id: str) -> Optional[str]:
        return None
