import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from pms_core.core.config import settings
from pms_core.models.setting import GlobalSetting
from pms_core.services.interfaces import SettingsLookup
from pms_core.services.sla import SLAThresholds

logger = logging.getLogger(__name__)

REQUEST_SLA_KEY = "REQUEST_SLA_HOURS"
PMS360_SLA_KEY = "PMS360_SLA_HOURS"


class GlobalSettingService:
    """Reads integer settings from the ``global_settings`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_int_value(self, key: str) -> Optional[int]:
        row = self.db.query(GlobalSetting).filter(GlobalSetting.key == key).first()
        if row is None or row.value is None:
            return None
        try:
            return int(row.value)
        except ValueError:
            logger.warning(f"Global setting {key} is not an integer: {row.value!r}")
            return None


class StaticSettings:
    """In-process settings, mostly for wiring without a database."""

    def __init__(self, values: Optional[Dict[str, int]] = None):
        self.values = dict(values or {})

    def get_int_value(self, key: str) -> Optional[int]:
        return self.values.get(key)


def resolve_sla_thresholds(lookup: SettingsLookup) -> SLAThresholds:
    standard = lookup.get_int_value(REQUEST_SLA_KEY)
    three_sixty = lookup.get_int_value(PMS360_SLA_KEY)
    return SLAThresholds(
        standard_hours=standard if standard is not None else settings.sla.request_sla_hours,
        three_sixty_hours=three_sixty if three_sixty is not None else settings.sla.pms360_sla_hours,
    )
