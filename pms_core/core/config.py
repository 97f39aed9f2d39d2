import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _parse_cut_points(raw: str) -> List[float]:
    return [float(p.strip()) for p in raw.split(",") if p.strip()]


class SLASettings(BaseModel):
    # Fallbacks used when the global settings table has no value
    request_sla_hours: int = Field(default=int(os.getenv("REQUEST_SLA_HOURS", "168")))
    pms360_sla_hours: int = Field(default=int(os.getenv("PMS360_SLA_HOURS", "336")))


class Config(BaseModel):
    app_name: str = "PMS Review Engine"
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./pms.db")

    # SLA
    sla: SLASettings = SLASettings()

    # Scoring
    # Grade-group resolution is stubbed upstream; 0 matches the legacy constant
    default_grade_group_id: int = int(os.getenv("PMS_DEFAULT_GRADE_GROUP_ID", "0"))
    grade_cut_points: List[float] = Field(
        default_factory=lambda: _parse_cut_points(os.getenv("PMS_GRADE_CUT_POINTS", "30,50,66,80,90"))
    )
    under_performance_cutoff: float = float(os.getenv("PMS_UNDER_PERFORMANCE_CUTOFF", "50"))

    version: str = "1.0.0"


settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)


def _config_problems(config: Config) -> List[str]:
    problems = []
    points = config.grade_cut_points
    if len(points) != 5:
        problems.append("PMS_GRADE_CUT_POINTS must list exactly 5 cut points")
    elif any(b <= a for a, b in zip(points, points[1:])) or points[0] <= 0 or points[-1] > 100:
        problems.append("PMS_GRADE_CUT_POINTS must be strictly increasing within (0, 100]")
    if config.sla.request_sla_hours <= 0 or config.sla.pms360_sla_hours <= 0:
        problems.append("SLA defaults must be positive")
    return problems


_problems = _config_problems(settings)
if _problems:
    if settings.environment != "development":
        raise RuntimeError(
            f"FATAL: invalid PMS configuration: {'; '.join(_problems)}. Fix the environment variables."
        )
    _logger.warning("Invalid PMS configuration (development only): %s", "; ".join(_problems))
