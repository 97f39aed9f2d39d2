import bisect
import math
from typing import Optional, Sequence

from pms_core.core.config import settings
from pms_core.models.enums import PerformanceGrade

_GRADES = list(PerformanceGrade)


class GradeBander:
    """
    Maps a percentage score to a performance grade.

    ``cut_points`` are the lower bounds of every grade above Probation, so
    the defaults 30/50/66/80/90 give [0,30) Probation, [30,50) Developing,
    [50,66) Progressive, [66,80) Competent, [80,90) Accomplished and
    [90,100] Exemplary. A cut point belongs to the band it opens.
    """

    def __init__(self, cut_points: Optional[Sequence[float]] = None):
        points = list(settings.grade_cut_points if cut_points is None else cut_points)
        if len(points) != len(_GRADES) - 1:
            raise ValueError(f"expected {len(_GRADES) - 1} cut points, got {len(points)}")
        if any(b <= a for a, b in zip(points, points[1:])):
            raise ValueError("cut points must be strictly increasing")
        if points[0] <= 0 or points[-1] > 100:
            raise ValueError("cut points must lie within (0, 100]")
        self.cut_points = tuple(points)

    def grade(self, percentage: float) -> PerformanceGrade:
        if percentage is None or math.isnan(percentage):
            raise ValueError("percentage must be a number")
        clamped = min(max(percentage, 0.0), 100.0)
        return _GRADES[bisect.bisect_right(self.cut_points, clamped)]

    __call__ = grade
