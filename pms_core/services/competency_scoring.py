"""
Living-the-values (360 competency) scoring.

With category definitions for the staff member's grade group, each
category contributes ``mean(ratings mapped to it) * max_points / 100``.
Without any, the feedbacks' own ``final_score`` values are summed as is.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from pms_core.schemas.score_card import CompetencyRatingDetail


@dataclass
class CompetencyScore:
    ltv_points: float = 0.0
    category_weighted: bool = False
    details: List[CompetencyRatingDetail] = field(default_factory=list)
    category_points: Dict[str, float] = field(default_factory=dict)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _ratings(feedbacks: Iterable):
    for feedback in feedbacks:
        for reviewer in feedback.reviewers:
            for rating in reviewer.ratings:
                yield rating


class CategoryWeightedScorer:

    def score(self, feedbacks: Sequence, category_definitions: Sequence) -> CompetencyScore:
        feedbacks = list(feedbacks)
        ratings = list(_ratings(feedbacks))
        result = CompetencyScore(details=self.competency_details(ratings))

        if not category_definitions:
            result.ltv_points = float(sum(f.final_score or 0.0 for f in feedbacks))
            return result

        result.category_weighted = True
        by_category: Dict[str, List[float]] = {}
        for rating in ratings:
            competency = rating.pms_competency
            if competency is None or competency.objective_category_id is None:
                continue
            by_category.setdefault(competency.objective_category_id, []).append(rating.rating)

        total = 0.0
        for definition in category_definitions:
            scores = by_category.get(definition.objective_category_id)
            points = definition.max_points * (_mean(scores) / 100) if scores else 0.0
            total += points
            name = definition.category.name if definition.category is not None else definition.objective_category_id
            result.category_points[name] = result.category_points.get(name, 0.0) + points
        result.ltv_points = total
        return result

    def competency_details(self, ratings: Sequence) -> List[CompetencyRatingDetail]:
        """Mean rating per competency across all reviewers, ordered by competency id."""
        grouped: Dict[str, List[float]] = {}
        names: Dict[str, str] = {}
        for rating in ratings:
            grouped.setdefault(rating.pms_competency_id, []).append(rating.rating)
            if rating.pms_competency is not None:
                names[rating.pms_competency_id] = rating.pms_competency.name
        return [
            CompetencyRatingDetail(
                pms_competency_id=competency_id,
                pms_competency=names.get(competency_id),
                rating_score=_mean(scores),
            )
            for competency_id, scores in sorted(grouped.items())
        ]
