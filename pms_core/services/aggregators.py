"""
Roll score cards up into annual, subordinate-roster and unit summaries.

Items run one after another on the caller's session. A failing item is
logged and skipped; the count of returned cards versus requested items is
the only skip signal callers need, though the skipped ids are reported too.
Setting ``cancel`` stops the loop and returns what was computed so far.
"""
import logging
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from pms_core.core.exceptions import AppException, OrgLookupUnavailableError
from pms_core.models.enums import EXCLUDED_STATUSES, SCORED_PERIOD_STATUSES, OrganogramLevel, Status
from pms_core.schemas.score_card import (
    AnnualScoreCard,
    ScoreCard,
    SubordinateScoreCards,
    UnitPerformanceSummary,
    WorkProductStatistics,
)
from pms_core.services.interfaces import OrgLookup, RecordStore
from pms_core.services.score_card import ScoreCardCalculator

logger = logging.getLogger(__name__)

ROSTER_FALLBACK_STATUSES = (Status.ACTIVE, Status.APPROVED_AND_ACTIVE, Status.COMPLETED, Status.CLOSED)
_TREATED = (Status.COMPLETED.value, Status.CLOSED.value)

# Per-item failures that are logged and skipped
_SKIPPABLE = (AppException, SQLAlchemyError)


def _cancelled(cancel: Optional[threading.Event]) -> bool:
    return cancel is not None and cancel.is_set()


class ScoreCardAggregator:

    def __init__(self, calculator: ScoreCardCalculator, store: RecordStore, org_lookup: OrgLookup):
        self.calculator = calculator
        self.store = store
        self.org_lookup = org_lookup

    def _collect(
        self, items: Iterable[Tuple[str, str]], cancel: Optional[threading.Event], kind: str
    ) -> Tuple[List[ScoreCard], List[str], bool]:
        """Score (staff_id, period_id) pairs; return cards, skipped keys and whether cancelled."""
        cards: List[ScoreCard] = []
        skipped: List[str] = []
        for staff_id, period_id in items:
            if _cancelled(cancel):
                logger.info(f"{kind} aggregation cancelled after {len(cards)} score cards")
                return cards, skipped, True
            key = period_id if kind == "annual" else staff_id
            try:
                cards.append(self.calculator.calculate(staff_id, period_id))
            except _SKIPPABLE as e:
                logger.warning(
                    f"Skipping {kind} score card for {key}: {e}",
                    extra={"staff_id": staff_id, "review_period_id": period_id},
                )
                skipped.append(key)
        return cards, skipped, False

    # --- Annual ---

    def annual(self, staff_id: str, year: int, cancel: Optional[threading.Event] = None) -> AnnualScoreCard:
        periods = self.store.list_review_periods_for_year(year, SCORED_PERIOD_STATUSES)
        if not periods:
            logger.info(f"No scored review periods in {year} for {staff_id}")
        cards, skipped, cancelled = self._collect(
            ((staff_id, p.id) for p in periods), cancel, "annual"
        )
        return AnnualScoreCard(
            staff_id=staff_id, year=year, score_cards=cards, skipped_period_ids=skipped, cancelled=cancelled
        )

    # --- Subordinates ---

    def resolve_subordinates(self, manager_id: str, period_id: str) -> Tuple[List[str], bool]:
        """Direct reports from the org lookup, else staff whose objectives this manager approved."""
        try:
            return list(self.org_lookup.get_subordinates(manager_id)), False
        except OrgLookupUnavailableError as e:
            logger.warning(f"Org lookup unavailable for {manager_id}, falling back to approved objectives: {e}")
        staff_ids = self.store.list_staff_with_objectives_approved_by(
            manager_id, period_id, ROSTER_FALLBACK_STATUSES
        )
        return list(staff_ids), True

    def subordinates(
        self, manager_id: str, period_id: str, cancel: Optional[threading.Event] = None
    ) -> SubordinateScoreCards:
        staff_ids, used_fallback = self.resolve_subordinates(manager_id, period_id)
        cards, skipped, cancelled = self._collect(
            ((staff_id, period_id) for staff_id in staff_ids), cancel, "subordinate"
        )
        return SubordinateScoreCards(
            manager_id=manager_id,
            review_period_id=period_id,
            used_fallback=used_fallback,
            score_cards=cards,
            skipped_staff_ids=skipped,
            cancelled=cancelled,
        )

    # --- Organizational units ---

    def summarize_unit(
        self,
        reference_id: str,
        level: OrganogramLevel,
        staff_ids: Sequence[str],
        period_id: str,
        cancel: Optional[threading.Event] = None,
    ) -> UnitPerformanceSummary:
        period = self.store.get_review_period(period_id)
        max_points = period.max_points or 0.0
        cards, skipped, cancelled = self._collect(
            ((staff_id, period_id) for staff_id in staff_ids), cancel, "unit"
        )

        summary = UnitPerformanceSummary(
            reference_id=reference_id,
            level=level,
            review_period_id=period_id,
            staff_count=len(cards),
            max_points=max_points,
            total_actual_points=sum(c.actual_points for c in cards),
            score_cards=cards,
            skipped_staff_ids=skipped,
            cancelled=cancelled,
        )

        ceiling = len(cards) * max_points
        if ceiling > 0:
            summary.percentage_score = 100 * summary.total_actual_points / ceiling
            summary.grade = self.calculator.grade_bander.grade(summary.percentage_score)

        wp = _sum_work_products(c.work_products for c in cards)
        summary.work_products = wp
        if wp.total:
            summary.percentage_work_products_closed = 100.0 * wp.completed / wp.total
            summary.percentage_work_products_pending = 100.0 * (wp.total - wp.completed) / wp.total

        scored_ids = [c.staff_id for c in cards]
        feedbacks = self.store.list_unit_competency_feedbacks(scored_ids, period_id, EXCLUDED_STATUSES)
        summary.total_360_feedbacks = len(feedbacks)
        for feedback in feedbacks:
            for reviewer in feedback.reviewers:
                if reviewer.status in _TREATED:
                    summary.completed_360_feedbacks_to_treat += 1
                elif reviewer.status == Status.ACTIVE.value:
                    summary.pending_360_feedbacks_to_treat += 1

        gaps = self.store.list_gap_closures(scored_ids, period_id)
        summary.total_gaps = len(gaps)
        if gaps:
            closed = sum(1 for g in gaps if (g.final_score or 0) > 0)
            summary.gaps_closed_percentage = 100.0 * closed / len(gaps)
        return summary

    def summarize_units(
        self,
        units: Sequence[Tuple[str, OrganogramLevel, Sequence[str]]],
        period_id: str,
        cancel: Optional[threading.Event] = None,
    ) -> List[UnitPerformanceSummary]:
        summaries = []
        for reference_id, level, staff_ids in units:
            if _cancelled(cancel):
                break
            try:
                summaries.append(self.summarize_unit(reference_id, level, staff_ids, period_id, cancel=cancel))
            except _SKIPPABLE as e:
                logger.warning(f"Skipping unit {reference_id}: {e}", extra={"review_period_id": period_id})
        return summaries


def _sum_work_products(stats: Iterable[WorkProductStatistics]) -> WorkProductStatistics:
    total = completed = on_schedule = behind = 0
    for s in stats:
        total += s.total
        completed += s.completed
        on_schedule += s.completed_on_schedule
        behind += s.behind_schedule
    return WorkProductStatistics(
        total=total,
        completed=completed,
        completed_on_schedule=on_schedule,
        behind_schedule=behind,
        completion_percentage=100.0 * completed / total if total else 0.0,
    )
