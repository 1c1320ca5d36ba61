"""
Match Selector & Reconciler.

Responsibilities:
- Decide which of a candidate's scored pairs are kept as matches.
- Emit the upsert/delete plan that makes the stored rows for that
  candidate equal to the kept set.

Non-Responsibilities:
- No scoring.
- No store access.

Invariant:
Exactly one branch (high-confidence or fallback) applies per candidate,
and the plan touches only `(candidate_id, *)` rows.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from .scoring import PairScore

HIGH_CONFIDENCE_THRESHOLD = 60
FALLBACK_MARGIN = 10
FALLBACK_TOP_FRACTION = 0.05

STRONG_MATCH = 75
GOOD_MATCH = 50


@dataclass
class ReconciliationPlan:
    candidate_id: Any
    upserts: List[PairScore] = field(default_factory=list)
    deletes: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes


def select_matches(scores: Sequence[PairScore]) -> List[PairScore]:
    """
    Pick the pairs to keep for one candidate.

    Any pair at or above the threshold means every such pair is kept.
    Otherwise only pairs within the margin of the best score qualify, cut
    down to the top 5% (at least one) when several do.
    """
    if not scores:
        return []

    high = [s for s in scores if s.score >= HIGH_CONFIDENCE_THRESHOLD]
    if high:
        return high

    best = max(s.score for s in scores)
    margin_threshold = best - FALLBACK_MARGIN
    in_margin = [s for s in scores if s.score >= margin_threshold]
    if len(in_margin) == 1:
        return in_margin

    ranked = sorted(in_margin, key=lambda s: s.score, reverse=True)
    top_count = max(1, math.ceil(len(ranked) * FALLBACK_TOP_FRACTION))
    return ranked[:top_count]


def plan_reconciliation(candidate_id: Any, scores: Sequence[PairScore]) -> ReconciliationPlan:
    """Upsert kept pairs, delete every other scored pair for the candidate."""
    kept = select_matches(scores)
    kept_ids = {s.job_id for s in kept}
    plan = ReconciliationPlan(candidate_id=candidate_id)
    for s in scores:
        if s.job_id in kept_ids:
            plan.upserts.append(s)
        else:
            plan.deletes.append(s.job_id)
    return plan


def strength_label(match_score: int) -> str:
    if match_score >= STRONG_MATCH:
        return "strong"
    if match_score >= GOOD_MATCH:
        return "good"
    return "fair"
