"""
Field and pair scoring.

Responsibilities:
- Score a weighted set of terms against a candidate text (0-100).
- Combine title, skills and description field scores into one integer
  match score per (candidate, job) pair.

Non-Responsibilities:
- No selection of which pairs to keep.
- No persistence.

Invariant:
Given identical inputs, a pair always gets the same score, and that
score is an integer in [0, 100].
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .normalize import description_terms, html_to_text, skill_terms, title_terms
from .terms import TermMatcher, Tier

TERM_WEIGHT = 10
TIER_POINTS = {
    Tier.EXACT_PHRASE: 10,
    Tier.ALL_WORDS: 8,
    Tier.FUZZY_STEM: 6,
    Tier.SYNONYM: 5,
    Tier.NONE: 0,
}

TITLE_WEIGHT = 0.30
SKILLS_WEIGHT = 0.50
DESCRIPTION_WEIGHT = 0.20


@dataclass(frozen=True)
class JobTerms:
    """Terms extracted once per job and reused for every candidate."""

    title: List[str]
    skills: List[str]
    description: List[str]


@dataclass
class PairScore:
    job_id: Any
    score: int
    breakdown: Dict[str, float] = field(default_factory=dict)


def extract_job_terms(job: Mapping[str, Any]) -> JobTerms:
    return JobTerms(
        title=title_terms(job.get("title") or ""),
        skills=skill_terms(job.get("required_skills") or []),
        description=description_terms(job.get("description") or ""),
    )


def score_field(terms: Sequence[str], text: str, matcher: Optional[TermMatcher] = None) -> float:
    """
    Mean per-term achievement as a percentage of the maximum.

    Args:
        terms: Terms to look for
        text: Candidate text
        matcher: Term matcher (defaults to one without synonyms)

    Returns:
        Score in [0, 100]; 0 for an empty term list
    """
    if not terms:
        return 0.0
    matcher = matcher or TermMatcher()

    earned = 0
    total_weight = 0
    for term in terms:
        total_weight += TERM_WEIGHT
        earned += TIER_POINTS[matcher.term_present(term, text)]
    return earned / total_weight * 100


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_pair_detailed(
    candidate_text: str,
    job: Mapping[str, Any],
    matcher: Optional[TermMatcher] = None,
    terms: Optional[JobTerms] = None,
) -> PairScore:
    """Score one candidate text against one job, keeping the field breakdown."""
    matcher = matcher or TermMatcher()
    terms = terms or extract_job_terms(job)
    text = html_to_text(candidate_text or "").lower()

    title_score = score_field(terms.title, text, matcher)
    skills_score = score_field(terms.skills, text, matcher)
    description_score = score_field(terms.description, text, matcher)

    combined = round_half_up(
        title_score * TITLE_WEIGHT
        + skills_score * SKILLS_WEIGHT
        + description_score * DESCRIPTION_WEIGHT
    )
    return PairScore(
        job_id=job.get("id"),
        score=max(0, min(100, combined)),
        breakdown={
            "title": title_score,
            "skills": skills_score,
            "description": description_score,
        },
    )


def score_pair(
    candidate_text: str,
    job: Mapping[str, Any],
    matcher: Optional[TermMatcher] = None,
    terms: Optional[JobTerms] = None,
) -> int:
    return score_pair_detailed(candidate_text, job, matcher, terms).score
