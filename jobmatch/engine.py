"""
Matching run orchestrator.

Responsibilities:
- Fetch synonyms, candidates and active jobs from a source.
- Score every (candidate, active job) pair and reconcile each candidate's
  stored matches with the kept set.
- Report an explicit outcome: success, partial failure or failure.

Non-Responsibilities:
- No scoring rules (see scoring, terms).
- No selection rules (see selection).
- No authorization of who may trigger a run.

Invariant:
A candidate's rows are only written while holding that candidate's lock,
and a run that cannot read its inputs writes nothing.
"""

import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from .errors import InputUnavailable, MalformedRecord, StoreWriteFailure
from .logger import get_logger
from .schema import validate_candidate, validate_job
from .scoring import JobTerms, PairScore, extract_job_terms, score_pair_detailed
from .selection import ReconciliationPlan, plan_reconciliation
from .synonyms import SynonymIndex
from .terms import TermMatcher

logger = get_logger()

SUCCESS = "success"
PARTIAL_FAILURE = "partial_failure"
FAILURE = "failure"


class MatchSource(Protocol):
    def fetch_synonyms(self) -> List[Dict[str, Any]]: ...

    def fetch_candidates(self, candidate_id: Optional[str] = None) -> List[Dict[str, Any]]: ...

    def fetch_active_jobs(self) -> List[Dict[str, Any]]: ...


class MatchStore(Protocol):
    def upsert_match(self, candidate_id: Any, job_id: Any, match_score: int) -> str: ...

    def delete_match(self, candidate_id: Any, job_id: Any) -> bool: ...

    def list_matches(self, candidate_id: Optional[str] = None, job_id: Optional[str] = None) -> List[Dict[str, Any]]: ...


@dataclass
class RunOutcome:
    status: str
    message: str
    candidates_processed: int = 0
    candidates_skipped: int = 0
    upserts: int = 0
    deletes: int = 0
    failures: List[str] = field(default_factory=list)
    skipped_records: List[str] = field(default_factory=list)
    stopped: bool = False

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


@dataclass
class _CandidateResult:
    candidate_id: Any
    scored: bool = False
    upserts: int = 0
    deletes: int = 0
    failures: List[str] = field(default_factory=list)
    stopped: bool = False


# Per-candidate locks shared by every run in this process; an entry lives
# only while some run holds a reference to its lock
_locks_guard = threading.Lock()
_candidate_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()


def candidate_lock(candidate_id: Any) -> threading.Lock:
    key = str(candidate_id)
    with _locks_guard:
        lock = _candidate_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _candidate_locks[key] = lock
        return lock


def has_cv_text(candidate: Dict[str, Any]) -> bool:
    cv_text = candidate.get("cv_text")
    return isinstance(cv_text, str) and cv_text.strip() != ""


def score_candidate(
    candidate: Dict[str, Any],
    jobs: List[Dict[str, Any]],
    matcher: TermMatcher,
    job_terms: Optional[Dict[Any, JobTerms]] = None,
) -> List[PairScore]:
    """Score one candidate against every job, in job order."""
    job_terms = job_terms or {}
    scores = []
    for job in jobs:
        pair = score_pair_detailed(candidate["cv_text"], job, matcher, job_terms.get(job["id"]))
        logger.debug(
            f"Candidate {candidate['id']} vs Job {job['id']} ({job.get('title')})",
            title_score=round(pair.breakdown["title"]),
            skills_score=round(pair.breakdown["skills"]),
            description_score=round(pair.breakdown["description"]),
            final_score=pair.score,
        )
        scores.append(pair)
    return scores


def apply_plan(store: MatchStore, plan: ReconciliationPlan) -> _CandidateResult:
    """
    Apply one candidate's plan. Failed writes are collected, not raised;
    the remaining pairs are still written.
    """
    result = _CandidateResult(candidate_id=plan.candidate_id, scored=True)
    with candidate_lock(plan.candidate_id):
        for pair in plan.upserts:
            try:
                store.upsert_match(plan.candidate_id, pair.job_id, pair.score)
                result.upserts += 1
                logger.record_upsert()
            except StoreWriteFailure as e:
                logger.error("Store write failed", error=str(e))
                logger.record_failure(type(e).__name__)
                result.failures.append(str(e))
        for job_id in plan.deletes:
            try:
                store.delete_match(plan.candidate_id, job_id)
                result.deletes += 1
                logger.record_delete()
            except StoreWriteFailure as e:
                logger.error("Store write failed", error=str(e))
                logger.record_failure(type(e).__name__)
                result.failures.append(str(e))
    return result


def _valid_jobs(jobs: List[Dict[str, Any]], skipped: List[str]) -> List[Dict[str, Any]]:
    valid = []
    for job in jobs:
        errors = validate_job(job)
        if errors:
            err = MalformedRecord("job", job.get("id"), errors)
            logger.warning("Skipping malformed job", error=str(err))
            logger.record_failure(type(err).__name__)
            skipped.append(str(err))
            continue
        if job.get("is_active", True):
            valid.append(job)
    return valid


def run_matching(
    source: MatchSource,
    store: MatchStore,
    candidate_id: Optional[str] = None,
    workers: int = 1,
    should_stop: Optional[Callable[[], bool]] = None,
) -> RunOutcome:
    """
    Score candidates against all active jobs and reconcile stored matches.

    Args:
        source: Supplies synonyms, candidates and active jobs
        store: Receives upserts and deletes keyed on (candidate_id, job_id)
        candidate_id: Re-score only this candidate; None rescans everyone
        workers: Number of candidates scored concurrently
        should_stop: Checked before each candidate; True ends the run early

    Returns:
        RunOutcome describing what was written and what failed
    """
    try:
        synonym_rows = source.fetch_synonyms()
        candidates = source.fetch_candidates(candidate_id)
        jobs = source.fetch_active_jobs()
    except InputUnavailable as e:
        logger.error("Matching aborted: input unavailable", error=str(e))
        logger.record_failure(type(e).__name__)
        return RunOutcome(status=FAILURE, message=str(e))

    outcome = RunOutcome(status=SUCCESS, message="")
    index = SynonymIndex.build(synonym_rows)
    logger.info(f"Loaded {len(index)} synonym terms")

    jobs = _valid_jobs(jobs, outcome.skipped_records)
    if not jobs:
        outcome.message = "No active jobs; nothing to match"
        logger.info(outcome.message, candidates=len(candidates))
        return outcome

    matcher = TermMatcher(index)
    job_terms = {job["id"]: extract_job_terms(job) for job in jobs}

    eligible = []
    for candidate in candidates:
        errors = validate_candidate(candidate)
        if errors:
            err = MalformedRecord("candidate", candidate.get("id"), errors)
            logger.warning("Skipping malformed candidate", error=str(err))
            logger.record_failure(type(err).__name__)
            outcome.skipped_records.append(str(err))
            outcome.candidates_skipped += 1
            continue
        if not has_cv_text(candidate):
            logger.info(f"Skipping candidate {candidate['id']} - no CV text")
            logger.record_candidate_skipped()
            outcome.candidates_skipped += 1
            continue
        eligible.append(candidate)

    def process(candidate: Dict[str, Any]) -> _CandidateResult:
        if should_stop is not None and should_stop():
            return _CandidateResult(candidate_id=candidate["id"], stopped=True)
        scores = score_candidate(candidate, jobs, matcher, job_terms)
        logger.record_candidate_scored(len(scores))
        plan = plan_reconciliation(candidate["id"], scores)
        return apply_plan(store, plan)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(process, eligible))
    else:
        results = []
        for candidate in eligible:
            result = process(candidate)
            results.append(result)
            if result.stopped:
                break

    for result in results:
        if result.stopped:
            outcome.stopped = True
            continue
        outcome.candidates_processed += 1
        outcome.upserts += result.upserts
        outcome.deletes += result.deletes
        outcome.failures.extend(result.failures)

    if outcome.failures:
        outcome.status = PARTIAL_FAILURE
        outcome.message = (
            f"Matching finished with {len(outcome.failures)} store write failure(s)"
        )
    elif outcome.stopped:
        outcome.message = (
            f"Matching stopped after {outcome.candidates_processed} candidate(s)"
        )
    else:
        outcome.message = "Matching complete"

    logger.info(
        outcome.message,
        status=outcome.status,
        candidates_processed=outcome.candidates_processed,
        candidates_skipped=outcome.candidates_skipped,
        upserts=outcome.upserts,
        deletes=outcome.deletes,
    )
    return outcome
