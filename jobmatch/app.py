import argparse
import json
from pathlib import Path

from . import __version__
from .env import get_backend, get_db_path, get_log_dir, get_log_level, get_rest_credentials, load_env
from .engine import run_matching, score_candidate
from .logger import get_logger
from .rest import RestBackend
from .schema import validate_job
from .scoring import extract_job_terms
from .selection import plan_reconciliation, strength_label
from .storage import SqlBackend
from .synonyms import SynonymIndex
from .terms import TermMatcher


def open_backend(args: argparse.Namespace):
    backend = args.backend or get_backend()
    if backend == "rest":
        url, key = get_rest_credentials()
        return RestBackend(url, key)
    return SqlBackend(get_db_path(args.db))


def _read_json(path_str: str):
    path = Path(path_str)
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def cmd_run(args: argparse.Namespace) -> None:
    backend = open_backend(args)
    try:
        outcome = run_matching(backend, backend, candidate_id=args.candidate, workers=args.workers)
    finally:
        backend.close()

    get_logger().log_metrics_summary()
    print(f"Status: {outcome.status}")
    print(f"Message: {outcome.message}")
    print(
        f"Done. candidates={outcome.candidates_processed} skipped={outcome.candidates_skipped} "
        f"upserts={outcome.upserts} deletes={outcome.deletes} failures={len(outcome.failures)}"
    )
    for failure in outcome.failures:
        print(f" - {failure}")
    if not outcome.ok:
        raise SystemExit(1)


def cmd_score(args: argparse.Namespace) -> None:
    cv_path = Path(args.cv)
    if not cv_path.exists():
        raise SystemExit(f"CV file not found: {cv_path}")
    cv_text = cv_path.read_text(encoding="utf-8")
    if not cv_text.strip():
        raise SystemExit("CV file is empty; nothing to score.")

    jobs = _read_json(args.jobs)
    if isinstance(jobs, dict):
        jobs = jobs.get("jobs", [])
    valid_jobs = []
    for job in jobs:
        errors = validate_job(job)
        if errors:
            print(f"[skip] {job.get('id')} - {errors}")
            continue
        if job.get("is_active", True):
            valid_jobs.append(job)
    jobs = valid_jobs
    synonyms = _read_json(args.synonyms) if args.synonyms else []
    if isinstance(synonyms, dict):
        synonyms = synonyms.get("synonyms", [])

    matcher = TermMatcher(SynonymIndex.build(synonyms))
    job_terms = {job["id"]: extract_job_terms(job) for job in jobs}
    candidate = {"id": cv_path.stem, "cv_text": cv_text}
    scores = score_candidate(candidate, jobs, matcher, job_terms)
    plan = plan_reconciliation(candidate["id"], scores)
    kept = {pair.job_id for pair in plan.upserts}
    titles = {job["id"]: job.get("title", "") for job in jobs}

    for pair in sorted(scores, key=lambda p: p.score, reverse=True):
        marker = "keep" if pair.job_id in kept else "drop"
        b = pair.breakdown
        print(
            f"[{marker}] {pair.job_id} ({titles[pair.job_id]}): {pair.score} "
            f"title={b['title']:.0f} skills={b['skills']:.0f} description={b['description']:.0f}"
        )
    print(f"Done. jobs={len(scores)} kept={len(kept)}")


def cmd_import(args: argparse.Namespace) -> None:
    data = _read_json(args.input)
    backend = SqlBackend(get_db_path(args.db))
    try:
        counts = backend.import_records(data)
    finally:
        backend.close()
    print(
        f"Done. candidates={counts['candidates']} jobs={counts['jobs']} "
        f"synonyms={counts['synonyms']} skipped={counts['skipped']}"
    )


def cmd_matches(args: argparse.Namespace) -> None:
    backend = open_backend(args)
    try:
        matches = backend.list_matches(candidate_id=args.candidate, job_id=args.job)
    finally:
        backend.close()
    if not matches:
        print("No matches in store.")
        return
    print(f"Found {len(matches)} matches:\n")
    for m in matches:
        label = strength_label(m["match_score"])
        print(f"{m['candidate_id']} -> {m['job_id']}: {m['match_score']}% match ({label})")


def main():
    # Load .env if present (JOBMATCH_*, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    load_env()
    get_logger().configure(level=get_log_level(), log_dir=get_log_dir())

    parser = argparse.ArgumentParser(prog="jobmatch", description="Candidate-to-job match scoring")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    def add_backend_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--backend", choices=["sql", "rest"], help="Backend (default: JOBMATCH_BACKEND or sql)")
        p.add_argument("--db", help="SQLite database path (default: JOBMATCH_DB or data/jobmatch.db)")

    run = subparsers.add_parser("run", help="Score candidates against active jobs and reconcile stored matches")
    run.add_argument("--candidate", help="Re-score only this candidate id")
    run.add_argument("--workers", type=int, default=1, help="Candidates scored concurrently (default 1)")
    add_backend_args(run)
    run.set_defaults(func=cmd_run)

    scr = subparsers.add_parser("score", help="Score a CV text file against a JSON job list without writing")
    scr.add_argument("--cv", required=True, help="Path to CV plain text")
    scr.add_argument("--jobs", required=True, help="Path to JSON list of jobs")
    scr.add_argument("--synonyms", help="Path to JSON list of {term, synonyms}")
    scr.set_defaults(func=cmd_score)

    imp = subparsers.add_parser("import", help="Load candidates, jobs and synonyms from JSON into the database")
    imp.add_argument("--input", required=True, help="Path to JSON with candidates/jobs/synonyms lists")
    imp.add_argument("--db", help="SQLite database path (default: JOBMATCH_DB or data/jobmatch.db)")
    imp.set_defaults(func=cmd_import)

    mts = subparsers.add_parser("matches", help="List stored matches, best first")
    group = mts.add_mutually_exclusive_group()
    group.add_argument("--candidate", help="Only this candidate's matches")
    group.add_argument("--job", help="Only this job's matches")
    add_backend_args(mts)
    mts.set_defaults(func=cmd_matches)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
