"""
SQL backend: reads candidates, active jobs and synonyms, and stores matches.

Every operation opens its own session, so one backend can be shared by
concurrent scoring workers.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import (
    CandidateMatch,
    CandidateProfile,
    JobPosition,
    SkillSynonym,
    create_db_engine,
    init_database,
)
from .errors import InputUnavailable, StoreWriteFailure
from .logger import get_logger
from .schema import validate_candidate, validate_job_strict, validate_synonym

logger = get_logger()


class SqlBackend:
    """Match source and match store backed by a SQLite database."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        init_database(self.db_path)
        self.engine = create_db_engine(self.db_path)
        self.Session = sessionmaker(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()

    # Source

    def _fetch(self, what: str, query_fn) -> List[Dict[str, Any]]:
        session = self.Session()
        try:
            return [row.to_record() for row in query_fn(session)]
        except SQLAlchemyError as e:
            raise InputUnavailable(f"Could not fetch {what}: {e}") from e
        finally:
            session.close()

    def fetch_synonyms(self) -> List[Dict[str, Any]]:
        return self._fetch("synonyms", lambda s: s.query(SkillSynonym).all())

    def fetch_candidates(self, candidate_id: Optional[str] = None) -> List[Dict[str, Any]]:
        def query(s):
            q = s.query(CandidateProfile)
            if candidate_id is not None:
                q = q.filter_by(user_id=str(candidate_id))
            return q.order_by(CandidateProfile.user_id).all()

        return self._fetch("candidates", query)

    def fetch_active_jobs(self) -> List[Dict[str, Any]]:
        return self._fetch(
            "jobs",
            lambda s: s.query(JobPosition).filter_by(is_active=True).order_by(JobPosition.id).all(),
        )

    # Store

    def upsert_match(self, candidate_id: Any, job_id: Any, match_score: int) -> str:
        """
        Insert or update the match row.

        Returns:
            "new", "updated" or "no-change"
        """
        session = self.Session()
        try:
            existing = session.get(CandidateMatch, (str(candidate_id), str(job_id)))
            if existing is None:
                session.add(CandidateMatch(
                    candidate_id=str(candidate_id),
                    job_id=str(job_id),
                    match_score=match_score,
                ))
                status = "new"
            elif existing.match_score != match_score:
                existing.match_score = match_score
                status = "updated"
            else:
                status = "no-change"
            session.commit()
            return status
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreWriteFailure("upsert", candidate_id, job_id, str(e)) from e
        finally:
            session.close()

    def delete_match(self, candidate_id: Any, job_id: Any) -> bool:
        """Delete the match row if present. Returns True when a row was removed."""
        session = self.Session()
        try:
            removed = (
                session.query(CandidateMatch)
                .filter_by(candidate_id=str(candidate_id), job_id=str(job_id))
                .delete()
            )
            session.commit()
            return removed > 0
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreWriteFailure("delete", candidate_id, job_id, str(e)) from e
        finally:
            session.close()

    def list_matches(self, candidate_id: Optional[str] = None, job_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Stored matches, best first."""
        def query(s):
            q = s.query(CandidateMatch)
            if candidate_id is not None:
                q = q.filter_by(candidate_id=str(candidate_id))
            if job_id is not None:
                q = q.filter_by(job_id=str(job_id))
            return q.order_by(CandidateMatch.match_score.desc(), CandidateMatch.job_id).all()

        return self._fetch("matches", query)

    # Seeding

    def import_records(self, data: Dict[str, Any]) -> Dict[str, int]:
        """
        Load candidates, jobs and synonyms from a seed document.

        Invalid records are skipped and logged; existing rows are replaced.

        Returns:
            Counts per kind plus "skipped"
        """
        counts = {"candidates": 0, "jobs": 0, "synonyms": 0, "skipped": 0}
        session = self.Session()
        try:
            for row in data.get("candidates", []):
                errors = validate_candidate(row)
                if errors:
                    logger.warning("Skipping candidate", id=row.get("id"), errors=errors)
                    counts["skipped"] += 1
                    continue
                session.merge(CandidateProfile(
                    user_id=str(row["id"]),
                    full_name=row.get("full_name"),
                    cv_text=row.get("cv_text"),
                ))
                counts["candidates"] += 1

            for row in data.get("jobs", []):
                is_valid, errors = validate_job_strict(row)
                if not is_valid:
                    logger.warning("Skipping job", id=row.get("id"), errors=errors)
                    counts["skipped"] += 1
                    continue
                session.merge(JobPosition(
                    id=str(row["id"]),
                    title=row["title"],
                    description=row.get("description"),
                    required_skills=[s.strip() for s in row["required_skills"] if s.strip()],
                    employment_type=row.get("employment_type"),
                    is_active=row.get("is_active", True),
                ))
                counts["jobs"] += 1

            for row in data.get("synonyms", []):
                errors = validate_synonym(row)
                if errors:
                    logger.warning("Skipping synonym row", term=row.get("term"), errors=errors)
                    counts["skipped"] += 1
                    continue
                session.merge(SkillSynonym(term=row["term"].strip(), synonyms=list(row["synonyms"])))
                counts["synonyms"] += 1

            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info("Import complete", **counts)
        return counts
