"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Any, Dict, List, Optional

from jobmatch.logger import get_logger

# Keep test runs from writing log files into the working directory
get_logger(enable_file=False, enable_console=False)

from jobmatch.errors import InputUnavailable, StoreWriteFailure  # noqa: E402
from jobmatch.storage import SqlBackend  # noqa: E402


PYTHON_CV = "Python developer with Django experience building REST APIs."


class InMemoryBackend:
    """Source and store kept in plain dicts, with switches for failures."""

    def __init__(
        self,
        candidates: List[Dict[str, Any]],
        jobs: List[Dict[str, Any]],
        synonyms: Optional[List[Dict[str, Any]]] = None,
        matches: Optional[Dict[tuple, int]] = None,
    ):
        self.candidates = candidates
        self.jobs = jobs
        self.synonyms = synonyms or []
        self.matches = dict(matches or {})
        self.calls: List[tuple] = []
        self.unavailable: set = set()
        self.fail_writes: set = set()

    def fetch_synonyms(self):
        if "synonyms" in self.unavailable:
            raise InputUnavailable("synonym table offline")
        return list(self.synonyms)

    def fetch_candidates(self, candidate_id=None):
        if "candidates" in self.unavailable:
            raise InputUnavailable("candidate table offline")
        if candidate_id is None:
            return list(self.candidates)
        return [c for c in self.candidates if c.get("id") == candidate_id]

    def fetch_active_jobs(self):
        if "jobs" in self.unavailable:
            raise InputUnavailable("job table offline")
        return [j for j in self.jobs if j.get("is_active", True)]

    def upsert_match(self, candidate_id, job_id, match_score):
        self.calls.append(("upsert", candidate_id, job_id, match_score))
        if (candidate_id, job_id) in self.fail_writes:
            raise StoreWriteFailure("upsert", candidate_id, job_id, "store rejected write")
        self.matches[(candidate_id, job_id)] = match_score
        return "upserted"

    def delete_match(self, candidate_id, job_id):
        self.calls.append(("delete", candidate_id, job_id))
        if (candidate_id, job_id) in self.fail_writes:
            raise StoreWriteFailure("delete", candidate_id, job_id, "store rejected write")
        return self.matches.pop((candidate_id, job_id), None) is not None


@pytest.fixture
def python_job() -> Dict[str, Any]:
    """Job that the Python CV matches well (scores 77)."""
    return {
        "id": "j1",
        "title": "Senior Python Developer",
        "description": "Build APIs with Django. Maintain services, write tests.",
        "required_skills": ["Python", "Django", "REST APIs"],
        "is_active": True,
    }


@pytest.fixture
def nurse_job() -> Dict[str, Any]:
    """Job unrelated to the Python CV (scores 0 against it)."""
    return {
        "id": "j2",
        "title": "Registered Nurse",
        "description": "Provide patient care in hospital wards.",
        "required_skills": ["patient care", "nursing"],
        "is_active": True,
    }


@pytest.fixture
def synonym_rows() -> List[Dict[str, Any]]:
    return [
        {"term": "ml", "synonyms": ["machine learning"]},
        {"term": "JavaScript", "synonyms": ["JS", " ECMAScript "]},
        {"term": "postgresql", "synonyms": ["postgres", "psql"]},
        {"term": "database", "synonyms": ["postgres", "dbms"]},
    ]


@pytest.fixture
def memory_backend(python_job, nurse_job) -> InMemoryBackend:
    return InMemoryBackend(
        candidates=[{"id": "c1", "cv_text": PYTHON_CV}],
        jobs=[python_job, nurse_job],
    )


@pytest.fixture
def seed_data(python_job, nurse_job, synonym_rows) -> Dict[str, Any]:
    return {
        "candidates": [
            {"id": "c1", "full_name": "Ada", "cv_text": PYTHON_CV},
            {"id": "c2", "full_name": "Blank", "cv_text": ""},
        ],
        "jobs": [
            {**python_job, "employment_type": "full-time"},
            {**nurse_job, "employment_type": "part-time"},
            {
                "id": "j3",
                "title": "Closed Position",
                "description": "This posting is no longer open.",
                "required_skills": ["python"],
                "is_active": False,
            },
        ],
        "synonyms": synonym_rows,
    }


@pytest.fixture
def sql_backend(tmp_path) -> SqlBackend:
    """SQLite backend in a temporary directory."""
    backend = SqlBackend(tmp_path / "data" / "jobmatch.db")
    yield backend
    backend.close()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "jobmatch.db"
