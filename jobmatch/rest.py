"""REST backend for the hosted database (PostgREST API under /rest/v1)."""

from typing import Any, Dict, List, Optional

import requests

from .errors import InputUnavailable, StoreWriteFailure
from .logger import get_logger
from .retry import TRANSIENT_REQUEST_ERRORS, RetryError, exponential_backoff, log_retry

logger = get_logger()

REQUEST_TIMEOUT = 15
MATCH_CONFLICT_KEY = "candidate_id,job_id"


class RestBackend:
    """Match source and match store backed by the hosted REST API."""

    def __init__(self, base_url: str, api_key: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def close(self) -> None:
        self.session.close()

    @exponential_backoff(max_retries=3, base_delay=1.0, exceptions=TRANSIENT_REQUEST_ERRORS, on_retry=log_retry)
    def _request(self, method: str, table: str, **kwargs) -> requests.Response:
        """Send a request with automatic retry on transient errors."""
        resp = self.session.request(method, f"{self.base_url}/{table}", timeout=REQUEST_TIMEOUT, **kwargs)
        resp.raise_for_status()
        return resp

    def _get_rows(self, what: str, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            return self._request("GET", table, params=params).json()
        except (requests.exceptions.RequestException, RetryError, ValueError) as e:
            logger.error(f"Could not fetch {what}", table=table, error=str(e))
            raise InputUnavailable(f"Could not fetch {what}: {e}") from e

    # Source

    def fetch_synonyms(self) -> List[Dict[str, Any]]:
        return self._get_rows("synonyms", "skill_synonyms", {"select": "term,synonyms"})

    def fetch_candidates(self, candidate_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"select": "user_id,full_name,cv_text"}
        if candidate_id is not None:
            params["user_id"] = f"eq.{candidate_id}"
        rows = self._get_rows("candidates", "candidate_profiles", params)
        return [
            {"id": r.get("user_id"), "full_name": r.get("full_name"), "cv_text": r.get("cv_text")}
            for r in rows
        ]

    def fetch_active_jobs(self) -> List[Dict[str, Any]]:
        return self._get_rows("jobs", "job_positions", {
            "select": "id,title,description,required_skills,employment_type,is_active",
            "is_active": "eq.true",
        })

    # Store

    def upsert_match(self, candidate_id: Any, job_id: Any, match_score: int) -> str:
        try:
            self._request(
                "POST",
                "candidate_matches",
                params={"on_conflict": MATCH_CONFLICT_KEY},
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                json={"candidate_id": candidate_id, "job_id": job_id, "match_score": match_score},
            )
        except (requests.exceptions.RequestException, RetryError) as e:
            raise StoreWriteFailure("upsert", candidate_id, job_id, str(e)) from e
        return "upserted"

    def delete_match(self, candidate_id: Any, job_id: Any) -> bool:
        try:
            resp = self._request(
                "DELETE",
                "candidate_matches",
                params={"candidate_id": f"eq.{candidate_id}", "job_id": f"eq.{job_id}"},
                headers={"Prefer": "return=representation"},
            )
        except (requests.exceptions.RequestException, RetryError) as e:
            raise StoreWriteFailure("delete", candidate_id, job_id, str(e)) from e
        try:
            return len(resp.json()) > 0
        except ValueError:
            return False

    def list_matches(self, candidate_id: Optional[str] = None, job_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"select": "candidate_id,job_id,match_score", "order": "match_score.desc"}
        if candidate_id is not None:
            params["candidate_id"] = f"eq.{candidate_id}"
        if job_id is not None:
            params["job_id"] = f"eq.{job_id}"
        return self._get_rows("matches", "candidate_matches", params)
