"""
Error taxonomy for matching runs.

InputUnavailable aborts a run, MalformedRecord skips a single record,
StoreWriteFailure is collected and reported at the end of the run.
"""


class MatchingError(Exception):
    """Base class for matching run errors."""
    pass


class InputUnavailable(MatchingError):
    """Raised when synonyms, candidates or jobs cannot be fetched."""
    pass


class MalformedRecord(MatchingError):
    """Raised when a candidate or job record is missing required fields."""

    def __init__(self, kind: str, record_id, errors):
        self.kind = kind
        self.record_id = record_id
        self.errors = list(errors)
        super().__init__(f"Malformed {kind} {record_id!r}: {'; '.join(self.errors)}")


class StoreWriteFailure(MatchingError):
    """Raised when a single upsert or delete against the match store fails."""

    def __init__(self, action: str, candidate_id, job_id, cause: str):
        self.action = action
        self.candidate_id = candidate_id
        self.job_id = job_id
        self.cause = cause
        super().__init__(f"{action} failed for ({candidate_id}, {job_id}): {cause}")
