"""
Tests for matching runs: scoring, reconciliation and outcomes.
"""

import gc

from jobmatch import engine
from jobmatch.engine import FAILURE, PARTIAL_FAILURE, SUCCESS, candidate_lock, has_cv_text, run_matching
from jobmatch.scoring import score_pair

from conftest import PYTHON_CV, InMemoryBackend


class TestRunMatching:
    """Test a full run against an in-memory backend."""

    def test_keeps_high_match_only(self, memory_backend):
        outcome = run_matching(memory_backend, memory_backend)

        assert outcome.status == SUCCESS
        assert outcome.message == "Matching complete"
        assert memory_backend.matches == {("c1", "j1"): 77}
        assert outcome.candidates_processed == 1
        assert outcome.upserts == 1
        assert outcome.deletes == 1

    def test_overwrites_stale_and_deletes_dropped(self, memory_backend):
        memory_backend.matches = {("c1", "j1"): 10, ("c1", "j2"): 70}

        run_matching(memory_backend, memory_backend)

        assert memory_backend.matches == {("c1", "j1"): 77}

    def test_idempotent(self, memory_backend):
        run_matching(memory_backend, memory_backend)
        first = dict(memory_backend.matches)

        run_matching(memory_backend, memory_backend)
        assert memory_backend.matches == first

    def test_fallback_keeps_best(self, python_job, nurse_job):
        backend = InMemoryBackend(
            candidates=[{"id": "c1", "cv_text": "nurse"}],
            jobs=[python_job, nurse_job],
        )

        run_matching(backend, backend)

        assert backend.matches == {("c1", "j2"): score_pair("nurse", nurse_job)}

    def test_blank_cv_is_excluded(self, python_job, nurse_job):
        backend = InMemoryBackend(
            candidates=[
                {"id": "c1", "cv_text": PYTHON_CV},
                {"id": "c2", "cv_text": "   "},
                {"id": "c3", "cv_text": None},
                {"id": "c4"},
            ],
            jobs=[python_job, nurse_job],
            matches={("c2", "j1"): 50},
        )

        outcome = run_matching(backend, backend)

        assert outcome.candidates_skipped == 3
        assert backend.matches[("c2", "j1")] == 50
        assert all(call[1] == "c1" for call in backend.calls)

    def test_scoped_to_one_candidate(self, python_job, nurse_job):
        backend = InMemoryBackend(
            candidates=[
                {"id": "c1", "cv_text": PYTHON_CV},
                {"id": "c2", "cv_text": "nurse"},
            ],
            jobs=[python_job, nurse_job],
        )

        outcome = run_matching(backend, backend, candidate_id="c2")

        assert outcome.candidates_processed == 1
        assert set(backend.matches) == {("c2", "j2")}

    def test_no_active_jobs(self, python_job):
        backend = InMemoryBackend(
            candidates=[{"id": "c1", "cv_text": PYTHON_CV}],
            jobs=[{**python_job, "is_active": False}],
            matches={("c1", "j1"): 80},
        )

        outcome = run_matching(backend, backend)

        assert outcome.status == SUCCESS
        assert backend.calls == []
        assert backend.matches == {("c1", "j1"): 80}

    def test_synonyms_used(self):
        job = {"id": "j1", "title": "ML", "description": "", "required_skills": ["ml"]}
        backend = InMemoryBackend(
            candidates=[{"id": "c1", "cv_text": "machine learning experience"}],
            jobs=[job],
            synonyms=[{"term": "ml", "synonyms": ["machine learning"]}],
        )

        run_matching(backend, backend)

        # skills 50% of 50 points; title "ML" has no significant words
        assert backend.matches == {("c1", "j1"): 25}

    def test_null_synonym_entries_ignored(self):
        job = {"id": "j1", "title": "ML", "description": "", "required_skills": ["ml"]}
        backend = InMemoryBackend(
            candidates=[{"id": "c1", "cv_text": "machine learning experience"}],
            jobs=[job],
            synonyms=[
                {"term": "ml", "synonyms": ["machine learning", None]},
                {"term": None, "synonyms": ["ai"]},
            ],
        )

        outcome = run_matching(backend, backend)

        assert outcome.status == SUCCESS
        assert backend.matches == {("c1", "j1"): 25}


class TestErrors:
    """Test failure handling and reporting."""

    def test_input_unavailable_aborts(self, memory_backend):
        for table in ("synonyms", "candidates", "jobs"):
            memory_backend.unavailable = {table}
            outcome = run_matching(memory_backend, memory_backend)

            assert outcome.status == FAILURE
            assert "offline" in outcome.message
            assert memory_backend.calls == []

    def test_malformed_job_skipped(self, python_job, nurse_job):
        broken = {"id": "j9", "description": "no title here", "required_skills": []}
        backend = InMemoryBackend(
            candidates=[{"id": "c1", "cv_text": PYTHON_CV}],
            jobs=[python_job, broken, nurse_job],
        )

        outcome = run_matching(backend, backend)

        assert outcome.status == SUCCESS
        assert len(outcome.skipped_records) == 1
        assert "j9" in outcome.skipped_records[0]
        assert backend.matches == {("c1", "j1"): 77}
        assert not any(call[2] == "j9" for call in backend.calls)

    def test_malformed_candidate_skipped(self, python_job):
        backend = InMemoryBackend(
            candidates=[{"cv_text": PYTHON_CV}, {"id": "c1", "cv_text": PYTHON_CV}],
            jobs=[python_job],
        )

        outcome = run_matching(backend, backend)

        assert outcome.candidates_processed == 1
        assert outcome.candidates_skipped == 1
        assert len(outcome.skipped_records) == 1
        assert backend.matches == {("c1", "j1"): 77}

    def test_store_failure_is_partial(self, memory_backend):
        memory_backend.fail_writes = {("c1", "j2")}

        outcome = run_matching(memory_backend, memory_backend)

        assert outcome.status == PARTIAL_FAILURE
        assert not outcome.ok
        assert len(outcome.failures) == 1
        assert "delete failed" in outcome.failures[0]
        # The other pair is still written
        assert memory_backend.matches == {("c1", "j1"): 77}

    def test_store_failure_does_not_stop_other_candidates(self, python_job, nurse_job):
        backend = InMemoryBackend(
            candidates=[
                {"id": "c1", "cv_text": PYTHON_CV},
                {"id": "c2", "cv_text": PYTHON_CV},
            ],
            jobs=[python_job, nurse_job],
        )
        backend.fail_writes = {("c1", "j1")}

        outcome = run_matching(backend, backend)

        assert outcome.status == PARTIAL_FAILURE
        assert outcome.candidates_processed == 2
        assert backend.matches == {("c2", "j1"): 77}


class TestConcurrency:
    """Test worker pools and early stop."""

    def test_workers_match_serial_run(self, python_job, nurse_job):
        candidates = [
            {"id": f"c{i}", "cv_text": PYTHON_CV if i % 2 else "nurse"}
            for i in range(12)
        ]
        serial = InMemoryBackend(candidates=candidates, jobs=[python_job, nurse_job])
        pooled = InMemoryBackend(candidates=candidates, jobs=[python_job, nurse_job])

        run_matching(serial, serial)
        outcome = run_matching(pooled, pooled, workers=4)

        assert outcome.candidates_processed == 12
        assert pooled.matches == serial.matches

    def test_stop_between_candidates(self, python_job, nurse_job):
        backend = InMemoryBackend(
            candidates=[
                {"id": "c1", "cv_text": PYTHON_CV},
                {"id": "c2", "cv_text": PYTHON_CV},
            ],
            jobs=[python_job, nurse_job],
        )

        outcome = run_matching(backend, backend, should_stop=lambda: bool(backend.calls))

        assert outcome.stopped
        assert outcome.status == SUCCESS
        assert outcome.candidates_processed == 1
        assert set(backend.matches) == {("c1", "j1")}


class TestHasCvText:
    def test_values(self):
        assert has_cv_text({"cv_text": "python"})
        assert not has_cv_text({"cv_text": " \n "})
        assert not has_cv_text({"cv_text": None})
        assert not has_cv_text({})


class TestCandidateLock:
    """Test the per-candidate write locks."""

    def test_same_candidate_same_lock(self):
        lock = candidate_lock("c1")
        assert candidate_lock("c1") is lock
        assert candidate_lock("c2") is not lock

    def test_locks_released_after_run(self, python_job):
        backend = InMemoryBackend(
            candidates=[{"id": f"bulk-{i}", "cv_text": PYTHON_CV} for i in range(50)],
            jobs=[python_job],
        )

        run_matching(backend, backend)
        gc.collect()

        assert not any(key.startswith("bulk-") for key in engine._candidate_locks.keys())
