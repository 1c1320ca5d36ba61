"""
Tests for environment configuration.
"""

from pathlib import Path

import pytest

from jobmatch.env import get_backend, get_db_path, get_log_dir, get_rest_credentials, load_env


class TestEnv:
    def test_defaults(self, monkeypatch):
        for var in ("JOBMATCH_BACKEND", "JOBMATCH_DB", "JOBMATCH_LOG_DIR"):
            monkeypatch.delenv(var, raising=False)
        assert get_backend() == "sql"
        assert get_db_path() == Path("data/jobmatch.db")
        assert get_log_dir() == Path("logs")

    def test_flag_overrides_env(self, monkeypatch):
        monkeypatch.setenv("JOBMATCH_DB", "/tmp/env.db")
        assert get_db_path() == Path("/tmp/env.db")
        assert get_db_path("cli.db") == Path("cli.db")

    def test_unsupported_backend(self, monkeypatch):
        monkeypatch.setenv("JOBMATCH_BACKEND", "mongo")
        with pytest.raises(SystemExit):
            get_backend()

    def test_rest_credentials_required(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        with pytest.raises(SystemExit):
            get_rest_credentials()

        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "key")
        assert get_rest_credentials() == ("https://example.supabase.co", "key")

    def test_dotenv_does_not_override(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("JOBMATCH_BACKEND=rest\nJOBMATCH_DB=from_file.db\n")
        monkeypatch.setenv("JOBMATCH_BACKEND", "sql")
        # Registered with monkeypatch so the value loaded from the file is undone
        monkeypatch.setenv("JOBMATCH_DB", "")
        monkeypatch.delenv("JOBMATCH_DB")

        load_env()

        assert get_backend() == "sql"
        assert get_db_path() == Path("from_file.db")
