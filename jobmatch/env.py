import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/jobmatch.db"
DEFAULT_LOG_DIR = "logs"
BACKENDS = ("sql", "rest")


def load_env() -> None:
    """Load .env from project root if present.
    Values already set in the environment win over the file.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def get_backend() -> str:
    backend = os.getenv("JOBMATCH_BACKEND", "sql").strip().lower()
    if backend not in BACKENDS:
        raise SystemExit(f"Unsupported JOBMATCH_BACKEND '{backend}'. Use one of: {', '.join(BACKENDS)}")
    return backend


def get_db_path(override: Optional[str] = None) -> Path:
    return Path(override or os.getenv("JOBMATCH_DB") or DEFAULT_DB_PATH)


def get_log_level() -> str:
    return os.getenv("JOBMATCH_LOG_LEVEL", "INFO").upper()


def get_log_dir() -> Path:
    return Path(os.getenv("JOBMATCH_LOG_DIR") or DEFAULT_LOG_DIR)


def get_rest_credentials() -> tuple[str, str]:
    """Base URL and service key for the hosted backend."""
    url = os.getenv("SUPABASE_URL", "").strip()
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
    if not url:
        raise SystemExit("SUPABASE_URL not set. Set env var or add it to .env.")
    if not key:
        raise SystemExit("SUPABASE_SERVICE_ROLE_KEY not set. Set env var or add it to .env.")
    return url, key
