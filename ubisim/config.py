import os
from dotenv import load_dotenv

load_dotenv()

# Eligibility gate: a model needs at least this many anchor tests passing.
MIN_ANCHORS_TO_PASS = 4

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def get_yield_between_tests() -> bool:
    """
    Return whether incremental suite runs yield to the event loop between tests.

    Reads UBISIM_YIELD_BETWEEN_TESTS (default: enabled).
    """
    raw = os.environ.get("UBISIM_YIELD_BETWEEN_TESTS", "true").strip().lower()
    return raw in _TRUTHY


def get_log_level() -> str:
    """Return the log level name for entry points (UBISIM_LOG_LEVEL, default INFO)."""
    return os.environ.get("UBISIM_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def get_cors_origins() -> list[str]:
    """Return allowed CORS origins from BACKEND_CORS_ORIGINS (comma-separated), or ["*"]."""
    origins_env = os.environ.get("BACKEND_CORS_ORIGINS")
    if origins_env:
        origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        if origins:
            return origins
    return ["*"]
