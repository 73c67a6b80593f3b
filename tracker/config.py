"""Environment-driven settings for the tracker.

TRACKER_DOTENV (path to .env, default ".env")
    If `python-dotenv` is installed, variables are loaded from this file on
    import so the CLI, scripts and API see the same database.

TRACKER_SIMILARITY_THRESHOLD (float, default 0.8)
TRACKER_SIMILARITY_LIMIT (int, default 5)
TRACKER_LOG_LEVEL (default INFO)
"""
from __future__ import annotations

import logging
import os

try:
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    load_dotenv = None  # type: ignore

if load_dotenv is not None:
    _ = load_dotenv(dotenv_path=os.getenv("TRACKER_DOTENV", ".env"))

LOGGER = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_SIMILARITY_LIMIT = 5


def similarity_threshold() -> float:
    raw = os.getenv("TRACKER_SIMILARITY_THRESHOLD")
    if not raw:
        return DEFAULT_SIMILARITY_THRESHOLD
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("config invalid TRACKER_SIMILARITY_THRESHOLD=%r using=%s", raw, DEFAULT_SIMILARITY_THRESHOLD)
        return DEFAULT_SIMILARITY_THRESHOLD
    return min(max(value, 0.0), 1.0)


def similarity_limit() -> int:
    raw = os.getenv("TRACKER_SIMILARITY_LIMIT")
    if not raw:
        return DEFAULT_SIMILARITY_LIMIT
    try:
        return max(int(raw), 1)
    except ValueError:
        LOGGER.warning("config invalid TRACKER_SIMILARITY_LIMIT=%r using=%s", raw, DEFAULT_SIMILARITY_LIMIT)
        return DEFAULT_SIMILARITY_LIMIT


def log_level() -> str:
    return os.getenv("TRACKER_LOG_LEVEL", "INFO").upper()
