from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CANONICAL_ACTIVITY_LOG_PATH = "data/activity_log.csv"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_WINDOW_DAYS = _env_int("APP_FLOW_WINDOW_DAYS", 90)
DEFAULT_STATS_WINDOW_DAYS = _env_int("APP_FLOW_STATS_WINDOW_DAYS", 90)
DEFAULT_LOG_LEVEL = os.getenv("APP_FLOW_LOG_LEVEL", "WARNING").strip() or "WARNING"


def _candidate_activity_log_paths(relative_path: str = DEFAULT_CANONICAL_ACTIVITY_LOG_PATH) -> list[Path]:
    candidates: list[Path] = []

    # Current working directory (source/dev usage).
    candidates.append(Path(relative_path))

    # Repository root when running from the source tree.
    candidates.append(Path(__file__).resolve().parents[2] / relative_path)

    deduped: list[Path] = []
    seen: set[str] = set()
    for path in candidates:
        key = str(path.resolve()) if path.is_absolute() else str(path)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(path)
    return deduped


def resolve_activity_log_path(relative_path: str = DEFAULT_CANONICAL_ACTIVITY_LOG_PATH) -> str:
    """Resolve a readable activity log path, preferring the explicit env setting."""
    explicit = os.getenv("APP_FLOW_ACTIVITY_LOG_PATH", "").strip()
    if explicit:
        return explicit

    for candidate in _candidate_activity_log_paths(relative_path):
        if candidate.exists():
            return str(candidate)

    return relative_path
