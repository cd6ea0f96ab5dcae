from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from .aggregation import AggregatedEdge, edges_from_rows
from .bridging import EntityHistory, Transition, sort_transitions
from .classifier import get_stage_order, is_progressive_transition
from .observability import get_logger
from .stages import coerce_status, display_name

logger = get_logger(__name__)

REQUIRED_HISTORY_COLUMNS = ("application_id", "to_status", "occurred_at")
REQUIRED_COUNT_COLUMNS = ("to_status", "count")


def _read_table(path: str) -> pd.DataFrame:
    lowered = path.lower()
    if lowered.endswith(".csv"):
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    if lowered.endswith(".jsonl"):
        return pd.read_json(path, lines=True, dtype=False, convert_dates=False)
    if lowered.endswith(".json"):
        return pd.read_json(path, dtype=False, convert_dates=False)
    raise ValueError(f"Unsupported activity log format: {path} (expected .csv, .json or .jsonl)")


def _load_table(path: str, required: tuple[str, ...]) -> pd.DataFrame:
    if not Path(path).exists():
        raise FileNotFoundError(f"Activity log not found: {path}")
    df = _read_table(path)
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"Activity log {path} is missing columns: {missing}")
    return df


def _clean_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    text = str(value).strip()
    if text.lower() in {"", "nan", "none", "null"}:
        return ""
    return text


def _get_col(df: pd.DataFrame, col: str) -> pd.Series:
    if col in df.columns:
        return df[col]
    return pd.Series([""] * len(df), index=df.index)


def read_activity_log(path: str) -> pd.DataFrame:
    """Load status-change rows with cleaned ids/statuses and UTC timestamps.

    Row order is preserved; it breaks ties between equal timestamps.
    """
    df = _load_table(path, REQUIRED_HISTORY_COLUMNS)

    out = pd.DataFrame(index=df.index)
    out["application_id"] = df["application_id"].map(_clean_text)
    out["from_status"] = _get_col(df, "from_status").map(_clean_text)
    out["to_status"] = df["to_status"].map(_clean_text)
    occurred_text = df["occurred_at"].map(_clean_text)

    blank = (out["application_id"] == "") | (out["to_status"] == "") | (occurred_text == "")
    if blank.any():
        logger.warning(
            "Skipping activity rows without application id, target status or timestamp",
            path=path,
            rows=int(blank.sum()),
        )
        out = out[~blank].copy()
        occurred_text = occurred_text[~blank]

    out["occurred_at"] = pd.to_datetime(occurred_text, utc=True, format="ISO8601")
    return out.reset_index(drop=True)


def histories_from_frame(df: pd.DataFrame) -> list[EntityHistory]:
    histories: dict[str, EntityHistory] = {}
    for application_id, from_raw, to_raw, occurred_at in zip(
        df["application_id"], df["from_status"], df["to_status"], df["occurred_at"]
    ):
        history = histories.setdefault(application_id, EntityHistory(entity_id=application_id))
        history.transitions.append(
            Transition(
                from_status=coerce_status(from_raw) if from_raw else None,
                to_status=coerce_status(to_raw),
                occurred_at=occurred_at.to_pydatetime(),
            )
        )
    return list(histories.values())


def load_histories(path: str) -> list[EntityHistory]:
    return histories_from_frame(read_activity_log(path))


def read_transition_rows(path: str) -> list[AggregatedEdge]:
    """Load pre-aggregated ``from_status,to_status,count`` rows."""
    df = _load_table(path, REQUIRED_COUNT_COLUMNS)
    return edges_from_rows(df.to_dict("records"))


def filter_window(
    histories: Iterable[EntityHistory],
    days: int,
    now: datetime | None = None,
) -> list[EntityHistory]:
    """Keep transitions from the last ``days`` days; drop emptied applications."""
    if days < 1:
        raise ValueError("days must be >= 1")
    since = (now or datetime.now(UTC)) - timedelta(days=days)

    windowed: list[EntityHistory] = []
    for history in histories:
        kept = [t for t in history.transitions if t.occurred_at >= since]
        if kept:
            windowed.append(EntityHistory(entity_id=history.entity_id, transitions=kept))
    return windowed


def describe_transition(transition: Transition) -> str:
    target = display_name(transition.to_status)
    if transition.from_status is None:
        return f"Set initial status to {target}"
    return f"Changed status from {display_name(transition.from_status)} to {target}"


def application_status_history(history: EntityHistory) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for t in sort_transitions(history.transitions):
        entries.append(
            {
                "fromStatus": t.from_status.value if t.from_status is not None else None,
                "toStatus": t.to_status.value,
                "isProgression": is_progressive_transition(t.from_status, t.to_status),
                "stageOrder": get_stage_order(t.to_status),
                "transitionType": "update" if t.from_status is not None else "initial",
                "description": describe_transition(t),
                "transitionAt": t.occurred_at.isoformat(),
            }
        )
    return entries


def find_history(histories: Iterable[EntityHistory], application_id: str) -> EntityHistory | None:
    for history in histories:
        if history.entity_id == application_id:
            return history
    return None
