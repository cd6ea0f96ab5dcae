"""Transition, conversion and hiring statistics.

These work on raw (unbridged) transition counts: they describe what users
actually recorded, not the repaired flow drawn in the chart.
"""

from __future__ import annotations

from typing import Any, Iterable

import pandas as pd

from .aggregation import AggregatedEdge, transition_counts
from .bridging import EntityHistory, sort_transitions
from .classifier import get_stage_order, is_progressive_transition
from .stages import NEGATIVE_OUTCOMES, ApplicationStatus

_FRAME_COLUMNS = ["from_status", "to_status", "count", "is_progression"]


def _transitions_frame(edges: Iterable[AggregatedEdge]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "from_status": e.from_status.value if e.from_status is not None else "",
                "to_status": e.to_status.value,
                "count": int(e.count),
                "is_progression": is_progressive_transition(e.from_status, e.to_status),
            }
            for e in edges
        ],
        columns=_FRAME_COLUMNS,
    )


def _rate(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def final_statuses(edges: Iterable[AggregatedEdge]) -> dict[str, int]:
    frame = _transitions_frame(edges)
    if frame.empty:
        return {}
    grouped = frame.groupby("to_status", sort=False)["count"].sum()
    return {str(status): int(count) for status, count in grouped.items()}


def transition_stats(edges: Iterable[AggregatedEdge], days: int) -> dict[str, Any]:
    edges = list(edges)
    frame = _transitions_frame(edges)
    total = int(frame["count"].sum())
    progressive = int(frame.loc[frame["is_progression"].astype(bool), "count"].sum())
    return {
        "totalTransitions": total,
        "progressiveTransitions": progressive,
        "conversionRate": _rate(progressive, total),
        "finalStatuses": final_statuses(edges),
        "period": f"{days} days",
    }


def conversion_rates(edges: Iterable[AggregatedEdge]) -> list[dict[str, Any]]:
    """How often each stage led to forward progress versus a drop-off."""
    frame = _transitions_frame(edges)
    frame = frame[frame["from_status"] != ""]
    if frame.empty:
        return []

    frame = frame.assign(progressed=frame["count"].where(frame["is_progression"].astype(bool), 0))
    grouped = frame.groupby("from_status", sort=False).agg(
        applications_at_stage=("count", "sum"),
        progressed_to_next=("progressed", "sum"),
    )

    rows: list[dict[str, Any]] = []
    for stage, row in grouped.iterrows():
        at_stage = int(row["applications_at_stage"])
        progressed = int(row["progressed_to_next"])
        if at_stage <= 0:
            continue
        rows.append(
            {
                "stage": str(stage),
                "applicationsAtStage": at_stage,
                "progressedToNext": progressed,
                "conversionRate": _rate(progressed, at_stage),
                "droppedOff": at_stage - progressed,
            }
        )
    return sorted(rows, key=lambda r: get_stage_order(ApplicationStatus(r["stage"])))


def _days_to_hire(history: EntityHistory) -> float | None:
    ordered = sort_transitions(history.transitions)
    accepted = [t for t in ordered if t.to_status == ApplicationStatus.ACCEPTED]
    if not accepted:
        return None
    applied = [t for t in ordered if t.to_status == ApplicationStatus.APPLIED]
    started_at = (applied or ordered)[0].occurred_at
    return (accepted[-1].occurred_at - started_at).total_seconds() / 86400


def most_common_drop_off_stage(finals: dict[str, int]) -> str | None:
    best: str | None = None
    best_count = 0
    for status in NEGATIVE_OUTCOMES:
        count = finals.get(status.value, 0)
        if count > best_count:
            best, best_count = status.value, count
    return best


def hiring_success_stats(histories: Iterable[EntityHistory]) -> dict[str, Any]:
    histories = list(histories)
    edges = transition_counts(histories)
    finals = final_statuses(edges)

    total_applications = sum(e.count for e in edges if e.from_status is None)
    total_hired = finals.get(ApplicationStatus.ACCEPTED.value, 0)

    hire_days = [d for d in (_days_to_hire(h) for h in histories) if d is not None]
    average_time_to_hire = float(pd.Series(hire_days, dtype=float).mean()) if hire_days else 0.0

    return {
        "totalApplications": total_applications,
        "totalHired": total_hired,
        "hiringRate": _rate(total_hired, total_applications),
        "averageTimeToHire": average_time_to_hire,
        "mostCommonDropOffStage": most_common_drop_off_stage(finals),
    }
