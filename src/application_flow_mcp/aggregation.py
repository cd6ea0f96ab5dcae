from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import pandas as pd

from .bridging import EntityHistory, bridge_source, count_bridged_histories, sort_transitions
from .observability import get_logger
from .stages import ApplicationStatus, coerce_status

logger = get_logger(__name__)

START_NODE_ID = "START"

_EDGE_COLUMNS = ["source", "target", "count"]


@dataclass(frozen=True)
class AggregatedEdge:
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    count: int

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"edge count must be >= 1, got {self.count}")

    @property
    def source_id(self) -> str:
        return self.from_status.value if self.from_status is not None else START_NODE_ID

    @property
    def target_id(self) -> str:
        return self.to_status.value


def _edge_frame(edges: Iterable[AggregatedEdge]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"source": e.source_id, "target": e.target_id, "count": int(e.count)} for e in edges],
        columns=_EDGE_COLUMNS,
    )


def _edges_from_frame(frame: pd.DataFrame) -> list[AggregatedEdge]:
    if frame.empty:
        return []
    # sort=False keeps first-seen edge order.
    grouped = frame.groupby(["source", "target"], as_index=False, sort=False)["count"].sum()
    return [
        AggregatedEdge(
            from_status=None if source == START_NODE_ID else ApplicationStatus(source),
            to_status=ApplicationStatus(target),
            count=int(count),
        )
        for source, target, count in zip(grouped["source"], grouped["target"], grouped["count"])
    ]


def _optional_status(value: Any) -> ApplicationStatus | None:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    if text.lower() in {"", "nan", "none", "null"} or text.upper() == START_NODE_ID:
        return None
    return coerce_status(text)


def edges_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[AggregatedEdge]:
    """Parse grouped-count rows (``fromStatus``/``toStatus``/``count``)."""
    edges: list[AggregatedEdge] = []
    for row in rows:
        raw_from = row.get("fromStatus", row.get("from_status"))
        raw_to = row.get("toStatus", row.get("to_status"))
        count = int(row.get("count", 0) or 0)
        if count <= 0:
            continue
        edges.append(
            AggregatedEdge(
                from_status=_optional_status(raw_from),
                to_status=coerce_status(raw_to),
                count=count,
            )
        )
    return edges


def bridge_aggregated_edges(edges: Iterable[AggregatedEdge]) -> list[AggregatedEdge]:
    """Re-key edges that leave a terminal stage or step backward onto START.

    Pre-aggregated rows have lost each application's chronology, so START is
    the only safe anchor. Running this on its own output changes nothing.
    """
    bridged: list[AggregatedEdge] = []
    rekeyed = 0
    for edge in edges:
        source = bridge_source(edge.from_status, edge.to_status)
        if source != edge.from_status:
            rekeyed += edge.count
        bridged.append(AggregatedEdge(from_status=source, to_status=edge.to_status, count=edge.count))

    if rekeyed:
        logger.debug("Re-keyed aggregated transitions to START", transitions=rekeyed)
    return _edges_from_frame(_edge_frame(bridged))


def aggregate_histories(histories: Iterable[EntityHistory]) -> list[AggregatedEdge]:
    counts = count_bridged_histories(histories)
    edges = [
        AggregatedEdge(from_status=source, to_status=target, count=count)
        for (source, target), count in counts.items()
    ]
    return bridge_aggregated_edges(edges)


def transition_counts(histories: Iterable[EntityHistory]) -> list[AggregatedEdge]:
    """Unbridged (from, to) counts, as the activity log's grouped query returns them."""
    raw = [
        AggregatedEdge(from_status=t.from_status, to_status=t.to_status, count=1)
        for history in histories
        for t in sort_transitions(history.transitions)
    ]
    return _edges_from_frame(_edge_frame(raw))


def total_count(edges: Iterable[AggregatedEdge]) -> int:
    return sum(edge.count for edge in edges)
