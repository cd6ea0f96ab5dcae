from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .aggregation import (
    START_NODE_ID,
    AggregatedEdge,
    aggregate_histories,
    bridge_aggregated_edges,
    edges_from_rows,
)
from .bridging import EntityHistory
from .classifier import is_progressive_transition
from .stages import ApplicationStatus, display_name, stage_info

START_NODE_ORDER = -10


@dataclass(frozen=True)
class SankeyNode:
    id: str
    name: str
    order: int
    is_terminal: bool
    is_positive: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "isTerminal": self.is_terminal,
            "isPositive": self.is_positive,
        }


@dataclass(frozen=True)
class SankeyLink:
    source: str
    target: str
    value: int
    is_progression: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "value": self.value,
            "isProgression": self.is_progression,
        }


@dataclass
class SankeyGraph:
    nodes: list[SankeyNode] = field(default_factory=list)
    links: list[SankeyLink] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.as_dict() for node in self.nodes],
            "links": [link.as_dict() for link in self.links],
        }


def _status_node(status: ApplicationStatus) -> SankeyNode:
    info = stage_info(status)
    return SankeyNode(
        id=status.value,
        name=display_name(status),
        order=info.order,
        is_terminal=info.is_terminal,
        is_positive=info.is_positive,
    )


START_NODE = SankeyNode(
    id=START_NODE_ID,
    name="start",
    order=START_NODE_ORDER,
    is_terminal=False,
    is_positive=True,
)


def build_sankey_graph(edges: Iterable[AggregatedEdge]) -> SankeyGraph:
    """Turn bridged edges into chart nodes (ascending stage order) and links."""
    edges = list(edges)
    nodes: dict[str, SankeyNode] = {}

    for edge in edges:
        nodes.setdefault(edge.target_id, _status_node(edge.to_status))
        if edge.from_status is not None:
            nodes.setdefault(edge.source_id, _status_node(edge.from_status))
        else:
            nodes.setdefault(START_NODE_ID, START_NODE)

    links = [
        SankeyLink(
            source=edge.source_id,
            target=edge.target_id,
            value=edge.count,
            is_progression=is_progressive_transition(edge.from_status, edge.to_status),
        )
        for edge in edges
    ]
    return SankeyGraph(
        nodes=sorted(nodes.values(), key=lambda node: node.order),
        links=links,
    )


def generate_sankey_data(rows: Iterable[AggregatedEdge | Mapping[str, Any]]) -> SankeyGraph:
    """Graph from pre-aggregated transition counts (a grouped count query)."""
    edges: list[AggregatedEdge] = []
    for row in rows:
        if isinstance(row, AggregatedEdge):
            edges.append(row)
        else:
            edges.extend(edges_from_rows([row]))
    return build_sankey_graph(bridge_aggregated_edges(edges))


def generate_sankey_data_from_histories(histories: Iterable[EntityHistory]) -> SankeyGraph:
    return build_sankey_graph(aggregate_histories(histories))
