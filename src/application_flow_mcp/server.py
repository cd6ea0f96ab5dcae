from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from application_flow_mcp import __version__
from application_flow_mcp.activity_log import (
    application_status_history,
    filter_window,
    find_history,
    load_histories,
    read_transition_rows,
)
from application_flow_mcp.aggregation import transition_counts
from application_flow_mcp.bridging import EntityHistory
from application_flow_mcp.classifier import get_possible_next_statuses
from application_flow_mcp.graph import (
    START_NODE_ORDER,
    generate_sankey_data,
    generate_sankey_data_from_histories,
)
from application_flow_mcp.observability import get_logger, setup_logging
from application_flow_mcp.runtime_config import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_STATS_WINDOW_DAYS,
    DEFAULT_WINDOW_DAYS,
    resolve_activity_log_path,
)
from application_flow_mcp.stages import (
    APPLICATION_FLOW_STAGES,
    STAGE_GROUPS,
    coerce_status,
    display_name,
    stage_info,
)
from application_flow_mcp.stats import conversion_rates, hiring_success_stats, transition_stats

logger = get_logger(__name__)

mcp = FastMCP("application-flow-mcp")

DEFAULT_ACTIVITY_LOG_PATH = resolve_activity_log_path()
SUPPORTED_SOURCES = {"history", "aggregated"}

_GROUP_BY_STATUS = {status: group for group, members in STAGE_GROUPS.items() for status in members}


def _log_path(activity_log_path: str) -> str:
    return activity_log_path.strip() or DEFAULT_ACTIVITY_LOG_PATH


def _validate_days(days: int) -> int:
    if int(days) < 1:
        raise ValueError("days must be >= 1")
    return int(days)


def _windowed_histories(activity_log_path: str, days: int) -> list[EntityHistory]:
    return filter_window(load_histories(activity_log_path), days)


@mcp.tool()
def get_application_flow(
    activity_log_path: str = "",
    days: int = DEFAULT_WINDOW_DAYS,
    source: str = "history",
) -> dict[str, Any]:
    """Sankey nodes/links for the application status flow, with transition stats.

    source="history" reads per-application status changes and bridges each
    application's chronology; source="aggregated" reads grouped
    from_status,to_status,count rows (no time window can be applied).
    """
    path = _log_path(activity_log_path)
    window = _validate_days(days)
    kind = source.strip().lower()
    if kind not in SUPPORTED_SOURCES:
        raise ValueError(f"source must be one of {sorted(SUPPORTED_SOURCES)}")

    if kind == "aggregated":
        raw_edges = read_transition_rows(path)
        graph = generate_sankey_data(raw_edges)
        applications = None
    else:
        histories = _windowed_histories(path, window)
        graph = generate_sankey_data_from_histories(histories)
        raw_edges = transition_counts(histories)
        applications = len(histories)

    logger.info(
        "Built application flow",
        source=kind,
        days=window,
        nodes=len(graph.nodes),
        links=len(graph.links),
    )
    return {
        "query": {
            "activity_log_path": path,
            "source": kind,
            "days": window,
            "window_applied": kind == "history",
        },
        "applications": applications,
        "sankeyData": graph.as_dict(),
        "transitionStats": transition_stats(raw_edges, window),
        "period": f"{window} days",
    }


@mcp.tool()
def get_stage_model() -> dict[str, Any]:
    """Lifecycle stages with their chart order, terminal and outcome flags."""
    stages = []
    for status, info in APPLICATION_FLOW_STAGES.items():
        stages.append(
            {
                "status": status.value,
                "name": display_name(status),
                "order": info.order,
                "isTerminal": info.is_terminal,
                "isPositive": info.is_positive,
                "group": _GROUP_BY_STATUS.get(status),
            }
        )
    return {
        "version": __version__,
        "startNodeOrder": START_NODE_ORDER,
        "stages": stages,
        "groups": {name: [s.value for s in members] for name, members in STAGE_GROUPS.items()},
    }


@mcp.tool()
def get_next_statuses(status: str) -> dict[str, Any]:
    """Statuses an application may move to next from the given status."""
    current = coerce_status(status)
    return {
        "status": current.value,
        "isTerminal": stage_info(current).is_terminal,
        "nextStatuses": [s.value for s in get_possible_next_statuses(current)],
    }


@mcp.tool()
def get_conversion_rates(
    activity_log_path: str = "",
    days: int = DEFAULT_STATS_WINDOW_DAYS,
) -> dict[str, Any]:
    """Per-stage progression versus drop-off over the recorded transitions."""
    window = _validate_days(days)
    histories = _windowed_histories(_log_path(activity_log_path), window)
    return {
        "period": f"{window} days",
        "stages": conversion_rates(transition_counts(histories)),
    }


@mcp.tool()
def get_hiring_success_stats(
    activity_log_path: str = "",
    days: int = DEFAULT_STATS_WINDOW_DAYS,
) -> dict[str, Any]:
    """Applications, hires, hiring rate, time to hire and main drop-off outcome."""
    window = _validate_days(days)
    histories = _windowed_histories(_log_path(activity_log_path), window)
    stats = hiring_success_stats(histories)
    stats["period"] = f"{window} days"
    return stats


@mcp.tool()
def get_application_status_history(
    application_id: str,
    activity_log_path: str = "",
) -> dict[str, Any]:
    """Chronological status changes of one application, annotated for display."""
    app_id = application_id.strip()
    if not app_id:
        raise ValueError("application_id is required")

    history = find_history(load_histories(_log_path(activity_log_path)), app_id)
    if history is None:
        raise ValueError(f"application_id='{app_id}' not found in activity log")
    return {
        "application_id": app_id,
        "history": application_status_history(history),
    }


def main() -> None:
    setup_logging(DEFAULT_LOG_LEVEL)
    mcp.run()


if __name__ == "__main__":
    main()
