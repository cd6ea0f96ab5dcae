from __future__ import annotations

from .stages import APPLICATION_FLOW_STAGES, ApplicationStatus, stage_info

INITIAL_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.APPLIED})


def is_progressive_transition(
    from_status: ApplicationStatus | None,
    to_status: ApplicationStatus,
) -> bool:
    """Whether a status change is forward movement through the process."""
    if from_status is None:
        return to_status in INITIAL_STATUSES

    to_stage = stage_info(to_status)
    if to_stage.is_terminal:
        return to_stage.is_positive
    return to_stage.order > stage_info(from_status).order


def get_stage_order(status: ApplicationStatus) -> int:
    return stage_info(status).order


def is_terminal_status(status: ApplicationStatus) -> bool:
    return stage_info(status).is_terminal


def is_positive_status(status: ApplicationStatus) -> bool:
    return stage_info(status).is_positive


def is_backward_step(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    """Non-terminal to non-terminal move that does not advance the stage order.

    Equal orders (a status re-entered) count as backward so the flow graph
    never gets a self-loop.
    """
    if is_terminal_status(from_status) or is_terminal_status(to_status):
        return False
    return get_stage_order(to_status) <= get_stage_order(from_status)


def get_possible_next_statuses(status: ApplicationStatus) -> list[ApplicationStatus]:
    current = stage_info(status)
    if current.is_terminal:
        return []

    forward = [
        s
        for s, info in APPLICATION_FLOW_STAGES.items()
        if not info.is_terminal and info.order > current.order
    ]
    # Terminal outcomes stay reachable from every open stage.
    terminal = [s for s, info in APPLICATION_FLOW_STAGES.items() if info.is_terminal]
    return forward + terminal
