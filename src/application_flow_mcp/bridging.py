"""Per-application bridging of raw status histories.

A raw history can leave a terminal status (re-applying after a rejection,
ghosted then withdrawn, ...). Drawn as-is, such edges would flow out of an
outcome node. Bridging redraws them from the application's last open stage
before its first outcome, or from START when there is none.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from .classifier import is_backward_step, is_terminal_status
from .stages import ApplicationStatus

EdgeKey = tuple[ApplicationStatus | None, ApplicationStatus]


@dataclass(frozen=True)
class Transition:
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    occurred_at: datetime


@dataclass
class EntityHistory:
    entity_id: str
    transitions: list[Transition] = field(default_factory=list)


@dataclass(frozen=True)
class _AnchorScan:
    anchor: ApplicationStatus | None = None
    closed: bool = False


def bridge_source(
    from_status: ApplicationStatus | None,
    to_status: ApplicationStatus,
    anchor: ApplicationStatus | None = None,
    *,
    repair_backward: bool = True,
) -> ApplicationStatus | None:
    """Return the source an edge should be drawn from; None means START.

    With full chronology the caller passes the application's anchor and
    leaves backward steps to the aggregate pass (``repair_backward=False``).
    Pre-aggregated edges have no chronology, so the anchor is START.
    """
    if from_status is None:
        return None
    if is_terminal_status(from_status):
        return anchor
    if repair_backward and is_backward_step(from_status, to_status):
        return None
    return from_status


def sort_transitions(transitions: Iterable[Transition]) -> list[Transition]:
    # sorted() is stable: equal timestamps keep activity log order.
    return sorted(transitions, key=lambda t: t.occurred_at)


def _advance(scan: _AnchorScan, transition: Transition) -> _AnchorScan:
    if scan.closed:
        return scan
    if is_terminal_status(transition.to_status):
        return _AnchorScan(anchor=scan.anchor, closed=True)
    return _AnchorScan(anchor=transition.to_status)


def bridge_history(history: EntityHistory) -> list[EdgeKey]:
    """Bridged (source, target) pairs for one application, in time order.

    The anchor is the last open stage reached so far, frozen at the first
    outcome. A history that opens on a terminal source has no anchor yet and
    bridges to START.
    """
    scan = _AnchorScan()
    bridged: list[EdgeKey] = []
    for t in sort_transitions(history.transitions):
        source = bridge_source(t.from_status, t.to_status, scan.anchor, repair_backward=False)
        bridged.append((source, t.to_status))
        scan = _advance(scan, t)
    return bridged


def count_bridged_histories(histories: Iterable[EntityHistory]) -> Counter[EdgeKey]:
    counts: Counter[EdgeKey] = Counter()
    for history in histories:
        counts.update(bridge_history(history))
    return counts
