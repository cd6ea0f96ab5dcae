"""Application lifecycle stages.

The stage table is the single source of ordering for every status. It is
checked against the enum when this module is imported, so a status added to
one but not the other fails at startup instead of skewing chart ordering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ApplicationStatus(str, Enum):
    DRAFT = "DRAFT"
    APPLIED = "APPLIED"
    CONFIRMATION_RECEIVED = "CONFIRMATION_RECEIVED"
    UNDER_REVIEW = "UNDER_REVIEW"
    PHONE_SCREEN = "PHONE_SCREEN"
    TECHNICAL_INTERVIEW = "TECHNICAL_INTERVIEW"
    ONSITE_INTERVIEW = "ONSITE_INTERVIEW"
    REFERENCE_CHECK = "REFERENCE_CHECK"
    OFFER_RECEIVED = "OFFER_RECEIVED"
    OFFER_NEGOTIATING = "OFFER_NEGOTIATING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    GHOSTED = "GHOSTED"
    POSITION_FILLED = "POSITION_FILLED"


@dataclass(frozen=True)
class StageInfo:
    order: int
    is_terminal: bool
    is_positive: bool


class UnknownStatusError(ValueError):
    """Raised when a value does not name a known application status."""


APPLICATION_FLOW_STAGES: Mapping[ApplicationStatus, StageInfo] = MappingProxyType(
    {
        ApplicationStatus.DRAFT: StageInfo(order=0, is_terminal=False, is_positive=True),
        ApplicationStatus.APPLIED: StageInfo(order=1, is_terminal=False, is_positive=True),
        ApplicationStatus.CONFIRMATION_RECEIVED: StageInfo(order=2, is_terminal=False, is_positive=True),
        ApplicationStatus.UNDER_REVIEW: StageInfo(order=3, is_terminal=False, is_positive=True),
        ApplicationStatus.PHONE_SCREEN: StageInfo(order=4, is_terminal=False, is_positive=True),
        ApplicationStatus.TECHNICAL_INTERVIEW: StageInfo(order=5, is_terminal=False, is_positive=True),
        ApplicationStatus.ONSITE_INTERVIEW: StageInfo(order=6, is_terminal=False, is_positive=True),
        ApplicationStatus.REFERENCE_CHECK: StageInfo(order=7, is_terminal=False, is_positive=True),
        ApplicationStatus.OFFER_RECEIVED: StageInfo(order=8, is_terminal=False, is_positive=True),
        ApplicationStatus.OFFER_NEGOTIATING: StageInfo(order=9, is_terminal=False, is_positive=True),
        ApplicationStatus.ACCEPTED: StageInfo(order=10, is_terminal=True, is_positive=True),
        # Negative outcomes can happen at any stage; orders are display-only.
        ApplicationStatus.REJECTED: StageInfo(order=-1, is_terminal=True, is_positive=False),
        ApplicationStatus.WITHDRAWN: StageInfo(order=-2, is_terminal=True, is_positive=False),
        ApplicationStatus.GHOSTED: StageInfo(order=-3, is_terminal=True, is_positive=False),
        ApplicationStatus.POSITION_FILLED: StageInfo(order=-4, is_terminal=True, is_positive=False),
    }
)

PROGRESSION_SEQUENCE: tuple[ApplicationStatus, ...] = (
    ApplicationStatus.DRAFT,
    ApplicationStatus.APPLIED,
    ApplicationStatus.CONFIRMATION_RECEIVED,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.PHONE_SCREEN,
    ApplicationStatus.TECHNICAL_INTERVIEW,
    ApplicationStatus.ONSITE_INTERVIEW,
    ApplicationStatus.REFERENCE_CHECK,
    ApplicationStatus.OFFER_RECEIVED,
    ApplicationStatus.OFFER_NEGOTIATING,
    ApplicationStatus.ACCEPTED,
)

NEGATIVE_OUTCOMES: tuple[ApplicationStatus, ...] = (
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
    ApplicationStatus.GHOSTED,
    ApplicationStatus.POSITION_FILLED,
)

STAGE_GROUPS: Mapping[str, tuple[ApplicationStatus, ...]] = MappingProxyType(
    {
        "Initial": (ApplicationStatus.DRAFT, ApplicationStatus.APPLIED),
        "Early Stage": (ApplicationStatus.CONFIRMATION_RECEIVED, ApplicationStatus.UNDER_REVIEW),
        "Screening": (ApplicationStatus.PHONE_SCREEN,),
        "Interviews": (ApplicationStatus.TECHNICAL_INTERVIEW, ApplicationStatus.ONSITE_INTERVIEW),
        "Final Steps": (
            ApplicationStatus.REFERENCE_CHECK,
            ApplicationStatus.OFFER_RECEIVED,
            ApplicationStatus.OFFER_NEGOTIATING,
        ),
        "Outcomes": (ApplicationStatus.ACCEPTED,) + NEGATIVE_OUTCOMES,
    }
)


def stage_info(status: ApplicationStatus) -> StageInfo:
    try:
        return APPLICATION_FLOW_STAGES[status]
    except KeyError:
        raise UnknownStatusError(f"Unknown application status: {status!r}") from None


def coerce_status(value: Any) -> ApplicationStatus:
    """Parse a status value from the activity log or a tool argument."""
    if isinstance(value, ApplicationStatus):
        return value
    text = str(value or "").strip().upper()
    try:
        return ApplicationStatus(text)
    except ValueError:
        raise UnknownStatusError(f"Unknown application status: {value!r}") from None


def display_name(status: ApplicationStatus) -> str:
    return status.value.replace("_", " ").lower()


def _validate_stage_table() -> None:
    missing = [s.value for s in ApplicationStatus if s not in APPLICATION_FLOW_STAGES]
    if missing:
        raise RuntimeError(f"Stage table is missing statuses: {missing}")

    orders = [APPLICATION_FLOW_STAGES[s].order for s in PROGRESSION_SEQUENCE]
    if orders[0] != 0 or any(b <= a for a, b in zip(orders, orders[1:])):
        raise RuntimeError(f"Progression orders must increase strictly from 0: {orders}")

    positive_terminals = [
        s for s, info in APPLICATION_FLOW_STAGES.items() if info.is_terminal and info.is_positive
    ]
    if positive_terminals != [ApplicationStatus.ACCEPTED]:
        raise RuntimeError(f"ACCEPTED must be the only positive terminal, got {positive_terminals}")

    negative_orders = [APPLICATION_FLOW_STAGES[s].order for s in NEGATIVE_OUTCOMES]
    if any(o >= 0 for o in negative_orders) or len(set(negative_orders)) != len(negative_orders):
        raise RuntimeError(f"Negative outcomes need distinct negative orders: {negative_orders}")
    for status in NEGATIVE_OUTCOMES:
        info = APPLICATION_FLOW_STAGES[status]
        if not info.is_terminal or info.is_positive:
            raise RuntimeError(f"{status.value} must be a negative terminal stage")


_validate_stage_table()
