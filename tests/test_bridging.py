from __future__ import annotations

from datetime import UTC, datetime, timedelta

from application_flow_mcp import bridging
from application_flow_mcp.bridging import EntityHistory, Transition
from application_flow_mcp.stages import ApplicationStatus as S

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _history(entity_id: str, *steps: tuple[S | None, S], start: datetime = T0) -> EntityHistory:
    return EntityHistory(
        entity_id=entity_id,
        transitions=[
            Transition(from_status=src, to_status=dst, occurred_at=start + timedelta(days=i))
            for i, (src, dst) in enumerate(steps)
        ],
    )


def test_forward_history_is_unchanged() -> None:
    history = _history(
        "app-1",
        (None, S.APPLIED),
        (S.APPLIED, S.PHONE_SCREEN),
        (S.PHONE_SCREEN, S.OFFER_RECEIVED),
        (S.OFFER_RECEIVED, S.ACCEPTED),
    )
    assert bridging.bridge_history(history) == [
        (None, S.APPLIED),
        (S.APPLIED, S.PHONE_SCREEN),
        (S.PHONE_SCREEN, S.OFFER_RECEIVED),
        (S.OFFER_RECEIVED, S.ACCEPTED),
    ]


def test_reapplying_after_rejection_bridges_from_last_open_stage() -> None:
    history = _history(
        "app-1",
        (None, S.APPLIED),
        (S.APPLIED, S.REJECTED),
        (S.REJECTED, S.PHONE_SCREEN),
    )
    assert bridging.bridge_history(history) == [
        (None, S.APPLIED),
        (S.APPLIED, S.REJECTED),
        (S.APPLIED, S.PHONE_SCREEN),
    ]


def test_double_terminal_bridges_second_outcome() -> None:
    history = _history(
        "app-1",
        (None, S.APPLIED),
        (S.APPLIED, S.GHOSTED),
        (S.GHOSTED, S.WITHDRAWN),
    )
    assert bridging.bridge_history(history)[-1] == (S.APPLIED, S.WITHDRAWN)


def test_anchor_is_fixed_at_first_outcome() -> None:
    # PHONE_SCREEN is reached only after the first outcome, so it is not the anchor.
    history = _history(
        "app-1",
        (None, S.APPLIED),
        (S.APPLIED, S.UNDER_REVIEW),
        (S.UNDER_REVIEW, S.REJECTED),
        (S.REJECTED, S.PHONE_SCREEN),
        (S.PHONE_SCREEN, S.GHOSTED),
        (S.GHOSTED, S.WITHDRAWN),
    )
    bridged = bridging.bridge_history(history)
    assert bridged[3] == (S.UNDER_REVIEW, S.PHONE_SCREEN)
    assert bridged[4] == (S.PHONE_SCREEN, S.GHOSTED)
    assert bridged[5] == (S.UNDER_REVIEW, S.WITHDRAWN)


def test_history_starting_in_terminal_bridges_to_start() -> None:
    history = _history("app-1", (S.REJECTED, S.APPLIED), (S.APPLIED, S.GHOSTED))
    assert bridging.bridge_history(history) == [(None, S.APPLIED), (S.APPLIED, S.GHOSTED)]


def test_backward_steps_are_left_for_the_aggregate_pass() -> None:
    history = _history("app-1", (None, S.PHONE_SCREEN), (S.PHONE_SCREEN, S.APPLIED))
    assert bridging.bridge_history(history)[-1] == (S.PHONE_SCREEN, S.APPLIED)


def test_unsorted_input_is_sorted_by_time() -> None:
    history = EntityHistory(
        entity_id="app-1",
        transitions=[
            Transition(S.APPLIED, S.REJECTED, T0 + timedelta(days=2)),
            Transition(S.REJECTED, S.PHONE_SCREEN, T0 + timedelta(days=3)),
            Transition(None, S.APPLIED, T0),
        ],
    )
    assert bridging.bridge_history(history) == [
        (None, S.APPLIED),
        (S.APPLIED, S.REJECTED),
        (S.APPLIED, S.PHONE_SCREEN),
    ]


def test_equal_timestamps_keep_log_order() -> None:
    history = EntityHistory(
        entity_id="app-1",
        transitions=[
            Transition(None, S.APPLIED, T0),
            Transition(S.APPLIED, S.UNDER_REVIEW, T0 + timedelta(hours=1)),
            Transition(S.UNDER_REVIEW, S.REJECTED, T0 + timedelta(hours=1)),
            Transition(S.REJECTED, S.PHONE_SCREEN, T0 + timedelta(hours=2)),
        ],
    )
    ordered = bridging.sort_transitions(history.transitions)
    assert [t.to_status for t in ordered] == [S.APPLIED, S.UNDER_REVIEW, S.REJECTED, S.PHONE_SCREEN]
    assert bridging.bridge_history(history)[-1] == (S.UNDER_REVIEW, S.PHONE_SCREEN)


def test_outcome_without_prior_open_stage_bridges_to_start() -> None:
    history = _history("app-1", (None, S.GHOSTED), (S.GHOSTED, S.WITHDRAWN))
    assert bridging.bridge_history(history) == [(None, S.GHOSTED), (None, S.WITHDRAWN)]


def test_bridge_source_rules() -> None:
    assert bridging.bridge_source(None, S.APPLIED) is None
    assert bridging.bridge_source(S.REJECTED, S.APPLIED, S.UNDER_REVIEW) == S.UNDER_REVIEW
    assert bridging.bridge_source(S.REJECTED, S.GHOSTED) is None
    assert bridging.bridge_source(S.PHONE_SCREEN, S.APPLIED) is None
    assert bridging.bridge_source(S.PHONE_SCREEN, S.APPLIED, repair_backward=False) == S.PHONE_SCREEN
    assert bridging.bridge_source(S.APPLIED, S.REJECTED) == S.APPLIED


def test_count_bridged_histories_sums_across_applications() -> None:
    histories = [
        _history("a", (None, S.APPLIED), (S.APPLIED, S.REJECTED)),
        _history("b", (None, S.APPLIED), (S.APPLIED, S.REJECTED), (S.REJECTED, S.WITHDRAWN)),
    ]
    counts = bridging.count_bridged_histories(histories)
    assert counts[(None, S.APPLIED)] == 2
    assert counts[(S.APPLIED, S.REJECTED)] == 2
    assert counts[(S.APPLIED, S.WITHDRAWN)] == 1
    assert sum(counts.values()) == 5
