from __future__ import annotations

import pytest

from rangelab.core.ledger import HandLedger, replay_history
from rangelab.core.models import PlayerAction, StreetMarker


def test_call_without_amount_inherits_outstanding_bet() -> None:
    ledger = HandLedger(100)
    ledger.apply(PlayerAction("BTN", "b", 33.0, 7.0))
    assert ledger.apply(PlayerAction("BB", "c")) == 7.0
    assert ledger.pot == 14.0
    assert ledger.seats["BB"].stack == 93.0


def test_call_with_nothing_outstanding_is_free() -> None:
    ledger = HandLedger(100)
    assert ledger.apply(PlayerAction("BB", "c")) == 0.0
    assert ledger.pot == 0.0
    assert ledger.seats["BB"].last_bet is None


def test_street_marker_clears_bets_and_last_actions() -> None:
    ledger = HandLedger(50)
    ledger.apply(PlayerAction("CO", "b", None, 3.0))
    ledger.apply(PlayerAction("BB", "f"))
    ledger.apply(StreetMarker("t"))
    assert ledger.street == "t"
    assert ledger.outstanding_bet() == 0.0
    assert ledger.seats["CO"].last_action is None
    assert ledger.seats["BB"].in_hand is False


def test_unknown_position_is_seeded_with_effective_stack() -> None:
    ledger = HandLedger(40)
    ledger.apply(PlayerAction("HJ", "b", None, 2.0))
    assert ledger.seats["HJ"].stack == 38.0


def test_negative_stack_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    ledger = HandLedger(5)
    with caplog.at_level("WARNING"):
        ledger.apply(PlayerAction("BTN", "a", "AI", 8.0))
    assert ledger.seats["BTN"].stack == -3.0
    assert "went negative" in caplog.text


def test_replay_history_accumulates_contributions() -> None:
    ledger = replay_history(
        100,
        [PlayerAction("BTN", "r", None, 2.5), PlayerAction("BB", "c", None, 1.5), StreetMarker("f")],
    )
    assert ledger.pot == 4.0
    assert ledger.seats["BTN"].contributed == 2.5
