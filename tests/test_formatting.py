from __future__ import annotations

import pytest

from rangelab.core.formatting import (
    action_text,
    ev_label,
    format_card,
    format_cards,
    format_number,
    option_id,
    option_label,
    round_to_nearest_half,
    sizing_label,
    street_name,
)
from rangelab.core.models import ActionOption


@pytest.mark.parametrize(
    ("value", "expected"),
    [(4.24, 4.0), (4.25, 4.5), (4.75, 5.0), (5.0, 5.0), (0.1, 0.0), (20.1, 20.0), (1.8, 2.0)],
)
def test_round_to_nearest_half_goes_up_on_quarters(value: float, expected: float) -> None:
    assert round_to_nearest_half(value) == expected


def test_format_number_drops_trailing_zeros() -> None:
    assert format_number(5.0) == "5"
    assert format_number(2.5) == "2.5"
    assert format_number(1.25) == "1.25"


def test_cards_render_with_suit_symbols() -> None:
    assert format_card("Ah") == "A♥"
    assert format_card("Td") == "T♦"
    assert format_cards(["Ks", "2c"]) == ["K♠", "2♣"]
    assert format_card("X") == "X"


def test_street_names() -> None:
    assert street_name("p") == "Preflop"
    assert street_name("r") == "River"
    assert street_name("?") == "?"


def test_sizing_labels() -> None:
    assert sizing_label(33.0) == "33%"
    assert sizing_label("pot") == "POT"
    assert sizing_label("AI") == "ALL-IN"
    assert sizing_label("3X") == "3x"
    assert sizing_label(None) is None


def test_option_ids_combine_action_and_sizing() -> None:
    assert option_id(ActionOption("b", 33.0, 1.8)) == "b33"
    assert option_id(ActionOption("b", "pot")) == "bpot"
    assert option_id(ActionOption("r", "3x", 60.3)) == "r3x"
    assert option_id(ActionOption("a", "AI", 100.0)) == "aAI"
    assert option_id(ActionOption("c", None, 5.0)) == "c"
    assert option_id(ActionOption("b", None, 5.0)) == "b5"
    assert option_id(ActionOption("r", None, 12.5)) == "r12.5"
    assert option_id(ActionOption("b")) == "b"
    assert option_id(ActionOption("x")) == "x"


def test_option_labels() -> None:
    assert option_label(ActionOption("x")) == "CHECK"
    assert option_label(ActionOption("f")) == "FOLD"
    assert option_label(ActionOption("a", "AI", 97.5)) == "ALL-IN"
    assert option_label(ActionOption("c", None, 4.8)) == "CALL 5BB"
    assert option_label(ActionOption("c")) == "CALL"
    assert option_label(ActionOption("b", 33.0, 1.8)) == "BET 33%"
    assert option_label(ActionOption("b", "pot", 9.0)) == "BET POT"
    assert option_label(ActionOption("r", "3x", 60.3)) == "RAISE 3x"
    assert option_label(ActionOption("b", None, 5.0)) == "BET 5BB"
    assert option_label(ActionOption("r", "ai")) == "ALL-IN"


def test_action_text_uses_rounded_amounts() -> None:
    assert action_text("b", 5.0) == "Bets 5bb"
    assert action_text("c", 7.0) == "Calls 7bb"
    assert action_text("r", 4.25) == "Raises 4.5bb"
    assert action_text("c") == "Calls"
    assert action_text("x") == "Checks"
    assert action_text("f") == "Folds"


def test_ev_label_sign() -> None:
    assert ev_label(1.1) == "+1.1bb"
    assert ev_label(0.0) == "+0.0bb"
    assert ev_label(-0.3) == "-0.3bb"
