from __future__ import annotations

import pytest

from rangelab.core.models import (
    ActionOption,
    PlayerAction,
    Spot,
    SpotFormatError,
    StreetMarker,
    decode_history_entry,
    decode_option,
    is_number,
)


def _raw_spot(**overrides):
    raw = {
        "id": "m1",
        "st": 100,
        "fmt": "6m",
        "str": "f",
        "hero": {"pos": "BTN", "hand": ["Ah", "Kd"]},
        "v": ["BB"],
        "brd": ["2c", "7d", "Js"],
        "pot": 6.5,
        "hist": [["BTN", "r", "2.5x", 2.5], ["BB", "c", None, 1.5], ["-", "f"], ["BB", "x"]],
        "opts": [["x"], ["b", 33, 2.1]],
        "sol": {"b": 1, "ev": [0.4, 0.6]},
    }
    raw.update(overrides)
    return raw


def test_is_number_rejects_bools() -> None:
    assert is_number(3)
    assert is_number(2.5)
    assert not is_number(True)
    assert not is_number("3")


def test_decode_street_marker() -> None:
    assert decode_history_entry(["-", "t"]) == StreetMarker("t")
    with pytest.raises(SpotFormatError):
        decode_history_entry(["-", "x"])


def test_decode_full_action() -> None:
    entry = decode_history_entry(["BTN", "b", 33, 5])
    assert entry == PlayerAction("BTN", "b", 33.0, 5.0)
    assert entry.contributes


def test_decode_short_action_has_no_amount() -> None:
    entry = decode_history_entry(["BB", "c"])
    assert isinstance(entry, PlayerAction)
    assert entry.amount is None
    assert entry.sizing_ref is None


def test_decode_legacy_three_slot_forms() -> None:
    assert decode_history_entry(["SB", "r", 2]).amount == 2.0
    legacy = decode_history_entry(["SB", "r", "3x"])
    assert legacy.sizing_ref == "3x"
    assert legacy.amount is None


@pytest.mark.parametrize(
    "raw",
    [["BTN"], ["BTN", "b", 33, 5, 1], "BTN b", ["BTN", "z"], ["", "x"], ["BTN", "x", None, 2], ["BTN", "b", 33, "5"]],
)
def test_decode_history_rejects_malformed(raw) -> None:
    with pytest.raises(SpotFormatError):
        decode_history_entry(raw, 4)


def test_decode_options() -> None:
    assert decode_option(["x"]) == ActionOption("x")
    assert decode_option(["b", 33, 1.8]) == ActionOption("b", 33.0, 1.8)
    assert decode_option(["c", 5]) == ActionOption("c", None, 5.0)
    assert decode_option(["r", "3x"]) == ActionOption("r", "3x", None)
    with pytest.raises(SpotFormatError):
        decode_option([])
    with pytest.raises(SpotFormatError):
        decode_option(["q"])


def test_spot_from_wire_decodes_every_field() -> None:
    spot = Spot.from_wire(_raw_spot(tags=["flop"], difficulty=3, meta={"summary": "Bet small", "freq": [0.3, 0.7]}))
    assert spot.hero.position == "BTN"
    assert spot.hero.hand == ("Ah", "Kd")
    assert spot.history[2] == StreetMarker("f")
    assert spot.options[1] == ActionOption("b", 33.0, 2.1)
    assert spot.solution.best_index == 1
    assert spot.meta is not None and spot.meta.freq == (0.3, 0.7)
    assert spot.tags == ("flop",)
    assert spot.difficulty == 3


def test_spot_wire_output_reads_back_identically() -> None:
    spot = Spot.from_wire(_raw_spot())
    assert Spot.from_wire(spot.to_wire()) == spot


def test_spot_from_wire_rejects_bad_hand_and_solution() -> None:
    with pytest.raises(SpotFormatError):
        Spot.from_wire(_raw_spot(hero={"pos": "BTN", "hand": ["Ah"]}))
    with pytest.raises(SpotFormatError):
        Spot.from_wire(_raw_spot(sol={"b": "1", "ev": [0.4, 0.6]}))
    with pytest.raises(SpotFormatError):
        Spot.from_wire(_raw_spot(sol={"b": 1, "ev": [0.4, "x"]}))
