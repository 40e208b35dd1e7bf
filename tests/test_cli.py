from __future__ import annotations

import io

import pytest
from rich.console import Console

from rangelab.cli import main
from rangelab.drill_play import run_drill
from rangelab.ui.presenters import RichPresenter


def _presenter(replies: list[str]) -> tuple[RichPresenter, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, color_system=None, width=120)
    answers = iter(replies)
    return RichPresenter(console=console, input_fn=lambda prompt: next(answers)), buffer


def test_instant_drill_replays_history_and_grades_choice() -> None:
    presenter, buffer = _presenter(["9", "2"])

    records = run_drill(spot_id="s203", instant=True, presenter=presenter)

    out = buffer.getvalue()
    assert "Spot 1/1 • Flop • CO vs BB" in out
    assert "Raises 2.5bb" in out
    assert "FLOP  J♥ 6♣ 3♦" in out
    assert "Pot at decision: 5.5bb" in out
    assert "BET 33%" in out
    assert "Invalid input" in out
    assert "Best choice" in out
    assert "Drill Summary" in out
    assert records == [
        {
            "spot_id": "s203",
            "chosen_key": "b33",
            "is_correct": True,
            "chosen_ev": 1.3,
            "best_key": "b33",
            "best_ev": 1.3,
            "pot_bb": 5.5,
        }
    ]


def test_wrong_choice_shows_better_option() -> None:
    presenter, buffer = _presenter(["1"])
    records = run_drill(spot_id="s201", instant=True, presenter=presenter)

    out = buffer.getvalue()
    assert "Better was" in out
    assert "CALL 20BB" in out
    assert "Calls 5.5bb" in out
    assert records[0]["chosen_key"] == "f"
    assert records[0]["best_key"] == "c"


def test_quit_stops_the_drill() -> None:
    presenter, buffer = _presenter(["q"])
    records = run_drill(count=3, seed=1, instant=True, presenter=presenter)
    assert records == []
    assert presenter.quit_requested is True
    assert "No spots answered." in buffer.getvalue()


def test_threaded_replay_at_high_speed() -> None:
    presenter, buffer = _presenter(["2"])
    records = run_drill(spot_id="s205", speed=50, presenter=presenter)
    assert records[0]["chosen_key"] == "c"
    assert "Raises 6.5bb" in buffer.getvalue()


def test_cli_rejects_unknown_spot_and_bad_speed() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["drill", "--spot-id", "missing", "--instant", "--no-color"])
    assert "missing" in str(excinfo.value)

    with pytest.raises(SystemExit) as excinfo:
        main(["--speed", "0"])
    assert excinfo.value.code == 2
