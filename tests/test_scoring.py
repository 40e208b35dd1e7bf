from __future__ import annotations

import math

import pytest

from rangelab.core import scoring


def test_decision_score_respects_dynamic_noise_floor():
    record = {
        "best_ev": 3.0,
        "chosen_ev": 2.93,  # 0.07 bb loss
        "pot_bb": 30.0,
    }

    score = scoring.decision_score(record)

    assert math.isclose(score, 100.0, rel_tol=1e-6)


def test_decision_score_decays_with_loss():
    small = scoring.decision_score({"best_ev": 2.4, "chosen_ev": 2.0, "pot_bb": 10.0})
    large = scoring.decision_score({"best_ev": 2.4, "chosen_ev": -3.1, "pot_bb": 10.0})
    assert 0.0 <= large < small < 100.0


def test_ev_loss_is_never_negative():
    assert scoring.ev_loss({"best_ev": 1.0, "chosen_ev": 1.5}) == 0.0
    assert scoring.ev_loss({"best_ev": "bad", "chosen_ev": None}) == 0.0


def test_summary_uses_pot_weighting():
    records = [
        {"spot_id": "s1", "best_ev": 1.5, "chosen_ev": 1.0, "pot_bb": 2.0, "best_key": "b33", "chosen_key": "x"},
        {"spot_id": "s2", "best_ev": 4.0, "chosen_ev": 3.9, "pot_bb": 10.0, "best_key": "c", "chosen_key": "c"},
    ]

    summary = scoring.summarize_records(records)

    weights = [2.0, 10.0]
    expected_score = sum(scoring.decision_score(r) * w for r, w in zip(records, weights, strict=False)) / sum(weights)
    assert summary.score_pct == pytest.approx(expected_score)
    assert summary.avg_loss_pct == pytest.approx(100.0 * 0.6 / 12.0)
    assert summary.spots == 2
    assert summary.decisions == 2
    assert summary.hits == 1
    assert summary.accuracy_pct == pytest.approx(50.0)
    assert summary.total_ev_lost == pytest.approx(0.6)
    assert summary.avg_ev_lost == pytest.approx(0.3)


def test_empty_summary_is_all_zero():
    summary = scoring.summarize_records([])
    assert summary.decisions == 0
    assert summary.score_pct == 0.0


def test_hits_follow_is_correct_over_matching_keys():
    records = [
        {"best_ev": 1.0, "chosen_ev": 0.5, "pot_bb": 4.0, "best_key": "c", "chosen_key": "c", "is_correct": False},
        {"best_ev": 1.0, "chosen_ev": 1.0, "pot_bb": 4.0, "best_key": "b5", "chosen_key": "b5"},
    ]

    summary = scoring.summarize_records(records)

    assert summary.hits == 1
    assert summary.accuracy_pct == pytest.approx(50.0)
