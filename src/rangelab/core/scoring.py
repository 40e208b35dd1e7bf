from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

__all__ = ["SummaryStats", "decision_score", "ev_loss", "summarize_records"]

MIN_POT = 1e-6

# EV-based scoring tuned around practical solver error margins.
EV_NOISE_FLOOR_BASE = 0.02  # Ignore < 0.02 bb diffs as solver noise
EV_NOISE_FLOOR_PCT = 0.0025  # Additional tolerance (0.25% of pot in bb)
EV_DECAY = 2.0  # Higher = harsher punishment for bigger EV mistakes


@dataclass(frozen=True)
class SummaryStats:
    spots: int
    decisions: int
    hits: int
    accuracy_pct: float
    total_ev_chosen: float
    total_ev_best: float
    total_ev_lost: float
    avg_ev_lost: float
    avg_loss_pct: float
    score_pct: float


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def ev_loss(record: Mapping[str, Any]) -> float:
    """Return the non-negative EV gap between the best and chosen options."""

    best = _as_float(record.get("best_ev", 0.0))
    chosen = _as_float(record.get("chosen_ev", 0.0))
    return max(0.0, best - chosen)


def _is_hit(record: Mapping[str, Any]) -> bool:
    if "is_correct" in record:
        return bool(record["is_correct"])
    return record.get("chosen_key") == record.get("best_key")


def _extract_pot(record: Mapping[str, Any]) -> float:
    pot = _as_float(record.get("pot_bb", 0.0))
    return pot if pot > MIN_POT else 1.0


def _ev_noise_floor(pot: float) -> float:
    return EV_NOISE_FLOOR_BASE + EV_NOISE_FLOOR_PCT * max(pot, MIN_POT)


def decision_score(record: Mapping[str, Any]) -> float:
    """0-100 score for one decision; losses inside solver noise score 100."""

    loss = ev_loss(record)
    adjusted = max(0.0, loss - _ev_noise_floor(_extract_pot(record)))
    raw = 100.0 * math.exp(-EV_DECAY * adjusted)
    if raw < 0.001:
        return 0.0
    return min(raw, 100.0)


def summarize_records(records: Sequence[Mapping[str, Any]]) -> SummaryStats:
    if not records:
        return SummaryStats(
            spots=0,
            decisions=0,
            hits=0,
            accuracy_pct=0.0,
            total_ev_chosen=0.0,
            total_ev_best=0.0,
            total_ev_lost=0.0,
            avg_ev_lost=0.0,
            avg_loss_pct=0.0,
            score_pct=0.0,
        )

    decisions = len(records)
    total_ev_best = sum(_as_float(r.get("best_ev", 0.0)) for r in records)
    total_ev_chosen = sum(_as_float(r.get("chosen_ev", 0.0)) for r in records)
    total_ev_lost = sum(ev_loss(r) for r in records)
    hits = sum(1 for r in records if _is_hit(r))
    spot_ids = {r.get("spot_id", idx) for idx, r in enumerate(records)}

    weights = [_extract_pot(r) for r in records]
    total_weight = sum(weights)
    # Pot-weighted mean of per-decision loss ratios reduces to total loss over total pot.
    avg_loss_pct = 100.0 * total_ev_lost / total_weight if total_weight > 0 else 0.0
    weighted_score = sum(decision_score(r) * weight for r, weight in zip(records, weights, strict=False))
    score_pct = weighted_score / total_weight if total_weight > 0 else 0.0

    return SummaryStats(
        spots=len(spot_ids),
        decisions=decisions,
        hits=hits,
        accuracy_pct=100.0 * hits / decisions,
        total_ev_chosen=total_ev_chosen,
        total_ev_best=total_ev_best,
        total_ev_lost=total_ev_lost,
        avg_ev_lost=total_ev_lost / decisions,
        avg_loss_pct=avg_loss_pct,
        score_pct=score_pct,
    )
