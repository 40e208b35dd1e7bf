from __future__ import annotations

import logging
import random
import secrets
import string
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ...core.models import POSITIONS_6MAX, Spot
from ...core.scoring import SummaryStats, summarize_records
from ...core.seating import seat_slot
from ...replay.parser import ProcessedOption, ProcessedSpot, parse
from .concurrency import run_blocking
from .library import SpotFilters, SpotLibrary
from .schemas import (
    ChoiceResult,
    DecisionPayload,
    DecisionSnapshot,
    ExplanationPayload,
    HistoryPayload,
    OptionPayload,
    PlayerPayload,
    SpotPayload,
    SpotResponse,
    SummaryPayload,
)

__all__ = [
    "DrillConfig",
    "DrillManager",
    "DrillState",
    "spot_payload",
    "summary_payload",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrillConfig:
    """Configuration for a drill session."""

    spots: int = 10
    filters: SpotFilters = field(default_factory=SpotFilters)
    seed: int | None = None


@dataclass
class DrillState:
    config: DrillConfig
    rng: random.Random
    spot: Spot
    processed: ProcessedSpot
    spot_no: int = 1
    decided: bool = False
    finished: bool = False
    selected: str | None = None
    records: list[dict[str, Any]] = field(default_factory=list)


class DrillManager:
    """Owns drill sessions: spot selection, grading and summaries."""

    def __init__(self, library: SpotLibrary | None = None) -> None:
        self.library = library or SpotLibrary()
        self._sessions: dict[str, DrillState] = {}
        self._results: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def create_session(self, config: DrillConfig) -> str:
        seed = config.seed if config.seed is not None else secrets.SystemRandom().getrandbits(32)
        rng = random.Random(seed)
        normalized = DrillConfig(spots=max(1, config.spots), filters=config.filters, seed=seed)
        spot = self._pick(normalized.filters, rng, exclude=None)
        state = DrillState(config=normalized, rng=rng, spot=spot, processed=parse(spot))
        session_id = _sid()
        with self._lock:
            self._sessions[session_id] = state
        logger.debug("Drill session created", extra={"session_id": session_id, "spot_id": spot.id})
        return session_id

    async def create_session_async(self, config: DrillConfig) -> str:
        return await run_blocking(self.create_session, config)

    def current(self, session_id: str) -> SpotResponse:
        with self._lock:
            state = self._require_session(session_id)
            return _spot_response(state)

    async def current_async(self, session_id: str) -> SpotResponse:
        return await run_blocking(self.current, session_id)

    def choose(self, session_id: str, option_id: str) -> ChoiceResult:
        with self._lock:
            state = self._require_session(session_id)
            if state.finished:
                raise ValueError("session already complete")
            if state.decided:
                raise ValueError("option already chosen for this spot")
            processed = state.processed
            try:
                selected = processed.option(option_id)
            except KeyError as exc:
                raise ValueError(f"unknown option '{option_id}'") from exc
            best = processed.correct_option
            if best is None:
                raise ValueError(f"spot '{processed.id}' has no solver best option")
            state.decided = True
            state.selected = selected.id
            state.records.append(
                {
                    "spot_id": processed.id,
                    "street": processed.street,
                    "chosen_key": selected.id,
                    "is_correct": selected.is_correct,
                    "chosen_ev": selected.ev,
                    "best_key": best.id,
                    "best_ev": best.ev,
                    "pot_bb": processed.pot,
                }
            )
            hits = sum(1 for record in state.records if record["is_correct"])
            feedback = DecisionPayload(
                correct=selected.is_correct,
                selected=_snapshot(selected),
                best=_snapshot(best),
                ev_diff=selected.ev - best.ev,
                decisions=len(state.records),
                hits=hits,
                explanation=_explanation(processed),
            )
            logger.debug(
                "Drill decision",
                extra={"session_id": session_id, "spot_id": processed.id, "correct": selected.is_correct},
            )
            return ChoiceResult(feedback=feedback, spot=spot_payload(processed, reveal=True))

    async def choose_async(self, session_id: str, option_id: str) -> ChoiceResult:
        return await run_blocking(self.choose, session_id, option_id)

    def next_spot(self, session_id: str) -> SpotResponse:
        """Advance to a fresh spot; skipping an undecided spot records nothing."""

        with self._lock:
            state = self._require_session(session_id)
            if state.finished:
                return _spot_response(state)
            if state.spot_no >= state.config.spots:
                state.finished = True
                return _spot_response(state)
            spot = self._pick(state.config.filters, state.rng, exclude=state.spot.id)
            state.spot = spot
            state.processed = parse(spot)
            state.spot_no += 1
            state.decided = False
            state.selected = None
            return _spot_response(state)

    async def next_spot_async(self, session_id: str) -> SpotResponse:
        return await run_blocking(self.next_spot, session_id)

    def summary(self, session_id: str) -> SummaryPayload:
        with self._lock:
            state = self._require_session(session_id)
            return summary_payload(state.records)

    async def summary_async(self, session_id: str) -> SummaryPayload:
        return await run_blocking(self.summary, session_id)

    def record_result(self, result: Mapping[str, Any]) -> int:
        """Store a client-reported training result; returns how many are stored."""

        with self._lock:
            self._results.append(dict(result))
            return len(self._results)

    def results(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(result) for result in self._results]

    def _pick(self, filters: SpotFilters, rng: random.Random, *, exclude: str | None) -> Spot:
        candidates = self.library.filter(filters)
        if not candidates:
            raise LookupError("No matching spot found")
        fresh = [spot for spot in candidates if spot.id != exclude]
        return rng.choice(fresh or candidates)

    def _require_session(self, session_id: str) -> DrillState:
        state = self._sessions.get(session_id)
        if state is None:
            raise KeyError(f"session '{session_id}' not found")
        return state


def _sid(length: int = 10) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _snapshot(option: ProcessedOption) -> DecisionSnapshot:
    return DecisionSnapshot(id=option.id, label=option.label, ev=option.ev, ev_label=option.ev_label)


def _explanation(processed: ProcessedSpot) -> ExplanationPayload | None:
    meta = processed.meta
    if meta is None and not processed.tags:
        return None
    concepts = list(meta.concept if meta else ()) + list(processed.tags)
    return ExplanationPayload(
        summary=meta.summary if meta else None,
        solver_notes=list(meta.solver_notes) if meta else [],
        freq=list(meta.freq) if meta else [],
        concepts=list(dict.fromkeys(concepts)),
    )


def _seat(position: str, hero: str) -> int | None:
    if position not in POSITIONS_6MAX or hero not in POSITIONS_6MAX:
        return None
    return seat_slot(position, hero)


def spot_payload(processed: ProcessedSpot, *, reveal: bool) -> SpotPayload:
    return SpotPayload(
        id=processed.id,
        format=processed.format,
        street=processed.street,
        street_name=processed.street_name,
        hero_position=processed.hero_position,
        hero_hand=list(processed.hero_hand_display),
        board=list(processed.board_display),
        pot=processed.pot,
        history_pot=processed.history_pot,
        dead_money=processed.dead_money,
        villains=list(processed.villains_in_hand),
        players=[
            PlayerPayload(
                position=player.position,
                stack=player.stack,
                is_hero=player.is_hero,
                in_hand=player.is_in_hand,
                folded=player.is_folded,
                seat=_seat(player.position, processed.hero_position),
                last_action=player.last_action,
                cards=list(player.cards) if player.cards else None,
            )
            for player in processed.players
        ],
        options=[
            OptionPayload(
                id=opt.id,
                label=opt.label,
                ev=opt.ev if reveal else None,
                ev_label=opt.ev_label if reveal else None,
                is_correct=opt.is_correct if reveal else None,
                freq=opt.freq if reveal else None,
            )
            for opt in processed.options
        ],
        history=[
            HistoryPayload(
                position=entry.position,
                action=entry.action,
                text=entry.text,
                is_street_marker=entry.is_street_marker,
                amount=entry.amount,
                rounded_amount=entry.rounded_amount,
                sizing=entry.sizing,
                street=entry.street,
            )
            for entry in processed.history
        ],
        tags=list(processed.tags),
        difficulty=processed.difficulty,
    )


def summary_payload(records: list[dict[str, Any]]) -> SummaryPayload:
    stats: SummaryStats = summarize_records(records)
    return SummaryPayload(
        spots=stats.spots,
        decisions=stats.decisions,
        hits=stats.hits,
        accuracy_pct=stats.accuracy_pct,
        ev_lost=stats.total_ev_lost,
        avg_ev_lost=stats.avg_ev_lost,
        avg_loss_pct=stats.avg_loss_pct,
        score=stats.score_pct,
    )


def _spot_response(state: DrillState) -> SpotResponse:
    if state.finished:
        return SpotResponse(
            done=True,
            spot_no=state.spot_no,
            total_spots=state.config.spots,
            summary=summary_payload(state.records),
        )
    return SpotResponse(
        done=False,
        spot_no=state.spot_no,
        total_spots=state.config.spots,
        decided=state.decided,
        spot=spot_payload(state.processed, reveal=state.decided),
    )
