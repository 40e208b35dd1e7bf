"""Expand compact spot JSON into a display-ready :class:`ProcessedSpot`.

``validate`` is the cheap structural gate (it returns a bool and never
raises); ``parse`` assumes a validated spot and performs one forward pass over
the history through a :class:`~rangelab.core.ledger.HandLedger`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..core import feature_flags
from ..core.formatting import (
    ACTION_LABELS,
    action_text,
    ev_label,
    format_cards,
    option_id,
    option_label,
    round_to_nearest_half,
    sizing_label,
    street_name,
)
from ..core.ledger import HandLedger, replay_history
from ..core.models import (
    BOARD_SIZES,
    STREET_MARKER,
    ActionOption,
    PlayerAction,
    Spot,
    SpotFormatError,
    SpotMeta,
    StreetMarker,
    is_number,
)

__all__ = [
    "POT_TOLERANCE",
    "PlayerState",
    "ProcessedHistoryEntry",
    "ProcessedOption",
    "ProcessedSpot",
    "check_consistency",
    "load_spot",
    "parse",
    "validate",
]

logger = logging.getLogger(__name__)

POT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class PlayerState:
    position: str
    stack: float
    is_hero: bool
    is_in_hand: bool
    is_folded: bool
    last_action: str | None = None
    cards: tuple[str, str] | None = None


@dataclass(frozen=True)
class ProcessedOption:
    id: str
    label: str
    action: ActionOption
    is_correct: bool
    ev: float
    ev_label: str
    freq: float | None = None


@dataclass(frozen=True)
class ProcessedHistoryEntry:
    position: str
    action: str
    text: str
    is_street_marker: bool
    action_code: str | None = None
    amount: float | None = None
    rounded_amount: float | None = None
    sizing: str | None = None
    street: str | None = None


@dataclass(frozen=True)
class ProcessedSpot:
    id: str
    format: str
    street: str
    street_name: str
    hero_position: str
    hero_hand: tuple[str, str]
    hero_hand_display: tuple[str, ...]
    board: tuple[str, ...]
    board_display: tuple[str, ...]
    pot: float
    history_pot: float
    dead_money: float
    players: tuple[PlayerState, ...]
    villains_in_hand: tuple[str, ...]
    options: tuple[ProcessedOption, ...]
    history: tuple[ProcessedHistoryEntry, ...]
    meta: SpotMeta | None = None
    tags: tuple[str, ...] = ()
    difficulty: int | None = None

    @property
    def correct_option(self) -> ProcessedOption | None:
        return next((opt for opt in self.options if opt.is_correct), None)

    def option(self, key: str) -> ProcessedOption:
        for opt in self.options:
            if opt.id == key:
                return opt
        raise KeyError(f"option '{key}' not found in spot '{self.id}'")

    def player(self, position: str) -> PlayerState:
        for player in self.players:
            if player.position == position:
                return player
        raise KeyError(f"position '{position}' not found in spot '{self.id}'")


def validate(raw: Any) -> bool:
    """Structural check of the wire shape; semantic consistency is not checked here."""

    if not isinstance(raw, Mapping):
        return False
    if not isinstance(raw.get("id"), str):
        return False
    if not is_number(raw.get("st")):
        return False
    if not isinstance(raw.get("fmt"), str):
        return False
    if not isinstance(raw.get("str"), str):
        return False
    if not isinstance(raw.get("hero"), Mapping):
        return False
    for key in ("v", "brd", "hist", "opts"):
        if not isinstance(raw.get(key), list):
            return False
    if not is_number(raw.get("pot")):
        return False
    if not isinstance(raw.get("sol"), Mapping):
        return False
    return True


def _history_entry(entry: StreetMarker | PlayerAction, amount: float) -> ProcessedHistoryEntry:
    if isinstance(entry, StreetMarker):
        name = street_name(entry.street)
        return ProcessedHistoryEntry(
            position=STREET_MARKER,
            action="street",
            text=name,
            is_street_marker=True,
            street=entry.street,
        )
    resolved = amount if amount > 0 else None
    return ProcessedHistoryEntry(
        position=entry.position,
        action=ACTION_LABELS.get(entry.action, entry.action),
        text=action_text(entry.action, resolved),
        is_street_marker=False,
        action_code=entry.action,
        amount=resolved,
        rounded_amount=round_to_nearest_half(resolved) if resolved is not None else None,
        sizing=sizing_label(entry.sizing_ref),
    )


def _options(spot: Spot) -> tuple[ProcessedOption, ...]:
    freq = spot.meta.freq if spot.meta else ()
    options: list[ProcessedOption] = []
    for idx, opt in enumerate(spot.options):
        ev = spot.solution.evs[idx] if idx < len(spot.solution.evs) else 0.0
        options.append(
            ProcessedOption(
                id=option_id(opt),
                label=option_label(opt),
                action=opt,
                is_correct=idx == spot.solution.best_index,
                ev=ev,
                ev_label=ev_label(ev),
                freq=freq[idx] if idx < len(freq) else None,
            )
        )
    return tuple(options)


def parse(raw: Mapping[str, Any] | Spot) -> ProcessedSpot:
    """Build the processed view of a validated spot.

    Decoding problems surface as :class:`SpotFormatError`; callers that need
    a soft failure should go through :func:`load_spot`.
    """

    spot = raw if isinstance(raw, Spot) else Spot.from_wire(raw)
    ledger = HandLedger(spot.effective_stack, hero=spot.hero.position)
    history = [_history_entry(entry, ledger.apply(entry)) for entry in spot.history]

    players = tuple(
        PlayerState(
            position=seat.position,
            stack=seat.stack,
            is_hero=seat.position == spot.hero.position,
            is_in_hand=seat.in_hand,
            is_folded=not seat.in_hand,
            last_action=seat.last_action,
            cards=spot.hero.hand if seat.position == spot.hero.position else None,
        )
        for seat in ledger.seats.values()
    )

    return ProcessedSpot(
        id=spot.id,
        format=spot.format,
        street=spot.street,
        street_name=street_name(spot.street),
        hero_position=spot.hero.position,
        hero_hand=spot.hero.hand,
        hero_hand_display=tuple(format_cards(spot.hero.hand)),
        board=spot.board,
        board_display=tuple(format_cards(spot.board)),
        pot=spot.pot,
        history_pot=ledger.pot,
        dead_money=spot.pot - ledger.pot,
        players=players,
        villains_in_hand=spot.villains,
        options=_options(spot),
        history=tuple(history),
        meta=spot.meta,
        tags=spot.tags,
        difficulty=spot.difficulty,
    )


def check_consistency(spot: Spot) -> list[str]:
    """Return semantic problems that ``validate`` deliberately ignores.

    The declared pot is the figure shown at the decision; the history only
    explains voluntary chips, so a declared pot larger than the history pot is
    dead money (blinds, antes) and fine. A smaller one is not.
    """

    issues: list[str] = []
    expected_board = BOARD_SIZES.get(spot.street)
    if expected_board is None:
        issues.append(f"unknown street {spot.street!r}")
    elif len(spot.board) != expected_board:
        issues.append(f"board has {len(spot.board)} cards; {street_name(spot.street)} needs {expected_board}")
    if len(spot.solution.evs) != len(spot.options):
        issues.append(f"{len(spot.solution.evs)} EVs for {len(spot.options)} options")
    if not 0 <= spot.solution.best_index < len(spot.options):
        issues.append(f"best index {spot.solution.best_index} outside {len(spot.options)} options")
    ids = [option_id(opt) for opt in spot.options]
    duplicates = sorted({key for key in ids if ids.count(key) > 1})
    if duplicates:
        issues.append(f"duplicate option ids: {', '.join(duplicates)}")
    ledger = replay_history(spot.effective_stack, spot.history)
    if spot.pot + POT_TOLERANCE < ledger.pot:
        issues.append(f"declared pot {spot.pot:g} is below history contributions {ledger.pot:g}")
    return issues


def load_spot(raw: Any) -> ProcessedSpot | None:
    """Validate, decode and parse ``raw``; ``None`` means show an error state."""

    if not validate(raw):
        logger.error("Rejected spot with invalid structure", extra={"spot_id": _raw_id(raw)})
        return None
    try:
        spot = Spot.from_wire(raw)
    except SpotFormatError as exc:
        logger.error("Rejected malformed spot %s: %s", raw["id"], exc)
        return None
    issues = check_consistency(spot)
    if issues:
        logger.warning("Spot %s has consistency issues: %s", spot.id, "; ".join(issues))
        if feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY):
            return None
    return parse(spot)


def _raw_id(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        value = raw.get("id")
        return value if isinstance(value, str) else None
    return None
