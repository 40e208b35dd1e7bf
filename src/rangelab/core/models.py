"""Spot data model and the compact wire codec.

Spots arrive as JSON objects using short keys (``st``, ``hist``, ``opts``...)
and positional tuples for history entries and options.  The decoders in this
module turn those tuples into explicit records so nothing downstream indexes
into a list and guesses which slot holds the amount.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

__all__ = [
    "ACTION_CODES",
    "BOARD_SIZES",
    "CONTRIBUTING_ACTIONS",
    "FORMATS",
    "POSITIONS_6MAX",
    "STREETS",
    "STREET_MARKER",
    "ActionOption",
    "Hero",
    "HistoryEntry",
    "PlayerAction",
    "SizingRef",
    "Solution",
    "Spot",
    "SpotFormatError",
    "SpotMeta",
    "StreetMarker",
    "decode_history_entry",
    "decode_option",
    "is_number",
]

STREET_MARKER = "-"
STREETS: tuple[str, ...] = ("p", "f", "t", "r")
ACTION_CODES: tuple[str, ...] = ("x", "f", "c", "b", "r", "a")
CONTRIBUTING_ACTIONS = frozenset({"b", "r", "c", "a"})
FORMATS: tuple[str, ...] = ("6m", "9m", "hu")
# Clockwise from UTG; the table layout always uses these six seats.
POSITIONS_6MAX: tuple[str, ...] = ("UTG", "MP", "CO", "BTN", "SB", "BB")
BOARD_SIZES: dict[str, int] = {"p": 0, "f": 3, "t": 4, "r": 5}

SizingRef = Union[float, str, None]


class SpotFormatError(ValueError):
    """Raised when spot data does not follow the wire format."""


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_amount(value: Any, where: str) -> float | None:
    if value is None:
        return None
    if not is_number(value):
        raise SpotFormatError(f"{where}: amount must be numeric, got {value!r}")
    return float(value)


def _as_sizing(value: Any, where: str) -> SizingRef:
    if value is None:
        return None
    if is_number(value):
        return float(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise SpotFormatError(f"{where}: invalid sizing reference {value!r}")


def _check_action(code: Any, where: str) -> str:
    if code not in ACTION_CODES:
        raise SpotFormatError(f"{where}: unknown action code {code!r}")
    return code


@dataclass(frozen=True)
class StreetMarker:
    """A new street begins; per-street action state resets here."""

    street: str

    def to_wire(self) -> list[Any]:
        return [STREET_MARKER, self.street]


@dataclass(frozen=True)
class PlayerAction:
    position: str
    action: str
    sizing_ref: SizingRef = None
    # Ground truth in big blinds; display rounding never touches this value.
    amount: float | None = None

    @property
    def contributes(self) -> bool:
        return self.action in CONTRIBUTING_ACTIONS

    def to_wire(self) -> list[Any]:
        if self.sizing_ref is None and self.amount is None:
            return [self.position, self.action]
        return [self.position, self.action, self.sizing_ref, self.amount]


HistoryEntry = Union[StreetMarker, PlayerAction]


@dataclass(frozen=True)
class ActionOption:
    """A hero option at the decision point (no position: it is always the hero)."""

    action: str
    sizing_ref: SizingRef = None
    amount: float | None = None

    def to_wire(self) -> list[Any]:
        if self.sizing_ref is None and self.amount is None:
            return [self.action]
        return [self.action, self.sizing_ref, self.amount]


def decode_history_entry(raw: Any, index: int = 0) -> HistoryEntry:
    where = f"hist[{index}]"
    if not isinstance(raw, Sequence) or isinstance(raw, str) or not 2 <= len(raw) <= 4:
        raise SpotFormatError(f"{where}: expected a 2-4 element list, got {raw!r}")
    head = raw[0]
    if head == STREET_MARKER:
        if len(raw) != 2 or raw[1] not in STREETS:
            raise SpotFormatError(f"{where}: invalid street marker {raw!r}")
        return StreetMarker(street=raw[1])
    if not isinstance(head, str) or not head:
        raise SpotFormatError(f"{where}: position must be a non-empty string")
    action = _check_action(raw[1], where)
    sizing: SizingRef = None
    amount: float | None = None
    if len(raw) == 4:
        sizing = _as_sizing(raw[2], where)
        amount = _as_amount(raw[3], where)
    elif len(raw) == 3:
        # Legacy three-slot form: a bare number is the exact amount.
        if is_number(raw[2]):
            amount = float(raw[2])
        else:
            sizing = _as_sizing(raw[2], where)
    if action in ("x", "f") and amount is not None:
        raise SpotFormatError(f"{where}: {action!r} cannot carry an amount")
    return PlayerAction(position=head, action=action, sizing_ref=sizing, amount=amount)


def decode_option(raw: Any, index: int = 0) -> ActionOption:
    where = f"opts[{index}]"
    if not isinstance(raw, Sequence) or isinstance(raw, str) or not 1 <= len(raw) <= 3:
        raise SpotFormatError(f"{where}: expected a 1-3 element list, got {raw!r}")
    action = _check_action(raw[0], where)
    if len(raw) == 1:
        return ActionOption(action=action)
    if len(raw) == 2:
        # Legacy two-slot form: ["c", 5] is a call amount, anything else a sizing.
        if action == "c" and is_number(raw[1]):
            return ActionOption(action=action, amount=float(raw[1]))
        return ActionOption(action=action, sizing_ref=_as_sizing(raw[1], where))
    amount = _as_amount(raw[2], where)
    if action in ("x", "f") and amount is not None:
        raise SpotFormatError(f"{where}: {action!r} cannot carry an amount")
    return ActionOption(action=action, sizing_ref=_as_sizing(raw[1], where), amount=amount)


@dataclass(frozen=True)
class Hero:
    position: str
    hand: tuple[str, str]


@dataclass(frozen=True)
class Solution:
    best_index: int
    evs: tuple[float, ...]

    def to_wire(self) -> dict[str, Any]:
        return {"b": self.best_index, "ev": list(self.evs)}


@dataclass(frozen=True)
class SpotMeta:
    """Explanation payload carried alongside a spot; never interpreted by the replay."""

    summary: str | None = None
    solver_notes: tuple[str, ...] = ()
    freq: tuple[float, ...] = ()
    concept: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> SpotMeta:
        summary = raw.get("summary")
        notes = raw.get("solverNotes") or ()
        freq = raw.get("freq") or ()
        concept = raw.get("concept") or ()
        return cls(
            summary=summary if isinstance(summary, str) else None,
            solver_notes=tuple(str(note) for note in notes),
            freq=tuple(float(value) for value in freq if is_number(value)),
            concept=tuple(str(tag) for tag in concept),
            raw=dict(raw),
        )

    def to_wire(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class Spot:
    id: str
    effective_stack: float
    format: str
    street: str
    hero: Hero
    villains: tuple[str, ...]
    board: tuple[str, ...]
    pot: float
    history: tuple[HistoryEntry, ...]
    options: tuple[ActionOption, ...]
    solution: Solution
    meta: SpotMeta | None = None
    tags: tuple[str, ...] = ()
    difficulty: int | None = None

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> Spot:
        """Decode a structurally valid wire spot.

        Callers are expected to have run ``validate`` first; anything the
        decoder cannot interpret raises :class:`SpotFormatError`.
        """

        hero_raw = raw["hero"]
        hand = tuple(hero_raw.get("hand") or ())
        if len(hand) != 2:
            raise SpotFormatError(f"hero.hand: expected two cards, got {list(hand)!r}")
        hero_pos = hero_raw.get("pos")
        if not isinstance(hero_pos, str) or not hero_pos:
            raise SpotFormatError("hero.pos: position must be a non-empty string")
        sol_raw = raw["sol"]
        best = sol_raw.get("b")
        if not isinstance(best, int) or isinstance(best, bool):
            raise SpotFormatError(f"sol.b: expected an integer index, got {best!r}")
        evs = sol_raw.get("ev") or ()
        if not all(is_number(value) for value in evs):
            raise SpotFormatError("sol.ev: every EV must be numeric")
        meta_raw = raw.get("meta")
        difficulty = raw.get("difficulty")
        return cls(
            id=raw["id"],
            effective_stack=float(raw["st"]),
            format=raw["fmt"],
            street=raw["str"],
            hero=Hero(position=hero_pos, hand=(str(hand[0]), str(hand[1]))),
            villains=tuple(raw["v"]),
            board=tuple(raw["brd"]),
            pot=float(raw["pot"]),
            history=tuple(decode_history_entry(entry, idx) for idx, entry in enumerate(raw["hist"])),
            options=tuple(decode_option(opt, idx) for idx, opt in enumerate(raw["opts"])),
            solution=Solution(best_index=best, evs=tuple(float(value) for value in evs)),
            meta=SpotMeta.from_wire(meta_raw) if isinstance(meta_raw, Mapping) else None,
            tags=tuple(str(tag) for tag in raw.get("tags") or ()),
            difficulty=int(difficulty) if is_number(difficulty) else None,
        )

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "st": self.effective_stack,
            "fmt": self.format,
            "str": self.street,
            "hero": {"pos": self.hero.position, "hand": list(self.hero.hand)},
            "v": list(self.villains),
            "brd": list(self.board),
            "pot": self.pot,
            "hist": [entry.to_wire() for entry in self.history],
            "opts": [opt.to_wire() for opt in self.options],
            "sol": self.solution.to_wire(),
        }
        if self.meta is not None:
            payload["meta"] = self.meta.to_wire()
        if self.tags:
            payload["tags"] = list(self.tags)
        if self.difficulty is not None:
            payload["difficulty"] = self.difficulty
        return payload
