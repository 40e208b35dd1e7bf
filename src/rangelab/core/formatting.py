from __future__ import annotations

import math

from .models import ActionOption, SizingRef, is_number

__all__ = [
    "ACTION_LABELS",
    "STREET_NAMES",
    "action_text",
    "ev_label",
    "format_card",
    "format_cards",
    "format_number",
    "option_id",
    "option_label",
    "round_to_nearest_half",
    "sizing_label",
    "street_name",
]

STREET_NAMES: dict[str, str] = {
    "p": "Preflop",
    "f": "Flop",
    "t": "Turn",
    "r": "River",
}

ACTION_LABELS: dict[str, str] = {
    "x": "Check",
    "c": "Call",
    "b": "Bet",
    "r": "Raise",
    "f": "Fold",
    "a": "All-in",
}

_SUIT_SYMBOL = {
    "S": "♠",
    "H": "♥",
    "D": "♦",
    "C": "♣",
}


def round_to_nearest_half(value: float) -> float:
    """Round to the nearest 0.5bb, halves going up (4.25 -> 4.5, 4.75 -> 5.0)."""

    return math.floor(value * 2.0 + 0.5) / 2.0


def format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_card(card: str) -> str:
    """``"Ah"`` -> ``"A♥"``; unknown suits are left as typed."""

    token = (card or "").strip()
    if len(token) < 2:
        return token
    rank, suit = token[:-1], token[-1]
    return f"{rank}{_SUIT_SYMBOL.get(suit.upper(), suit)}"


def format_cards(cards: list[str] | tuple[str, ...]) -> list[str]:
    return [format_card(card) for card in cards]


def street_name(code: str) -> str:
    return STREET_NAMES.get(code, code)


def sizing_label(ref: SizingRef) -> str | None:
    if ref is None:
        return None
    if is_number(ref):
        return f"{format_number(ref)}%"
    token = str(ref).strip()
    lowered = token.lower()
    if lowered == "pot":
        return "POT"
    if lowered == "ai":
        return "ALL-IN"
    return lowered


def option_id(option: ActionOption) -> str:
    """Stable id from action code and sizing reference (``b33``, ``r3x``, ``bpot``)."""

    ref = option.sizing_ref
    if ref is None:
        # Unsized bets and raises are told apart by their amount (``b5``, ``r12``).
        if option.action in ("b", "r") and option.amount is not None:
            return f"{option.action}{format_number(option.amount)}"
        return option.action
    if is_number(ref):
        return f"{option.action}{format_number(ref)}"
    return f"{option.action}{ref}"


def _sized_label(verb: str, option: ActionOption) -> str:
    sizing = sizing_label(option.sizing_ref)
    if sizing == "ALL-IN":
        return "ALL-IN"
    if sizing:
        return f"{verb} {sizing}"
    if option.amount:
        return f"{verb} {format_number(round_to_nearest_half(option.amount))}BB"
    return verb


def option_label(option: ActionOption) -> str:
    action = option.action
    if action == "x":
        return "CHECK"
    if action == "f":
        return "FOLD"
    if action == "a":
        return "ALL-IN"
    if action == "c":
        if option.amount:
            return f"CALL {format_number(round_to_nearest_half(option.amount))}BB"
        return "CALL"
    if action == "b":
        return _sized_label("BET", option)
    if action == "r":
        return _sized_label("RAISE", option)
    return action.upper()


def action_text(action: str, amount: float | None = None) -> str:
    """Seat-bubble text for a history action, using the rounded amount."""

    rounded = format_number(round_to_nearest_half(amount)) if amount else None
    if action == "r":
        return f"Raises {rounded}bb" if rounded else "Raises"
    if action == "b":
        return f"Bets {rounded}bb" if rounded else "Bets"
    if action == "c":
        return f"Calls {rounded}bb" if rounded else "Calls"
    if action == "x":
        return "Checks"
    if action == "f":
        return "Folds"
    if action == "a":
        return f"All-in {rounded}bb" if rounded else "All-in"
    return action


def ev_label(ev: float) -> str:
    return f"+{ev:.1f}bb" if ev >= 0 else f"{ev:.1f}bb"
