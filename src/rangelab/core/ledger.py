"""Per-position chip and fold bookkeeping shared by the parser and the timeline.

Both consumers of a spot's history walk it through a :class:`HandLedger`: the
parser in a single eager pass, the timeline one entry per scheduled step.
Keeping the stack/pot rules in one place is what makes their terminal states
agree.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .models import POSITIONS_6MAX, HistoryEntry, PlayerAction, StreetMarker

__all__ = ["HandLedger", "SeatState", "replay_history"]

logger = logging.getLogger(__name__)


@dataclass
class SeatState:
    position: str
    stack: float
    in_hand: bool = True
    last_action: str | None = None
    # Exact amount put in on the current street; cleared by street markers.
    last_bet: float | None = None
    contributed: float = 0.0

    def clear_street(self) -> None:
        self.last_action = None
        self.last_bet = None


class HandLedger:
    """Mutable replay state for one pass over a spot's history."""

    def __init__(
        self,
        effective_stack: float,
        positions: Iterable[str] = POSITIONS_6MAX,
        *,
        hero: str | None = None,
    ) -> None:
        self.effective_stack = float(effective_stack)
        self.street = "p"
        self.pot = 0.0
        self.seats: dict[str, SeatState] = {pos: SeatState(pos, self.effective_stack) for pos in positions}
        # The hero always has a seat, even when it never acts in the history.
        if hero is not None:
            self.seat(hero)

    def seat(self, position: str) -> SeatState:
        state = self.seats.get(position)
        if state is None:
            logger.debug("Seeding seat %s outside the six-max layout", position)
            state = SeatState(position, self.effective_stack)
            self.seats[position] = state
        return state

    def outstanding_bet(self) -> float:
        """Largest bet on the current street, or 0 when nobody has bet yet."""

        bets = [seat.last_bet for seat in self.seats.values() if seat.last_bet and seat.last_bet > 0]
        return max(bets, default=0.0)

    def resolve_amount(self, action: PlayerAction) -> float:
        if not action.contributes:
            return 0.0
        if action.amount is not None:
            return action.amount
        if action.action == "c":
            return self.outstanding_bet()
        return 0.0

    def start_street(self, marker: StreetMarker) -> None:
        self.street = marker.street
        for seat in self.seats.values():
            seat.clear_street()

    def act(self, action: PlayerAction) -> float:
        """Apply a player action and return the chips it put into the pot."""

        amount = self.resolve_amount(action)
        seat = self.seat(action.position)
        seat.last_action = action.action
        if action.action == "f":
            seat.in_hand = False
        if amount > 0:
            seat.stack -= amount
            seat.contributed += amount
            seat.last_bet = amount
            self.pot += amount
            if seat.stack < 0:
                logger.warning(
                    "Stack for %s went negative (%.2f) after %s",
                    action.position,
                    seat.stack,
                    action.action,
                )
        return amount

    def apply(self, entry: HistoryEntry) -> float:
        if isinstance(entry, StreetMarker):
            self.start_street(entry)
            return 0.0
        return self.act(entry)


def replay_history(effective_stack: float, history: Iterable[HistoryEntry]) -> HandLedger:
    ledger = HandLedger(effective_stack)
    for entry in history:
        ledger.apply(entry)
    return ledger
