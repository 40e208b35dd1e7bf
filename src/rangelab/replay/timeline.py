"""Timed, step-by-step replay of a spot's history.

The engine walks the same history the parser does, one entry per scheduled
step, and publishes an immutable :class:`TimelineState` after every change.
Only one step is ever pending: each reschedule cancels the previous handle and
bumps a generation counter, so a timer that fires after being cancelled finds
a stale generation and does nothing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from functools import partial
from types import MappingProxyType

from ..core.formatting import round_to_nearest_half
from ..core.ledger import HandLedger
from ..core.models import BOARD_SIZES, HistoryEntry, PlayerAction, Spot, StreetMarker
from .scheduler import Cancellable, ManualScheduler, Scheduler

__all__ = [
    "DECISION",
    "IDLE",
    "PLAYING",
    "BetInFlight",
    "LastAction",
    "PlayerTimelineState",
    "TimelineEngine",
    "TimelineEvent",
    "TimelineState",
    "TimelineTimings",
]

logger = logging.getLogger(__name__)

IDLE = "idle"
PLAYING = "playing"
DECISION = "decision"

# Chips slide in after these actions, so the next event waits for the animation.
_ANIMATED_BETS = frozenset({"b", "r", "c"})


@dataclass(frozen=True)
class TimelineTimings:
    """Step delays in milliseconds."""

    action_delay: float = 700.0
    street_pause: float = 600.0
    card_deal_delay: float = 200.0
    card_flip_duration: float = 300.0
    bet_animation_duration: float = 600.0
    initial_delay: float = 300.0

    def scaled(self, speed: float) -> TimelineTimings:
        if speed <= 0:
            raise ValueError("speed must be positive")
        return TimelineTimings(
            action_delay=self.action_delay / speed,
            street_pause=self.street_pause / speed,
            card_deal_delay=self.card_deal_delay / speed,
            card_flip_duration=self.card_flip_duration / speed,
            bet_animation_duration=self.bet_animation_duration / speed,
            initial_delay=self.initial_delay / speed,
        )

    def after_street(self, street: str) -> float:
        cards = 3 if street == "f" else 1
        return self.street_pause + self.card_deal_delay * cards + self.card_flip_duration

    def after_action(self, action: str) -> float:
        if action in _ANIMATED_BETS:
            return self.action_delay + self.bet_animation_duration
        return self.action_delay


@dataclass(frozen=True)
class PlayerTimelineState:
    folded: bool = False
    last_action: str | None = None
    last_bet_amount: float | None = None
    last_bet_rounded: float | None = None
    stack: float = 0.0


@dataclass(frozen=True)
class LastAction:
    position: str
    action: str
    exact_amount: float | None = None
    rounded_amount: float | None = None


@dataclass(frozen=True)
class BetInFlight:
    position: str
    exact_amount: float
    rounded_amount: float
    action: str


@dataclass(frozen=True)
class TimelineState:
    phase: str = IDLE
    current_street: str = "p"
    visible_board_cards: int = 0
    current_pot: float = 0.0
    last_action: LastAction | None = None
    current_bet: BetInFlight | None = None
    player_states: Mapping[str, PlayerTimelineState] = field(default_factory=dict)
    step_index: int = 0


@dataclass(frozen=True)
class TimelineEvent:
    type: str
    position: str | None = None
    action: str | None = None
    exact_amount: float | None = None
    rounded_amount: float | None = None
    street: str | None = None
    cards_to_reveal: int | None = None


Listener = Callable[[TimelineState], None]


class TimelineEngine:
    """Replays history entries on a scheduler and ends in the decision phase."""

    def __init__(
        self,
        history: Sequence[HistoryEntry],
        *,
        effective_stack: float = 0.0,
        scheduler: Scheduler | None = None,
        timings: TimelineTimings | None = None,
        on_event: Callable[[TimelineEvent], None] | None = None,
        on_complete: Callable[[], None] | None = None,
        hero: str | None = None,
    ) -> None:
        self._history = tuple(history)
        self._effective_stack = float(effective_stack)
        self._hero = hero
        self._scheduler: Scheduler = scheduler or ManualScheduler()
        self._timings = timings or TimelineTimings()
        self._on_event = on_event
        self._on_complete = on_complete
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._done = threading.Event()
        self._pending: Cancellable | None = None
        self._generation = 0
        self._paused = False
        self._completed = False
        self._index = 0
        self._ledger = HandLedger(self._effective_stack, hero=self._hero)
        self._state = self._fresh_state()

    @classmethod
    def from_spot(cls, spot: Spot, **kwargs) -> TimelineEngine:
        kwargs.setdefault("hero", spot.hero.position)
        return cls(spot.history, effective_stack=spot.effective_stack, **kwargs)

    # ------------------------------------------------------------------ queries
    @property
    def state(self) -> TimelineState:
        with self._lock:
            return self._state

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return self._history

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every published snapshot; returns an unsubscribe callable."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def wait_for_decision(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    # ------------------------------------------------------------------ control
    def play(self) -> None:
        with self._lock:
            self._reset_locked()
            self._completed = False
            self._publish(replace(self._state, phase=PLAYING))
            logger.debug("Timeline started", extra={"entries": len(self._history)})
            self._schedule(self._timings.initial_delay)

    def pause(self) -> None:
        with self._lock:
            if self._state.phase != PLAYING:
                return
            self._cancel_pending()
            self._paused = True
            self._publish(replace(self._state, phase=IDLE))

    def resume(self) -> None:
        with self._lock:
            if not self._paused:
                return
            self._paused = False
            self._publish(replace(self._state, phase=PLAYING))
            self._schedule(self._timings.action_delay)

    def reset(self) -> None:
        with self._lock:
            self._reset_locked()

    # ------------------------------------------------------------------ internals
    def _fresh_state(self) -> TimelineState:
        return TimelineState(player_states=self._player_snapshot())

    def _player_snapshot(self) -> Mapping[str, PlayerTimelineState]:
        states = {
            seat.position: PlayerTimelineState(
                folded=not seat.in_hand,
                last_action=seat.last_action,
                last_bet_amount=seat.last_bet,
                last_bet_rounded=round_to_nearest_half(seat.last_bet) if seat.last_bet else None,
                stack=seat.stack,
            )
            for seat in self._ledger.seats.values()
        }
        return MappingProxyType(states)

    def _reset_locked(self) -> None:
        self._cancel_pending()
        self._paused = False
        self._index = 0
        self._done.clear()
        self._ledger = HandLedger(self._effective_stack, hero=self._hero)
        self._publish(self._fresh_state())

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule(self, delay_ms: float) -> None:
        self._cancel_pending()
        self._pending = self._scheduler.schedule(partial(self._step, self._generation), delay_ms)

    def _publish(self, state: TimelineState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _emit(self, event: TimelineEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)

    def _step(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state.phase != PLAYING:
                logger.debug("Ignoring stale timeline step", extra={"generation": generation})
                return
            self._pending = None
            if self._index >= len(self._history):
                self._finish()
                return
            entry = self._history[self._index]
            self._index += 1
            if isinstance(entry, StreetMarker):
                delay = self._street(entry)
            else:
                delay = self._action(entry)
            # A listener may have reset or restarted the replay while being notified.
            if generation == self._generation and self._state.phase == PLAYING:
                self._schedule(delay)

    def _street(self, marker: StreetMarker) -> float:
        self._ledger.start_street(marker)
        cards = BOARD_SIZES.get(marker.street, 0)
        self._publish(
            replace(
                self._state,
                current_street=marker.street,
                visible_board_cards=cards,
                last_action=None,
                current_bet=None,
                player_states=self._player_snapshot(),
                step_index=self._index,
            )
        )
        self._emit(TimelineEvent(type="street", street=marker.street, cards_to_reveal=cards))
        return self._timings.after_street(marker.street)

    def _action(self, action: PlayerAction) -> float:
        amount = self._ledger.act(action)
        exact = amount if amount > 0 else None
        rounded = round_to_nearest_half(amount) if exact is not None else None
        bet = None
        if action.contributes and exact is not None:
            bet = BetInFlight(
                position=action.position,
                exact_amount=exact,
                rounded_amount=rounded,
                action=action.action,
            )
        self._publish(
            replace(
                self._state,
                current_pot=self._ledger.pot,
                last_action=LastAction(
                    position=action.position,
                    action=action.action,
                    exact_amount=exact,
                    rounded_amount=rounded,
                ),
                current_bet=bet,
                player_states=self._player_snapshot(),
                step_index=self._index,
            )
        )
        self._emit(
            TimelineEvent(
                type="action",
                position=action.position,
                action=action.action,
                exact_amount=exact,
                rounded_amount=rounded,
            )
        )
        return self._timings.after_action(action.action)

    def _finish(self) -> None:
        self._publish(replace(self._state, phase=DECISION, last_action=None, current_bet=None))
        self._emit(TimelineEvent(type="decision"))
        generation = self._generation
        if not self._completed:
            self._completed = True
            logger.debug("Timeline reached decision", extra={"pot": self._ledger.pot})
            if self._on_complete is not None:
                self._on_complete()
        # Waiters wake only after the completion callback has run, and not at all
        # if the callback restarted or reset the replay.
        if generation == self._generation and self._state.phase == DECISION:
            self._done.set()
