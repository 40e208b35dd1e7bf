"""Seat rotation helpers.

The table always draws the hero at the bottom; every other position is placed
by counting seats clockwise from the hero in six-max order.  Slot 0 is the
hero, slot 1 the seat to the hero's left, and so on around to slot 5.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import POSITIONS_6MAX

__all__ = ["SeatRotation", "DEFAULT_ROTATION", "seat_slot", "villain_slots"]


@dataclass(frozen=True)
class SeatRotation:
    """Deterministic mapping from positions to visual seat slots."""

    order: tuple[str, ...] = POSITIONS_6MAX

    def __post_init__(self) -> None:
        if len(set(self.order)) != len(self.order) or not self.order:
            raise ValueError("Seat rotation must list each position exactly once")

    def index_of(self, position: str) -> int:
        try:
            return self.order.index(position)
        except ValueError:
            raise ValueError(f"unknown position {position!r}") from None

    def slot(self, position: str, hero: str) -> int:
        return (self.index_of(position) - self.index_of(hero)) % len(self.order)

    def villain_slots(self, hero: str) -> dict[str, int]:
        return {pos: self.slot(pos, hero) for pos in self.order if pos != hero}


DEFAULT_ROTATION = SeatRotation()


def seat_slot(position: str, hero: str) -> int:
    return DEFAULT_ROTATION.slot(position, hero)


def villain_slots(hero: str) -> dict[str, int]:
    return DEFAULT_ROTATION.villain_slots(hero)
