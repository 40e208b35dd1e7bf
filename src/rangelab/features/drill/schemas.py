from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ChoiceResult",
    "DecisionPayload",
    "DecisionSnapshot",
    "ExplanationPayload",
    "HealthPayload",
    "HistoryPayload",
    "OptionPayload",
    "PlayerPayload",
    "SpotPayload",
    "SpotResponse",
    "SummaryPayload",
]


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PlayerPayload(_APIModel):
    position: str
    stack: float
    is_hero: bool
    in_hand: bool
    folded: bool
    seat: int | None = None
    last_action: str | None = None
    cards: list[str] | None = None


class OptionPayload(_APIModel):
    id: str
    label: str
    # EV and correctness stay hidden until the hero has chosen.
    ev: float | None = None
    ev_label: str | None = None
    is_correct: bool | None = None
    freq: float | None = None


class HistoryPayload(_APIModel):
    position: str
    action: str
    text: str
    is_street_marker: bool
    amount: float | None = None
    rounded_amount: float | None = None
    sizing: str | None = None
    street: str | None = None


class SpotPayload(_APIModel):
    id: str
    format: str
    street: str
    street_name: str
    hero_position: str
    hero_hand: list[str]
    board: list[str]
    pot: float
    history_pot: float
    dead_money: float
    villains: list[str]
    players: list[PlayerPayload]
    options: list[OptionPayload]
    history: list[HistoryPayload]
    tags: list[str] = Field(default_factory=list)
    difficulty: int | None = None


class SummaryPayload(_APIModel):
    spots: int
    decisions: int
    hits: int
    accuracy_pct: float
    ev_lost: float
    avg_ev_lost: float
    avg_loss_pct: float
    score: float


class SpotResponse(_APIModel):
    done: bool
    spot_no: int
    total_spots: int
    decided: bool = False
    spot: SpotPayload | None = None
    summary: SummaryPayload | None = None


class DecisionSnapshot(_APIModel):
    id: str
    label: str
    ev: float
    ev_label: str


class ExplanationPayload(_APIModel):
    summary: str | None = None
    solver_notes: list[str] = Field(default_factory=list)
    freq: list[float] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)


class DecisionPayload(_APIModel):
    correct: bool
    selected: DecisionSnapshot
    best: DecisionSnapshot
    ev_diff: float
    decisions: int
    hits: int
    explanation: ExplanationPayload | None = None


class ChoiceResult(_APIModel):
    feedback: DecisionPayload
    spot: SpotPayload


class HealthPayload(_APIModel):
    status: str
    timestamp: str
