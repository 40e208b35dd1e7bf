from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...core.models import FORMATS, STREETS
from ...replay.parser import parse
from .library import SpotFilters
from .schemas import HealthPayload
from .service import DrillConfig, DrillManager, spot_payload

__all__ = ["ChoiceRequest", "CreateDrillRequest", "ResultRequest", "create_drill_routers"]

_DEFAULT_SPOTS = 10
_MAX_SPOTS = 200


def _split_tags(raw: str | list[str] | None) -> tuple[str, ...]:
    if not raw:
        return ()
    items = raw.split(",") if isinstance(raw, str) else raw
    return tuple(tag.strip() for tag in items if tag and tag.strip())


def _filters(
    fmt: str | None,
    street: str | None,
    difficulty: int | None,
    min_diff: int | None,
    max_diff: int | None,
    tags: tuple[str, ...],
) -> SpotFilters:
    if fmt is not None and fmt not in FORMATS:
        raise HTTPException(400, f"unknown format '{fmt}'")
    if street is not None and street not in STREETS:
        raise HTTPException(400, f"unknown street '{street}'")
    return SpotFilters(
        fmt=fmt,
        street=street,
        difficulty=difficulty,
        min_difficulty=min_diff,
        max_difficulty=max_diff,
        tags=tags,
    )


class CreateDrillRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    spots: int | None = None
    fmt: str | None = None
    street: str | None = Field(default=None, alias="str")
    difficulty: int | None = None
    min_diff: int | None = Field(default=None, alias="minDiff")
    max_diff: int | None = Field(default=None, alias="maxDiff")
    tags: list[str] | None = None
    seed: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: dict[str, object]) -> dict[str, object]:
        if not isinstance(data, dict):
            return data
        cleaned: dict[str, object] = dict(data)
        for key in ("spots", "difficulty", "minDiff", "maxDiff", "seed"):
            value = cleaned.get(key)
            if value in (None, ""):
                cleaned[key] = None
                continue
            if isinstance(value, str):
                try:
                    cleaned[key] = int(value)
                except ValueError:
                    cleaned[key] = None
        tags = cleaned.get("tags")
        if isinstance(tags, str):
            cleaned["tags"] = list(_split_tags(tags))
        return cleaned

    @model_validator(mode="after")
    def _normalize(self) -> CreateDrillRequest:
        spots = self.spots if self.spots is not None else _DEFAULT_SPOTS
        self.spots = max(1, min(_MAX_SPOTS, spots))
        self.fmt = (self.fmt or "").strip().lower() or None
        self.street = (self.street or "").strip().lower() or None
        return self


class ChoiceRequest(BaseModel):
    option: str


class ResultRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    spot_id: str = Field(alias="spotId")
    selected_action: str = Field(alias="selectedAction")
    is_correct: bool = Field(alias="isCorrect")
    response_time_ms: int = Field(alias="responseTimeMs", ge=0)
    ev_loss: float | None = Field(default=None, alias="evLoss")


class _DrillController:
    def __init__(self, manager: DrillManager) -> None:
        self.manager = manager

    def _json_response(self, data: dict[str, object], status_code: int = 200) -> JSONResponse:
        return JSONResponse(data, status_code=status_code)

    # ------------------------------------------------------------------ spots
    async def health(self) -> JSONResponse:
        payload = HealthPayload(status="ok", timestamp=datetime.now(timezone.utc).isoformat())
        return self._json_response(payload.to_dict())

    async def random_spot(self, filters: SpotFilters) -> JSONResponse:
        try:
            spot = self.manager.library.random(filters)
        except LookupError as exc:
            raise HTTPException(404, str(exc)) from exc
        return self._json_response(self.manager.library.raw(spot.id))

    async def spot(self, spot_id: str) -> JSONResponse:
        try:
            raw = self.manager.library.raw(spot_id)
        except KeyError as exc:
            raise HTTPException(404, f"Spot not found: {spot_id}") from exc
        return self._json_response(raw)

    async def processed_spot(self, spot_id: str) -> JSONResponse:
        try:
            spot = self.manager.library.get(spot_id)
        except KeyError as exc:
            raise HTTPException(404, f"Spot not found: {spot_id}") from exc
        return self._json_response(spot_payload(parse(spot), reveal=True).to_dict())

    async def result(self, body: ResultRequest) -> JSONResponse:
        stored = self.manager.record_result(body.model_dump())
        return self._json_response({"status": "accepted", "stored": stored}, status_code=202)

    # ------------------------------------------------------------------ drill
    async def create(self, body: CreateDrillRequest) -> JSONResponse:
        filters = _filters(
            body.fmt,
            body.street,
            body.difficulty,
            body.min_diff,
            body.max_diff,
            tuple(body.tags or ()),
        )
        try:
            session_id = await self.manager.create_session_async(
                DrillConfig(spots=body.spots or _DEFAULT_SPOTS, filters=filters, seed=body.seed)
            )
        except LookupError as exc:
            raise HTTPException(404, str(exc)) from exc
        return self._json_response({"session": session_id})

    async def current(self, sid: str) -> JSONResponse:
        try:
            payload = await self.manager.current_async(sid)
        except KeyError as exc:
            raise HTTPException(404, str(exc)) from exc
        return self._json_response(payload.to_dict())

    async def choose(self, sid: str, body: ChoiceRequest) -> JSONResponse:
        try:
            result = await self.manager.choose_async(sid, body.option)
        except KeyError as exc:
            raise HTTPException(404, str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(400, str(exc)) from exc
        return self._json_response(result.to_dict())

    async def next(self, sid: str) -> JSONResponse:
        try:
            payload = await self.manager.next_spot_async(sid)
        except KeyError as exc:
            raise HTTPException(404, str(exc)) from exc
        except LookupError as exc:
            raise HTTPException(404, str(exc)) from exc
        return self._json_response(payload.to_dict())

    async def summary(self, sid: str) -> JSONResponse:
        try:
            summary = await self.manager.summary_async(sid)
        except KeyError as exc:
            raise HTTPException(404, str(exc)) from exc
        return self._json_response(summary.to_dict())


def create_drill_routers(manager: DrillManager) -> tuple[APIRouter, APIRouter]:
    """Return ``(spots_router, drill_router)`` bound to ``manager``."""

    controller = _DrillController(manager)

    spots_router = APIRouter(tags=["spots"])
    drill_router = APIRouter(prefix="/api/v1/drill", tags=["drill"])

    @spots_router.get("/health")
    async def health() -> JSONResponse:
        return await controller.health()

    @spots_router.get("/spots/random")
    async def random_spot(
        fmt: str | None = None,
        street: str | None = Query(default=None, alias="str"),
        difficulty: int | None = None,
        min_diff: int | None = Query(default=None, alias="minDiff"),
        max_diff: int | None = Query(default=None, alias="maxDiff"),
        tags: str | None = None,
    ) -> JSONResponse:
        filters = _filters(fmt, street, difficulty, min_diff, max_diff, _split_tags(tags))
        return await controller.random_spot(filters)

    @spots_router.get("/spots/{spot_id}")
    async def get_spot(spot_id: str) -> JSONResponse:
        return await controller.spot(spot_id)

    @spots_router.get("/spots/{spot_id}/processed")
    async def get_processed_spot(spot_id: str) -> JSONResponse:
        return await controller.processed_spot(spot_id)

    @spots_router.post("/results")
    async def post_result(body: ResultRequest) -> JSONResponse:
        return await controller.result(body)

    @drill_router.post("")
    async def create_drill(body: CreateDrillRequest) -> JSONResponse:
        return await controller.create(body)

    @drill_router.get("/{sid}/spot")
    async def get_current(sid: str) -> JSONResponse:
        return await controller.current(sid)

    @drill_router.post("/{sid}/choose")
    async def post_choice(sid: str, body: ChoiceRequest) -> JSONResponse:
        return await controller.choose(sid, body)

    @drill_router.post("/{sid}/next")
    async def post_next(sid: str) -> JSONResponse:
        return await controller.next(sid)

    @drill_router.get("/{sid}/summary")
    async def get_summary(sid: str) -> JSONResponse:
        return await controller.summary(sid)

    return spots_router, drill_router
