from __future__ import annotations

import json
import logging
import os
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ...core import feature_flags
from ...core.models import Spot, SpotFormatError
from ...replay.parser import check_consistency, validate

__all__ = ["ENV_SPOTS", "SpotFilters", "SpotLibrary", "SpotLibraryConfig", "default_resource"]

logger = logging.getLogger(__name__)

ENV_SPOTS = "RANGELAB_SPOTS"


def default_resource() -> Path:
    override = os.getenv(ENV_SPOTS)
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[2] / "data" / "spots.json"


@dataclass(frozen=True)
class SpotFilters:
    """Selection criteria for :meth:`SpotLibrary.random`; tags match ANY."""

    fmt: str | None = None
    street: str | None = None
    difficulty: int | None = None
    min_difficulty: int | None = None
    max_difficulty: int | None = None
    tags: tuple[str, ...] = ()

    def matches(self, spot: Spot) -> bool:
        if self.fmt and spot.format != self.fmt:
            return False
        if self.street and spot.street != self.street:
            return False
        if self.difficulty is not None and spot.difficulty != self.difficulty:
            return False
        if self.min_difficulty is not None and (spot.difficulty is None or spot.difficulty < self.min_difficulty):
            return False
        if self.max_difficulty is not None and (spot.difficulty is None or spot.difficulty > self.max_difficulty):
            return False
        if self.tags:
            wanted = {tag.strip().lower() for tag in self.tags if tag.strip()}
            have = {tag.lower() for tag in spot.tags}
            if spot.meta is not None:
                have.update(tag.lower() for tag in spot.meta.concept)
            if wanted and not wanted & have:
                return False
        return True


@dataclass(slots=True)
class SpotLibraryConfig:
    resource: Path


class SpotLibrary:
    """Local collection of spots keyed by id, loaded from a JSON resource."""

    def __init__(
        self,
        config: SpotLibraryConfig | None = None,
        *,
        entries: Iterable[Mapping[str, Any]] | None = None,
    ) -> None:
        self._raw: dict[str, dict[str, Any]] = {}
        self._spots: dict[str, Spot] = {}
        if entries is not None:
            self._config = SpotLibraryConfig(resource=Path("<memory>"))
            self._ingest(entries)
            return
        resource = config.resource if config else default_resource()
        self._config = SpotLibraryConfig(resource=resource)
        self._ingest(self._load_resource(resource))

    @classmethod
    def from_entries(cls, entries: Iterable[Mapping[str, Any]]) -> SpotLibrary:
        return cls(entries=entries)

    @staticmethod
    def _load_resource(path: Path) -> list[Any]:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if isinstance(data, dict):
            data = data.get("spots")
        if not isinstance(data, list):
            raise ValueError(f"Invalid spot library payload in {path}")
        return data

    def _ingest(self, entries: Iterable[Any]) -> None:
        for idx, raw in enumerate(entries):
            if not validate(raw):
                logger.warning("Skipping structurally invalid spot at index %d", idx)
                continue
            try:
                spot = Spot.from_wire(raw)
            except SpotFormatError as exc:
                logger.warning("Skipping malformed spot %s: %s", raw["id"], exc)
                continue
            if spot.id in self._spots:
                logger.warning("Duplicate spot id %s; keeping the first entry", spot.id)
                continue
            issues = check_consistency(spot)
            if issues:
                logger.warning("Spot %s has consistency issues: %s", spot.id, "; ".join(issues))
                if feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY):
                    continue
            self._raw[spot.id] = dict(raw)
            self._spots[spot.id] = spot
        logger.debug("Loaded %d spots", len(self._spots), extra={"resource": str(self._config.resource)})

    def __len__(self) -> int:
        return len(self._spots)

    def __contains__(self, spot_id: object) -> bool:
        return spot_id in self._spots

    def ids(self) -> list[str]:
        return list(self._spots)

    def get(self, spot_id: str) -> Spot:
        spot = self._spots.get(spot_id)
        if spot is None:
            raise KeyError(f"spot '{spot_id}' not found")
        return spot

    def raw(self, spot_id: str) -> dict[str, Any]:
        if spot_id not in self._raw:
            raise KeyError(f"spot '{spot_id}' not found")
        return json.loads(json.dumps(self._raw[spot_id]))

    def filter(self, filters: SpotFilters | None = None) -> list[Spot]:
        if filters is None:
            return list(self._spots.values())
        return [spot for spot in self._spots.values() if filters.matches(spot)]

    def random(self, filters: SpotFilters | None = None, rng: random.Random | None = None) -> Spot:
        candidates = self.filter(filters)
        if not candidates:
            raise LookupError("No matching spot found")
        return (rng or random).choice(candidates)
