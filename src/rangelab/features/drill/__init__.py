"""Drill feature: spot library, session service, schemas, and API routers."""

from .library import SpotFilters, SpotLibrary, SpotLibraryConfig
from .router import create_drill_routers
from .schemas import (
    ChoiceResult,
    DecisionPayload,
    DecisionSnapshot,
    ExplanationPayload,
    OptionPayload,
    SpotPayload,
    SpotResponse,
    SummaryPayload,
)
from .service import DrillConfig, DrillManager

__all__ = [
    "ChoiceResult",
    "DecisionPayload",
    "DecisionSnapshot",
    "DrillConfig",
    "DrillManager",
    "ExplanationPayload",
    "OptionPayload",
    "SpotFilters",
    "SpotLibrary",
    "SpotLibraryConfig",
    "SpotPayload",
    "SpotResponse",
    "SummaryPayload",
    "create_drill_routers",
]
