from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from ..features.drill import DrillManager, SpotLibrary, create_drill_routers

logger = logging.getLogger(__name__)


def create_app(manager: DrillManager | None = None) -> FastAPI:
    app = FastAPI(title="RangeLab", description="Spot library and drill sessions for poker decision training")
    manager = manager or DrillManager(SpotLibrary())
    spots_router, drill_router = create_drill_routers(manager)
    app.include_router(spots_router)
    app.include_router(drill_router)
    app.state.drill_manager = manager
    logger.debug("RangeLab app ready", extra={"spots": len(manager.library)})
    return app


def main() -> None:  # pragma: no cover - runner
    import uvicorn

    host = os.environ.get("BIND", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run("rangelab.web.app:create_app", host=host, port=port, factory=True)


if __name__ == "__main__":  # pragma: no cover
    main()
