from __future__ import annotations

import logging
import random
import secrets
from pathlib import Path
from typing import Any

from .features.drill.library import SpotFilters, SpotLibrary, SpotLibraryConfig
from .replay.parser import parse
from .replay.scheduler import ManualScheduler, Scheduler, ThreadingScheduler
from .replay.timeline import TimelineEngine, TimelineTimings
from .ui.presenters import RichPresenter

logger = logging.getLogger(__name__)

# Upper bound on waiting for a threaded replay; a long history at speed 1 takes a few seconds.
_DECISION_TIMEOUT_S = 120.0


def run_drill(
    *,
    spots_path: str | None = None,
    spot_id: str | None = None,
    count: int = 5,
    speed: float = 1.0,
    instant: bool = False,
    seed: int | None = None,
    filters: SpotFilters | None = None,
    no_color: bool = False,
    presenter: RichPresenter | None = None,
    _input_fn=input,
) -> list[dict[str, Any]]:
    """Replay spots in the terminal, ask for a decision, reveal the answer.

    Returns the decision records shown in the final summary.
    """

    presenter = presenter or RichPresenter(no_color=no_color, input_fn=_input_fn)
    config = SpotLibraryConfig(resource=Path(spots_path)) if spots_path else None
    library = SpotLibrary(config)
    rng = random.Random(seed if seed is not None else secrets.randbits(32))
    timings = TimelineTimings().scaled(speed)

    if spot_id is not None:
        queue = [library.get(spot_id)]
    else:
        queue = [library.random(filters, rng) for _ in range(max(1, count))]

    records: list[dict[str, Any]] = []
    for spot_no, spot in enumerate(queue, 1):
        processed = parse(spot)
        presenter.start_spot(spot_no, len(queue), processed)

        scheduler: Scheduler = ManualScheduler() if instant else ThreadingScheduler()
        engine = TimelineEngine.from_spot(
            spot,
            scheduler=scheduler,
            timings=timings,
            on_event=lambda event: presenter.show_event(event, engine.state, processed),
        )
        engine.play()
        if isinstance(scheduler, ManualScheduler):
            scheduler.run_all()
        elif not engine.wait_for_decision(_DECISION_TIMEOUT_S):
            logger.warning("Replay of %s did not reach the decision point", spot.id)
            engine.reset()

        presenter.show_options(processed.options)
        idx = presenter.prompt_choice(len(processed.options))
        if presenter.quit_requested:
            break
        chosen = processed.options[idx]
        best = processed.correct_option or chosen
        presenter.show_feedback(processed, chosen)
        records.append(
            {
                "spot_id": processed.id,
                "chosen_key": chosen.id,
                "is_correct": chosen.is_correct,
                "chosen_ev": chosen.ev,
                "best_key": best.id,
                "best_ev": best.ev,
                "pot_bb": processed.pot,
            }
        )

    presenter.summary(records)
    return records
