from __future__ import annotations

import argparse
import logging
import sys

from .core.models import FORMATS, STREETS
from .drill_play import run_drill
from .features.drill.library import SpotFilters


def _add_drill_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--count", type=int, default=5, help="Number of random spots to drill")
    p.add_argument("--spot-id", type=str, default=None, help="Drill a single spot by id")
    p.add_argument("--spots", type=str, default=None, metavar="PATH", help="Spot library JSON (bundled set if omitted)")
    # If omitted, runs with a random seed for variety. Pass an int to reproduce.
    p.add_argument("--seed", type=int, default=None, help="RNG seed (random if omitted)")
    p.add_argument("--speed", type=float, default=1.0, help="Replay speed multiplier (2 = twice as fast)")
    p.add_argument("--instant", action="store_true", help="Skip replay delays")
    p.add_argument("--format", dest="fmt", choices=FORMATS, default=None, help="Only spots of this format")
    p.add_argument("--street", choices=STREETS, default=None, help="Only spots decided on this street")
    p.add_argument("--tag", action="append", default=[], help="Only spots carrying this tag (repeatable)")
    p.add_argument("--no-color", action="store_true", help="Disable colored output (default is colored)")


def _add_serve_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)


def main(argv: list[str] | None = None) -> None:
    """Drill is the default command; ``serve`` starts the HTTP API.

    An explicit "drill" subcommand is accepted as well.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.WARNING)

    first_non_flag = next((t for t in argv if not t.startswith("-")), None)
    if first_non_flag == "serve":
        argv.remove("serve")
        parser = argparse.ArgumentParser(prog="rangelab serve", description="Serve the spot and drill HTTP API")
        _add_serve_args(parser)
        args = parser.parse_args(argv)

        import uvicorn

        uvicorn.run("rangelab.web.app:create_app", host=args.host, port=args.port, factory=True)
        return

    if first_non_flag == "drill":
        argv.remove("drill")

    parser = argparse.ArgumentParser(prog="rangelab", description="Replay poker spots and drill your decisions")
    _add_drill_args(parser)
    args = parser.parse_args(argv)
    if args.speed <= 0:
        parser.error("--speed must be positive")

    try:
        run_drill(
            spots_path=args.spots,
            spot_id=args.spot_id,
            count=args.count,
            speed=args.speed,
            instant=args.instant,
            seed=args.seed,
            filters=SpotFilters(fmt=args.fmt, street=args.street, tags=tuple(args.tag)),
            no_color=args.no_color,
        )
    except (KeyError, LookupError) as exc:
        raise SystemExit(f"rangelab: {exc}") from exc
    except KeyboardInterrupt:
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
