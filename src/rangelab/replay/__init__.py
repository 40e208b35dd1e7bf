"""Spot parsing and timed history replay."""

from .parser import ProcessedSpot, check_consistency, load_spot, parse, validate
from .scheduler import AsyncioScheduler, ManualScheduler, ThreadingScheduler
from .timeline import TimelineEngine, TimelineEvent, TimelineState, TimelineTimings

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "ProcessedSpot",
    "ThreadingScheduler",
    "TimelineEngine",
    "TimelineEvent",
    "TimelineState",
    "TimelineTimings",
    "check_consistency",
    "load_spot",
    "parse",
    "validate",
]
