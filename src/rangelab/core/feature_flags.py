"""Environment-driven feature flags.

Flags are read from ``RANGELAB_FEATURES`` (comma-separated, case-insensitive)
and can be overridden for a block of code with :func:`override`::

    from rangelab.core import feature_flags

    if feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY):
        ...

Known flags:

``spots.strict_consistency``
    Reject spots whose semantic checks fail (board/street mismatch, EV count,
    pot smaller than the history accounts for) instead of only logging them.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from contextlib import contextmanager
from typing import Final

ENV_VAR: Final = "RANGELAB_FEATURES"

STRICT_CONSISTENCY: Final = "spots.strict_consistency"


def _normalise(flag: str) -> str:
    return flag.strip().lower()


def _parse_env(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {_normalise(entry) for entry in raw.split(",") if entry.strip()}


_OVERRIDE_STACK: list[tuple[set[str], set[str]]] = []


def _current_overrides() -> tuple[set[str], set[str]]:
    enabled: set[str] = set()
    disabled: set[str] = set()
    for en, dis in _OVERRIDE_STACK:
        enabled.update(en)
        disabled.update(dis)
    return enabled, disabled


def is_enabled(flag: str) -> bool:
    """Return True when *flag* is enabled via env var or overrides."""

    key = _normalise(flag)
    enabled, disabled = _current_overrides()
    if key in disabled:
        return False
    if key in enabled:
        return True
    return key in _parse_env(os.getenv(ENV_VAR))


@contextmanager
def override(*, enable: Iterable[str] | None = None, disable: Iterable[str] | None = None):
    """Temporarily override flag state; nested overrides stack."""

    enabled = {_normalise(flag) for flag in (enable or ())}
    disabled = {_normalise(flag) for flag in (disable or ())}
    _OVERRIDE_STACK.append((enabled, disabled))
    try:
        yield
    finally:
        _OVERRIDE_STACK.pop()


def set_env_flags(flags: Iterable[str]) -> None:
    os.environ[ENV_VAR] = ",".join(sorted({_normalise(flag) for flag in flags}))
