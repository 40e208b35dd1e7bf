from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

_T = TypeVar("_T")

# Drill operations are short and lock-bound; a small pool keeps the event loop free.
_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="rangelab-drill")


async def run_blocking(func: Callable[..., _T], /, *args: Any, **kwargs: Any) -> _T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_EXECUTOR, partial(func, *args, **kwargs))
