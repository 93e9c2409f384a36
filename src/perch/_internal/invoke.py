"""Invoke helpers — call sync or async callables uniformly.

Operation handlers and config hooks can be ``def`` or ``async def``.
Any code that calls a user-provided callable goes through ``invoke`` so
the sync/async check lives in exactly one place.

Usage::

    from perch._internal.invoke import invoke

    await invoke(handler, ctx)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        class Users:
            def Get(self, ctx):             # returns immediately
                ctx.data = "hello"

            async def PostPhoto(self, ctx): # coroutine, awaited
                ctx.data = await store(ctx.finder.require_map("photo"))
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
