"""Invoke helpers — call sync or async callbacks uniformly.

Action callbacks, controller methods, listeners, and custom connection hooks
can be ``def`` or ``async def``. Any code that calls a user-provided callable
goes through this helper so the sync/async check lives in one place.

Usage::

    from heimdall._internal.invoke import invoke

    result = await invoke(callback, record)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
