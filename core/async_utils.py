"""
DecoExt - Async Utilities

Small helpers shared by the dependency-injection and dispatch layers:
- call_once: guard that runs a callback a single time
- maybe_await: uniform handling of sync and async callables
- gather_in_order: start awaitables in order, join them all, raise the first error
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Awaitable, Callable, Iterable, List, TypeVar, Union

T = TypeVar("T")


def call_once(callback: Callable[[], Any]) -> Callable[[], None]:
    """
    Wrap ``callback`` so that only the first invocation runs it.

    Usage:
        subscribe = call_once(lambda: source.subscribe(on_event))
        subscribe()
        subscribe()  # no-op
    """
    called = False

    @functools.wraps(callback)
    def wrapper() -> None:
        nonlocal called
        if not called:
            called = True
            callback()

    return wrapper


async def maybe_await(value: Union[T, Awaitable[T]]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


async def gather_in_order(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    """
    Schedule ``awaitables`` in iteration order and wait for all of them.

    Starts are ordered, completions are not. Nothing is scheduled until
    every awaitable has been produced, so an error raised by the iterable
    itself starts none of them. Every task is awaited to completion and the
    first failure, in start order, is raised.
    """
    pending: List[Awaitable[T]] = []
    try:
        for aw in awaitables:
            pending.append(aw)
    except BaseException:
        for aw in pending:
            if inspect.iscoroutine(aw):
                aw.close()
        raise

    if not pending:
        return []
    tasks = [asyncio.ensure_future(aw) for aw in pending]
    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
