"""
Async helpers shared by deployment and infrastructure actions.

The deployment pipeline calls actions synchronously while the Kubernetes
work underneath is a chain of coroutines; block_on bridges the two.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Tuple, TypeVar

T = TypeVar("T")


def block_on(awaitable: Awaitable[T]) -> T:
    """
    Run a coroutine to completion from synchronous code.

    Unlike asyncio.run, the loop is closed without joining the default
    executor: a blocking call still running in a worker thread after a
    timeout is abandoned, not waited for.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(_await(awaitable))
    finally:
        try:
            _cancel_all_tasks(loop)
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            # close() shuts the default executor down with wait=False
            loop.close()


def _cancel_all_tasks(loop: asyncio.AbstractEventLoop) -> None:
    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


async def best_effort(
    awaitable: Awaitable[T],
    default: Any,
    logger: logging.Logger,
    what: str
) -> Tuple[Any, Optional[Exception]]:
    """
    Await a read whose failure must not abort the caller.

    Returns (value, None) on success and (default, error) on failure. The
    error is logged and handed back so the call site decides what to do
    with it. Cancellation is never absorbed.
    """
    try:
        return await awaitable, None
    except Exception as e:
        logger.warning(f"{what} failed, continuing without it: {e}")
        return default, e
