"""
Convergence predicates and the polling loop that awaits them.

A predicate receives the latest observed object (or None when the resource
does not exist) and says whether it reached the target state.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import get_settings

logger = logging.getLogger(__name__)

Condition = Callable[[Optional[Any]], bool]


def ready_replicas_equal(nb_ready_replicas: int) -> Condition:
    """True when status.ready_replicas equals the target. A missing field counts as 0."""
    def condition(resource: Optional[Any]) -> bool:
        status = getattr(resource, "status", None) if resource is not None else None
        ready = getattr(status, "ready_replicas", None) if status is not None else None
        return (ready or 0) == nb_ready_replicas

    return condition


def suspend_equals(suspend: bool) -> Condition:
    """True when spec.suspend equals the target. A missing field never matches."""
    def condition(resource: Optional[Any]) -> bool:
        spec = getattr(resource, "spec", None) if resource is not None else None
        current = getattr(spec, "suspend", None) if spec is not None else None
        return current is not None and current == suspend

    return condition


async def await_condition(
    read: Callable[[], Awaitable[Optional[Any]]],
    condition: Condition,
    interval: Optional[float] = None
) -> Optional[Any]:
    """
    Poll a single resource until the condition holds.

    There is no deadline here: callers bound the wait with their own
    timeout. Read errors propagate.

    Args:
        read: Coroutine function returning the current object or None
        condition: Predicate over the observed object
        interval: Seconds between reads (default: settings)

    Returns:
        The object observed when the condition first held
    """
    if interval is None:
        interval = get_settings().condition_poll_interval_seconds

    while True:
        resource = await read()
        if condition(resource):
            return resource
        await asyncio.sleep(interval)
