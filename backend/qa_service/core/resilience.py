"""
Degrade-don't-fail helper for calls to optional dependencies (the AI gateway).
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def resilient_call(
    primary: Callable[[], Awaitable[Optional[T]]],
    fallback: Callable[[], T],
    *,
    label: str = "call",
) -> T:
    """
    Await ``primary()`` and return its value, or ``fallback()`` when it raises
    or returns ``None``.

    Only ``Exception`` subclasses are absorbed; cancellation still propagates.
    The fallback itself must not raise.
    """
    try:
        result = await primary()
    except Exception as e:
        logger.warning("%s failed, using fallback: %s", label, e)
        return fallback()
    if result is None:
        logger.info("%s returned nothing, using fallback", label)
        return fallback()
    return result
