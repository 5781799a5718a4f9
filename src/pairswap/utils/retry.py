"""Recovery combinator for steps whose effect can be re-checked.

Used where an action may fail after its effect already landed (or landed
through another actor): wait, re-check the condition, and only then decide
whether the failure is fatal.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def recover_with_recheck(
    action: Callable[[], Awaitable[T]],
    recheck: Callable[[], Awaitable[bool]],
    *,
    delay: float,
    recover_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
) -> Optional[T]:
    """Run ``action``; on a recoverable error, wait and re-check once.

    Args:
        action: The step to run
        recheck: Returns True when the desired state is already reached
        delay: Seconds to wait before re-checking
        recover_on: Exception types eligible for recovery
        sleep: Injectable sleep

    Returns:
        The action's result, or None when recovered through the re-check

    Raises:
        The original exception when the re-check does not confirm recovery
    """
    try:
        return await action()
    except recover_on as e:
        logger.warning(f"{type(e).__name__}: {e}. Re-checking in {delay}s")
        await sleep(delay)
        if await recheck():
            logger.info("Re-check confirms desired state despite error")
            return None
        raise
