"""
Ordered fallback over interchangeable attempts.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Attempt(Generic[T]):
    """
    One option in a fallback chain.

    Args:
        run: Zero-argument coroutine function producing the result
        label: Prefix for the recorded failure reason (None = bare reason)
    """
    run: Callable[[], Awaitable[T]]
    label: Optional[str] = None

    def describe(self, error: BaseException) -> str:
        reason = str(error) or type(error).__name__
        if self.label is None:
            return reason
        return f"{self.label}: {reason}"


async def first_success(
    attempts: Sequence[Attempt[T]],
    exhausted: Callable[[List[str]], Exception],
    stage: str = "fallback",
) -> T:
    """
    Run attempts one after another and return the first result.

    Each attempt fully completes before the next one starts. Failures are
    recorded and never abort the chain early.

    Args:
        attempts: Ordered attempts
        exhausted: Builds the exception raised when all attempts fail
        stage: Name used in log messages

    Returns:
        Result of the first successful attempt

    Raises:
        Whatever ``exhausted`` returns, once every attempt has failed
    """
    errors: List[str] = []

    for index, attempt in enumerate(attempts, start=1):
        try:
            result = await attempt.run()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = attempt.describe(e)
            errors.append(reason)
            logger.warning(f"{stage} attempt {index}/{len(attempts)} failed: {reason}")
            continue

        if index > 1:
            logger.info(f"{stage} succeeded on attempt {index}/{len(attempts)}")
        return result

    raise exhausted(errors)
