"""
Bounded retry with exponential backoff
"""
import time
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def exponential_backoff(base: float, factor: float = 2.0) -> Iterator[float]:
    """
    Yield base, base * factor, base * factor ** 2, ...

    Args:
        base: first delay in seconds
        factor: multiplier applied after every retry
    """
    delay = base
    while True:
        yield delay
        delay *= factor


def retry(
    operation: Callable[[], T],
    max_attempts: int,
    backoff: Iterable[float],
    is_retryable: Callable[[Exception], bool],
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, float, Exception], None]] = None,
) -> T:
    """
    Run operation until it succeeds, a non-retryable error occurs or the
    attempt budget runs out

    Args:
        operation: zero-argument callable
        max_attempts: total number of attempts (>= 1)
        backoff: delays to sleep between attempts
        is_retryable: predicate deciding whether an exception earns a retry
        sleep: sleep function (injectable for tests)
        on_retry: called with (attempt, delay, exception) before sleeping

    Returns:
        The operation result

    Raises:
        The last exception raised by operation
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delays = iter(backoff)

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            if attempt == max_attempts or not is_retryable(e):
                raise

            delay = next(delays)
            if on_retry is not None:
                on_retry(attempt, delay, e)
            else:
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed ({e}), retrying in {delay}s"
                )
            sleep(delay)

    # max_attempts >= 1 guarantees the loop returned or raised
    raise RuntimeError("unreachable")
