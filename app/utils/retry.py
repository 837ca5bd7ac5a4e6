import time
import random
import logging
from typing import Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    *,
    retry_on: Tuple[Type[BaseException], ...],
    max_retries: int = 3,
    base_delay: float = 0.5,
    label: str = "external call",
) -> T:
    """
    Call `fn` up to `max_retries` times, sleeping with exponential backoff
    and jitter between attempts. Only exceptions listed in `retry_on` are
    retried; the last one is re-raised once attempts run out.
    """
    attempts = max(1, max_retries)

    for attempt in range(1, attempts + 1):
        try:
            return fn()

        except retry_on as e:
            if attempt == attempts:
                logger.error(f"{label} permanently failed after {attempt} attempts: {e}")
                raise

            logger.warning(f"{label} attempt {attempt} failed: {e}")

            sleep = base_delay * (2 ** (attempt - 1)) + random.random() * base_delay
            time.sleep(sleep)
