"""Fixed-budget retry policy for product extraction."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from wooscrape.config import RETRY_ATTEMPTS, RETRY_DELAY
from wooscrape.errors import ExtractionError
from wooscrape.logging_config import get_logger

__all__ = ["RetryPolicy"]

logger = get_logger("retry")

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Run a fallible call up to ``max_attempts`` times.

    Every error is retried the same way, with a fixed ``delay`` between
    attempts (no exponential backoff). ``sleep`` is injectable so tests
    and the worker pool can replace ``time.sleep``.

    Usage:
        policy = RetryPolicy(max_attempts=3, delay=5.0)
        product = policy.call(extractor.extract, url)
    """

    max_attempts: int = RETRY_ATTEMPTS
    delay: float = RETRY_DELAY
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")

    def call(
        self,
        fn: Callable[..., T],
        *args,
        label: Optional[str] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        **kwargs,
    ) -> T:
        """Call ``fn(*args, **kwargs)`` until it succeeds or the budget is spent.

        Args:
            fn: The fallible call
            label: Name used in log lines (defaults to the first argument)
            should_stop: Checked after each failure; once it returns True no
                further attempts are made

        Returns:
            Whatever ``fn`` returns on its first successful attempt

        Raises:
            ExtractionError: After ``max_attempts`` failures, or earlier once
                ``should_stop`` returns True; chained from the last error
        """
        target = label if label is not None else (str(args[0]) if args else fn.__name__)
        last_error: Optional[Exception] = None
        attempts = 0

        while attempts < self.max_attempts:
            attempts += 1
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Error (attempt {attempts}/{self.max_attempts}) on {target}: {e}"
                )
            if attempts == self.max_attempts:
                break
            if _stopped(should_stop):
                logger.info(f"Stop requested, not retrying {target}")
                break
            self.sleep(self.delay)
            # the pause may have been cut short by the stop
            if _stopped(should_stop):
                logger.info(f"Stop requested, not retrying {target}")
                break

        logger.error(f"Failed {target} after {attempts} attempts")
        raise ExtractionError(
            f"Giving up on {target} after {attempts} attempts: {last_error}",
            url=target,
            attempts=attempts,
        ) from last_error


def _stopped(should_stop: Optional[Callable[[], bool]]) -> bool:
    return should_stop is not None and should_stop()
