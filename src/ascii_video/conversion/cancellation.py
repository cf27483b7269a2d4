"""
Cancellation Token
==================

Cooperative cancellation for long-running conversion jobs.

The driver polls the token once per iteration boundary. A step
already in flight (seek, sample) always completes first.

A token can also wrap a zero-argument predicate, so callers that
only expose an "is cancelled?" query can still stop a job.
"""

import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Thread-safe cancellation flag with an optional external predicate.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(driver.convert(source, 80, cancel_token=token))

        # Later, from any thread
        token.cancel()
    """

    def __init__(self, predicate: Optional[Callable[[], bool]] = None) -> None:
        self._event = threading.Event()
        self._predicate = predicate

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        if not self._event.is_set():
            logger.info("Cancellation requested")
        self._event.set()

    def is_cancelled(self) -> bool:
        """Whether the job should stop at the next iteration boundary."""
        if self._event.is_set():
            return True
        if self._predicate is not None and self._predicate():
            self._event.set()
            return True
        return False
