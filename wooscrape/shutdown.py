"""Signal handling for scrape runs.

The first SIGINT/SIGTERM sets a stop event that the worker pool watches:
workers finish the page they are on and the products scraped so far are
still exported. A second signal runs the registered cleanup callbacks
(closing extractors) and exits immediately.
"""

import signal
import sys
import threading
from typing import Callable, Dict, List, Optional

from wooscrape.logging_config import get_logger

__all__ = ["ShutdownHandler", "HANDLED_SIGNALS"]

logger = get_logger("shutdown")

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

FORCED_EXIT_CODE = 1


class ShutdownHandler:
    """Turns process signals into a stop event for one run.

    Usage:
        with ShutdownHandler() as handler:
            pool = WorkerPool(stop_event=handler.event)
            handler.register_cleanup(pool.release_resources)
            pool.run(urls, 3, HtmlProductExtractor)

    Signal handlers can only be installed from the main thread.
    """

    def __init__(self, event: Optional[threading.Event] = None) -> None:
        self.event = event or threading.Event()
        self.signals_received = 0
        self._callbacks: List[Callable[[], None]] = []
        self._previous: Dict[int, object] = {}

    @property
    def installed(self) -> bool:
        return bool(self._previous)

    def install(self) -> "ShutdownHandler":
        if self.installed:
            return self
        for signum in HANDLED_SIGNALS:
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._on_signal)
        return self

    def uninstall(self) -> None:
        """Put back whatever handlers were active before ``install``."""
        for signum, previous in self._previous.items():
            if previous is not None:
                signal.signal(signum, previous)
        self._previous.clear()

    def __enter__(self) -> "ShutdownHandler":
        return self.install()

    def __exit__(self, *exc_info) -> None:
        self.uninstall()

    def _on_signal(self, signum: int, frame) -> None:
        self.signals_received += 1
        name = signal.Signals(signum).name

        if self.signals_received == 1:
            logger.warning(
                f"Received {name}, finishing in-flight pages and exporting what was scraped. "
                f"Press Ctrl+C again to quit immediately."
            )
            self.event.set()
            return

        logger.error(f"Received {name} again, quitting without export")
        self.cleanup()
        sys.exit(FORCED_EXIT_CODE)

    @property
    def shutdown_requested(self) -> bool:
        return self.event.is_set()

    def request_shutdown(self) -> None:
        """Same as receiving the first signal, without the signal."""
        self.event.set()

    def register_cleanup(self, callback: Callable[[], None]) -> None:
        """Register a callback for the forced-exit path."""
        self._callbacks.append(callback)

    def cleanup(self) -> None:
        """Run and forget every registered callback; failures are logged."""
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cleanup callback failed: {e}")
