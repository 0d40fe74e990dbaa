"""
DnD expiry scheduler.

Background thread that periodically deactivates lapsed DnD windows.

Key behaviors:
- Sweeps once immediately on start (configurable), then every interval
- After a failed sweep, waits the shorter error backoff before retrying
- stop() interrupts the wait and the current batch between rows
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from business_settings.components.settings import ExpiryBatchResult, SettingsService

logger = logging.getLogger(__name__)


class DndExpiryScheduler:
    """Runs SettingsService.process_expired_dnd_modes on a timer."""

    def __init__(
        self,
        service: SettingsService,
        interval_seconds: float = 900.0,
        error_backoff_seconds: float = 300.0,
        run_on_start: bool = True,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            service: Settings service owning the sweep
            interval_seconds: Delay between successful sweeps
            error_backoff_seconds: Delay after a sweep that raised
            run_on_start: Sweep immediately when the thread starts
        """
        if interval_seconds <= 0 or error_backoff_seconds <= 0:
            raise ValueError("Scheduler intervals must be positive")

        self._service = service
        self._interval = interval_seconds
        self._error_backoff = error_backoff_seconds
        self._run_on_start = run_on_start
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background scheduler."""
        if self._running:
            return
        if self._thread is not None and self._thread.is_alive():
            # A previous loop has not exited yet; clearing the event would revive it
            logger.warning("DnD expiry scheduler is still stopping; start ignored")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="dnd-expiry-scheduler", daemon=True
        )
        self._thread.start()
        self._running = True
        logger.info(
            "DnD expiry scheduler started (interval: %.1fs, error backoff: %.1fs)",
            self._interval,
            self._error_backoff,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the scheduler, letting an in-flight row finish."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(
                    "DnD expiry scheduler did not stop within %.1fs; sweep still in progress",
                    timeout,
                )
                return
        self._running = False
        logger.info("DnD expiry scheduler stopped")

    def trigger_now(self) -> ExpiryBatchResult:
        """Run one sweep on the calling thread."""
        return self._sweep()

    @property
    def is_running(self) -> bool:
        return self._running

    def _sweep(self) -> ExpiryBatchResult:
        result = self._service.process_expired_dnd_modes(should_stop=self._stop_event.is_set)
        if result.total_due > 0:
            logger.info(
                "Expiry sweep: %d due, %d expired, %d failed, %d deferred",
                result.total_due,
                result.expired,
                result.failed,
                result.abandoned,
            )
        return result

    def _poll_loop(self) -> None:
        """Background polling loop."""
        delay = 0.0 if self._run_on_start else self._interval
        while not self._stop_event.wait(timeout=delay):
            try:
                self._sweep()
                delay = self._interval
            except Exception:
                logger.exception(
                    "Error in DnD expiry sweep; retrying in %.1fs", self._error_backoff
                )
                delay = self._error_backoff
