"""Background refresher for the catalog summary cache."""

import logging
import queue
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..models.application import AppSummary, Summary


logger = logging.getLogger(__name__)

SummaryLoader = Callable[[], Tuple[List[AppSummary], Summary]]


class CacheSignal(Enum):
    REFRESH = "refresh"
    STOP = "stop"


class SummaryCache:
    """Last good (AppSummary list, Summary) snapshot refreshed in a background thread.

    The thread wakes up every ``refresh_interval`` seconds or when a refresh is
    requested. In both cases the loader only runs if at least a third of the
    interval elapsed since the last successful refresh, so bursts of writes
    cause a single recomputation.
    """

    def __init__(self, loader: SummaryLoader, refresh_interval: float,
                 clock: Callable[[], float] = time.monotonic):
        self.loader = loader
        self.refresh_interval = refresh_interval
        self.min_refresh_gap = refresh_interval / 3
        self._clock = clock
        self._lock = threading.Lock()
        self._apps: List[AppSummary] = []
        self._summary: Optional[Summary] = None
        self._last_refresh: Optional[float] = None
        # one pending refresh is enough, extra requests are coalesced
        self._signals: queue.Queue = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Fill the cache and start the refresher thread."""
        if self._thread is not None:
            return
        self.refresh()
        self._thread = threading.Thread(target=self._refresh_loop, name="summary-cache", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        """Stop the refresher thread once the pending signals are handled."""
        if self._thread is None:
            return
        self._signals.put(CacheSignal.STOP)
        self._thread.join(timeout)
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def request_refresh(self):
        """Ask for a refresh without waiting for it."""
        try:
            self._signals.put_nowait(CacheSignal.REFRESH)
        except queue.Full:
            logger.debug("Summary cache refresh already pending")

    def snapshot(self) -> Tuple[List[AppSummary], Optional[Summary]]:
        """Return the last good application summaries and catalog summary."""
        with self._lock:
            return list(self._apps), self._summary

    def refresh(self) -> bool:
        """Recompute the snapshot now, keeping the previous one on failure."""
        try:
            apps, summary = self.loader()
        except Exception as e:
            logger.error(f"Error filling the summary cache: {e}")
            return False

        with self._lock:
            self._apps = apps
            self._summary = summary
            self._last_refresh = self._clock()
        logger.debug(f"{len(apps)} applications in cache")
        return True

    def refresh_if_due(self) -> bool:
        """Refresh unless the last refresh is more recent than a third of the interval."""
        with self._lock:
            last_refresh = self._last_refresh
        if last_refresh is not None and self._clock() - last_refresh < self.min_refresh_gap:
            logger.debug("Skipping summary cache refresh, last one is too recent")
            return False
        return self.refresh()

    def _refresh_loop(self):
        while True:
            try:
                signal = self._signals.get(timeout=self.refresh_interval)
            except queue.Empty:
                signal = CacheSignal.REFRESH

            if signal is CacheSignal.STOP:
                logger.debug("Summary cache refresher stopped")
                return
            self.refresh_if_due()
