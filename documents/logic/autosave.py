"""
autosave.py

Debounced auto-save of in-progress field values.

- Every ``touch`` cancels the pending timer and starts a new one.
- The save callback runs once the quiet period (default 2s) has passed
  without further edits, with the latest values.
- ``flush`` saves immediately (e.g. before submit), ``cancel`` drops the
  pending save.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

SaveCallback = Callable[[Dict[str, str]], None]
TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _daemon_timer(interval: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, fn)
    timer.daemon = True
    return timer


class AutoSaveDebouncer:
    def __init__(
        self,
        save: SaveCallback,
        *,
        quiet_seconds: float = 2.0,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self._save = save
        self.quiet_seconds = quiet_seconds
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Dict[str, str]] = None
        self.save_count = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def touch(self, values: Mapping[str, str]) -> None:
        """Record an edit and restart the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = dict(values)
            self._timer = self._timer_factory(self.quiet_seconds, self._fire)
            self._timer.start()

    def flush(self) -> bool:
        """Save pending values now. Returns False if nothing was pending."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            values, self._pending = self._pending, None
        if values is None:
            return False
        self._run(values)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            values, self._pending = self._pending, None
        if values is not None:
            self._run(values)

    def _run(self, values: Dict[str, str]) -> None:
        try:
            self._save(values)
            self.save_count += 1
        except OSError as ex:
            # the next edit schedules a new save
            logger.warning("auto-save failed: %s", ex)
