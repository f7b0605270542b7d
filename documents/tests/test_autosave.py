from __future__ import annotations

from typing import Callable, List

from documents.logic.autosave import AutoSaveDebouncer


class ManualTimer:
    """Timer stand-in that only fires when told to."""

    def __init__(self, interval: float, fn: Callable[[], None]) -> None:
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


def _debouncer(saved: List[dict], timers: List[ManualTimer], save=None) -> AutoSaveDebouncer:
    def factory(interval, fn):
        timer = ManualTimer(interval, fn)
        timers.append(timer)
        return timer
    return AutoSaveDebouncer(save or saved.append, quiet_seconds=2.0, timer_factory=factory)


def test_rapid_edits_save_once_with_latest_values() -> None:
    saved: List[dict] = []
    timers: List[ManualTimer] = []
    debouncer = _debouncer(saved, timers)
    debouncer.touch({"name": "A"})
    debouncer.touch({"name": "Al"})
    debouncer.touch({"name": "Alice"})

    assert [t.cancelled for t in timers] == [True, True, False]
    assert timers[-1].interval == 2.0
    for t in timers:
        t.fire()
    assert saved == [{"name": "Alice"}]
    assert debouncer.save_count == 1
    assert not debouncer.pending


def test_flush_and_cancel() -> None:
    saved: List[dict] = []
    timers: List[ManualTimer] = []
    debouncer = _debouncer(saved, timers)
    assert debouncer.flush() is False

    debouncer.touch({"name": "Bob"})
    assert debouncer.pending
    assert debouncer.flush() is True
    assert saved == [{"name": "Bob"}]
    timers[-1].fire()
    assert len(saved) == 1

    debouncer.touch({"name": "Carol"})
    debouncer.cancel()
    timers[-1].fire()
    assert len(saved) == 1


def test_failed_save_is_logged_not_raised(caplog) -> None:
    def broken(_values):
        raise OSError("disk full")
    timers: List[ManualTimer] = []
    debouncer = _debouncer([], timers, save=broken)
    debouncer.touch({"name": "x"})
    timers[-1].fire()
    assert debouncer.save_count == 0
    assert "auto-save failed" in caplog.text
