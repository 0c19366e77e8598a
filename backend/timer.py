"""Pausable stopwatch used while running a training session.

Elapsed time is derived from a wall-clock reference captured on every
start/resume rather than by counting callbacks, so a late or dropped
clock callback does not lose time.  Ticks are scheduled on the Kivy
clock and changes are published through the ``on_time_change`` event.
"""

from __future__ import annotations

import logging
import time

from kivy.clock import Clock
from kivy.event import EventDispatcher
from kivy.properties import NumericProperty, OptionProperty

from backend import settings
from backend.utils import parse_time

TIMER_STATES = ("idle", "running", "paused", "stopped")


class SessionTimer(EventDispatcher):
    """Start/pause/resume/stop stopwatch with a manual override.

    Listeners receive ``(timer, seconds)`` on every tick and every manual
    change.
    """

    elapsed = NumericProperty(0)
    estimated_time = NumericProperty(0)
    state = OptionProperty("idle", options=TIMER_STATES)

    __events__ = ("on_time_change",)

    def __init__(self, *, clock=None, time_func=time.time, tick_interval: float | None = None, **kwargs):
        super().__init__(**kwargs)
        self._clock = clock or Clock
        self._time = time_func
        if tick_interval is None:
            tick_interval = settings.timer_tick_interval()
        self._interval = tick_interval
        self._event = None
        self._base = 0
        self._reference: float | None = None

    def on_time_change(self, seconds):
        pass

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------
    def subscribe(self, callback):
        """Register ``callback`` for time changes and return an unsubscribe function."""

        uid = self.fbind("on_time_change", callback)

        def unsubscribe() -> None:
            self.unbind_uid("on_time_change", uid)

        return unsubscribe

    def _emit(self) -> None:
        self.dispatch("on_time_change", self.elapsed)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _schedule(self) -> None:
        self._cancel()
        self._event = self._clock.schedule_interval(self.tick, self._interval)

    def _cancel(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None

    def _running_total(self) -> int:
        if self._reference is None:
            return self._base
        return self._base + max(0, int(self._time() - self._reference))

    def tick(self, dt=None):
        """Clock callback; recompute elapsed time and notify listeners.

        Returns ``False`` when the timer is not running so the Kivy clock
        drops the interval.
        """

        if self.state != "running":
            return False
        self.elapsed = self._running_total()
        self._emit()
        return True

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Start from ``idle``/``stopped`` or resume from ``paused``."""

        if self.state == "paused":
            return self.resume()
        if self.state == "running":
            return False
        self._base = int(self.elapsed)
        self._reference = self._time()
        self.state = "running"
        self._schedule()
        logging.debug("Timer started at %ss", self._base)
        return True

    def pause(self) -> bool:
        if self.state != "running":
            return False
        self._cancel()
        self.elapsed = self._base = self._running_total()
        self._reference = None
        self.state = "paused"
        logging.debug("Timer paused at %ss", self.elapsed)
        return True

    def resume(self) -> bool:
        if self.state != "paused":
            return False
        self._reference = self._time()
        self.state = "running"
        self._schedule()
        logging.debug("Timer resumed at %ss", self._base)
        return True

    def stop(self) -> bool:
        if self.state not in ("running", "paused"):
            return False
        self._cancel()
        self.elapsed = self._base = self._running_total()
        self._reference = None
        self.state = "stopped"
        logging.debug("Timer stopped at %ss", self.elapsed)
        return True

    def reset(self) -> bool:
        """Clear elapsed time and return to ``idle``.

        Refused while the timer is actively running; pause or stop first.
        """

        if self.state == "running":
            return False
        self._cancel()
        self._base = 0
        self._reference = None
        self.elapsed = 0
        self.state = "idle"
        self._emit()
        return True

    def set_manual_time(self, value) -> bool:
        """Overwrite the elapsed time with ``value`` (``"MM:SS"`` or seconds)."""

        if self.state == "running":
            return False
        self.elapsed = self._base = parse_time(value)
        self._emit()
        return True

    # ------------------------------------------------------------------
    # Estimated time comparison
    # ------------------------------------------------------------------
    def set_estimated_time(self, value) -> None:
        self.estimated_time = parse_time(value)

    @property
    def is_over_estimate(self) -> bool:
        return self.estimated_time > 0 and self.elapsed > self.estimated_time

    @property
    def estimate_progress(self) -> float | None:
        """Fraction of the estimate used so far, capped at ``1.0``."""

        if self.estimated_time <= 0:
            return None
        return min(self.elapsed / self.estimated_time, 1.0)
