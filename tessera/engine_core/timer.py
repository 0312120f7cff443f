"""
Elapsed Timer - Whole seconds of unpaused play time.

The timer is derived from a monotonic clock instead of a ticking
callback: elapsed_seconds is the floor of accumulated running time.
Pausing suspends accumulation without resetting it; stopping freezes
the value permanently.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable
import math
import time


class TimerState(Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class ElapsedTimer:
    """
    Usage:
        timer = ElapsedTimer()
        timer.pause()
        timer.resume()
        timer.stop()
        timer.elapsed_seconds
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, start: bool = True):
        self._clock = clock
        self._accumulated = 0.0
        self._started_at: float | None = None
        self.state = TimerState.PAUSED
        if start:
            self.resume()

    @property
    def elapsed_seconds(self) -> int:
        total = self._accumulated
        if self.state == TimerState.RUNNING and self._started_at is not None:
            total += self._clock() - self._started_at
        return max(0, math.floor(total))

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def pause(self):
        if self.state != TimerState.RUNNING:
            return
        self._accumulated += self._clock() - self._started_at
        self._started_at = None
        self.state = TimerState.PAUSED

    def resume(self):
        if self.state != TimerState.PAUSED:
            return
        self._started_at = self._clock()
        self.state = TimerState.RUNNING

    def stop(self):
        """Freeze the timer. A stopped timer only restarts through restart()."""
        self.pause()
        self.state = TimerState.STOPPED

    def restart(self):
        """Zero the timer and start it again."""
        self._accumulated = 0.0
        self._started_at = None
        self.state = TimerState.PAUSED
        self.resume()
