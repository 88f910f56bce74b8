"""Cancellable repeating timers driven by an explicit clock.

A flow owns a ``TimerGroup`` and feeds it elapsed wall-clock time with
``advance``. Cancelled intervals never fire again, and ``cancel_all``
tears every interval down at once.
"""
from typing import Callable


class Interval:
    def __init__(self, period: float, callback: Callable[[], None]) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self.period = period
        self.callback = callback
        self.cancelled = False
        self._carry = 0.0

    def advance(self, seconds: float) -> None:
        self._carry += seconds
        while not self.cancelled and self._carry >= self.period:
            self._carry -= self.period
            self.callback()

    def cancel(self) -> None:
        self.cancelled = True


class TimerGroup:
    def __init__(self) -> None:
        self._intervals: list[Interval] = []

    def every(self, period: float, callback: Callable[[], None]) -> Interval:
        interval = Interval(period, callback)
        self._intervals.append(interval)
        return interval

    def advance(self, seconds: float) -> None:
        # Intervals created by a callback start counting from the next advance
        for interval in list(self._intervals):
            if not interval.cancelled:
                interval.advance(seconds)
        self._intervals = [i for i in self._intervals if not i.cancelled]

    def cancel_all(self) -> None:
        for interval in self._intervals:
            interval.cancel()
        self._intervals = []

    @property
    def active(self) -> int:
        return sum(1 for i in self._intervals if not i.cancelled)
