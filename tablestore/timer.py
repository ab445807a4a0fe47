"""
Monotonic timer for annotating linear-vs-indexed comparisons.
"""

import time


class Timer:
    """High resolution stopwatch based on perf_counter_ns."""

    def __init__(self):
        self._start = None

    def start(self) -> "Timer":
        self._start = time.perf_counter_ns()
        return self

    def elapsed_micros(self) -> float:
        """Microseconds since start()."""
        if self._start is None:
            raise RuntimeError("Timer was not started")
        return (time.perf_counter_ns() - self._start) / 1000.0

    def elapsed_ms(self) -> float:
        return self.elapsed_micros() / 1000.0
