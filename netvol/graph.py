"""Live terminal chart of aggregate RX/TX bandwidth (-G).

Handles: deque management, draw rate-limiting, SIGWINCH resize, ANSI
cursor-home double-buffering, unit auto-scaling and the deadline-based
tick loop. What gets sampled is up to the caller.
"""

from __future__ import annotations

import math
import signal
import sys
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

import plotext as plt

# ---- unit scaling ----

RATE_UNITS = [("B/s", 1), ("KB/s", 1024), ("MB/s", 1024**2), ("GB/s", 1024**3)]


def pick_unit(max_val: float, units: list[tuple[str, int]] | None = None) -> tuple[str, int]:
    """Choose the best unit so the peak value is readable."""
    if units is None:
        units = RATE_UNITS
    for name, divisor in reversed(units):
        if max_val >= divisor:
            return name, divisor
    return units[0]


def format_rate(bps: float, units: list[tuple[str, int]] | None = None) -> str:
    """Format a bytes/sec value with an auto-scaled unit."""
    name, divisor = pick_unit(bps, units)
    if divisor == 1:
        return f"{bps:.0f} {name}"
    return f"{bps / divisor:.1f} {name}"


# ---- series definition ----

@dataclass
class Series:
    """One data series on the chart."""
    name: str
    color: str
    label_fmt: str          # e.g. "↓ {}"
    data: deque = field(default_factory=deque, repr=False)
    current: float = 0.0

    def formatted_label(self) -> str:
        return self.label_fmt.format(format_rate(self.current))


class RateGraph:
    """Rolling bandwidth chart.

    Lifecycle:
        1. __init__() sets up the window and the rx/tx series
        2. run(sample) enters the blocking main loop
        3. sample() is called each tick and returns {series_name: bytes/sec}
    """

    def __init__(self, *, interval: float, window: float = 60.0, title: str = "Net"):
        self.interval_s = max(0.1, interval)
        self.window_seconds = max(self.interval_s * 4, window)
        self.max_points = max(2, int(self.window_seconds / self.interval_s))
        self.xs = [i * self.interval_s - self.window_seconds for i in range(self.max_points)]
        self.title = title

        self._series: list[Series] = []
        self._series_map: dict[str, Series] = {}
        self._last_draw = 0.0

        self.add_series("rx", color="green", label_fmt="↓ {}")
        self.add_series("tx", color="yellow", label_fmt="↑ {}")

    def add_series(self, name: str, *, color: str, label_fmt: str) -> None:
        s = Series(
            name=name, color=color, label_fmt=label_fmt,
            data=deque([0.0] * self.max_points, maxlen=self.max_points),
        )
        self._series.append(s)
        self._series_map[name] = s

    def push(self, values: dict[str, float]) -> None:
        for name, val in values.items():
            s = self._series_map.get(name)
            if s:
                s.current = val
                s.data.append(val)

    # ---- rendering ----

    def _draw(self) -> None:
        now = time.monotonic()
        if now - self._last_draw < 0.05:
            return
        self._last_draw = now

        plt.clf()
        plt.theme("clear")
        plt.plotsize(None, None)

        peak = max((max(s.data) for s in self._series), default=1.0)
        unit_label, divisor = pick_unit(max(peak, 1.0))
        for s in self._series:
            scaled = [v / divisor for v in s.data]
            plt.plot(self.xs, scaled, label=s.formatted_label(), color=s.color, marker="braille")
        all_scaled = [v / divisor for s in self._series for v in s.data]
        y_max = math.ceil(max(max(all_scaled), 0.01) * 1.15)

        plt.frame(False)
        plt.xticks([])
        plt.yticks([])
        plt.ylim(0, y_max)
        plt.xlim(-self.window_seconds, 0)
        plt.grid(False, False)
        plt.text(f"{self.title}  {unit_label}", x=-self.window_seconds / 2, y=y_max * 0.9,
                 color="default", alignment="center")

        sys.stdout.write("\033[H" + plt.build().rstrip() + "\033[J")
        sys.stdout.flush()

    # ---- main loop ----

    def run(self, sample: Callable[[], dict[str, float]]) -> None:
        """Blocking main loop. Ctrl+C to exit."""
        sys.stdout.write("\033[?25l")  # hide cursor
        sys.stdout.flush()

        def on_resize(signum, frame):
            self._draw()

        signal.signal(signal.SIGWINCH, on_resize)

        next_tick = time.monotonic()
        try:
            while True:
                next_tick += self.interval_s
                time.sleep(max(0, next_tick - time.monotonic()))
                self.push(sample())
                self._draw()
        except KeyboardInterrupt:
            pass
        finally:
            sys.stdout.write("\033[?25h")  # show cursor
            sys.stdout.flush()
