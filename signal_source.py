"""
Variometer - Signal Sources
Where the vertical rate comes from: a wind field sampled at the vehicle,
a recorded CSV profile, or a fixed value.
"""

import bisect
import csv
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

import numpy as np

from logging_utils import log_event


class SignalSource(Protocol):
    def is_available(self) -> bool: ...
    def get_vertical_rate(self) -> float: ...


def read_sample(source: SignalSource) -> Optional[float]:
    """Current vertical rate, or None when the source has nothing to offer."""
    if not source.is_available():
        return None
    return float(source.get_vertical_rate())


def vertical_component(wind, position, body_center) -> float:
    """Component of the wind vector along local up (position minus body centre)."""
    up = np.asarray(position, dtype=np.float64) - np.asarray(body_center, dtype=np.float64)
    norm = float(np.linalg.norm(up))
    if norm == 0.0:
        return 0.0
    return float(np.dot(np.asarray(wind, dtype=np.float64), up / norm))


class WindFieldSource:
    """
    Vertical wind at the vehicle position.

    Each provider returns a 3-vector, or None when that piece of the
    simulation is not ready (no active vehicle, no wind data).
    """

    def __init__(self,
                 wind_provider: Callable[[], Optional[Sequence[float]]],
                 position_provider: Callable[[], Optional[Sequence[float]]],
                 body_center_provider: Callable[[], Optional[Sequence[float]]]):
        self.wind_provider = wind_provider
        self.position_provider = position_provider
        self.body_center_provider = body_center_provider

    def _vectors(self):
        wind = self.wind_provider()
        position = self.position_provider()
        center = self.body_center_provider()
        if wind is None or position is None or center is None:
            return None
        return wind, position, center

    def is_available(self) -> bool:
        return self._vectors() is not None

    def get_vertical_rate(self) -> float:
        vectors = self._vectors()
        if vectors is None:
            return 0.0
        return vertical_component(*vectors)


class ConstantSource:
    """Fixed vertical rate; set rate to None to simulate signal loss."""

    def __init__(self, rate: Optional[float] = 0.0):
        self.rate = rate

    def is_available(self) -> bool:
        return self.rate is not None

    def get_vertical_rate(self) -> float:
        return float(self.rate or 0.0)


class ReplaySource:
    """Replays (time, rate) samples with sample-and-hold between rows.
    A rate of None marks a span where the signal was unavailable."""

    def __init__(self, samples: Sequence[tuple[float, Optional[float]]], loop: bool = False):
        ordered = sorted(samples, key=lambda s: s[0])
        self.times = [float(t) for t, _ in ordered]
        self.rates = [r for _, r in ordered]
        self.loop = loop
        self.elapsed = 0.0

    @property
    def duration(self) -> float:
        return self.times[-1] if self.times else 0.0

    @property
    def finished(self) -> bool:
        return not self.loop and self.elapsed > self.duration

    def advance(self, dt: float) -> None:
        self.elapsed += max(0.0, dt)
        if self.loop and self.duration > 0 and self.elapsed > self.duration:
            self.elapsed %= self.duration

    def _current(self) -> Optional[float]:
        if not self.times:
            return None
        idx = bisect.bisect_right(self.times, self.elapsed) - 1
        if idx < 0:
            return None
        return self.rates[idx]

    def is_available(self) -> bool:
        return self._current() is not None

    def get_vertical_rate(self) -> float:
        rate = self._current()
        return 0.0 if rate is None else rate


def load_replay_csv(path: str | Path, loop: bool = False) -> ReplaySource:
    """Read a `time,vertical_rate` CSV (header optional). Blank rates mean unavailable;
    unparseable rows are skipped with a warning."""
    samples: list[tuple[float, Optional[float]]] = []
    with open(path, 'r', newline='', encoding='utf-8') as f:
        for line_no, row in enumerate(csv.reader(f), start=1):
            if not row or row[0].strip().startswith('#'):
                continue
            try:
                t = float(row[0])
            except ValueError:
                if line_no == 1:
                    continue  # header
                log_event("WARN", "Replay", "Skipping row", line=line_no, row=row)
                continue
            raw = row[1].strip() if len(row) > 1 else ""
            if not raw:
                samples.append((t, None))
                continue
            try:
                samples.append((t, float(raw)))
            except ValueError:
                log_event("WARN", "Replay", "Skipping row", line=line_no, row=row)

    log_event("INFO", "Replay", "Profile loaded", path=path, samples=len(samples))
    return ReplaySource(samples, loop=loop)
