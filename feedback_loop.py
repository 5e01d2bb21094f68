"""
Variometer - Feedback Loop
Tick scheduling for the feedback controller: a real-time worker thread, or a
fixed-step simulation for replays and tests.
"""

import threading
import time
from typing import Callable, Iterable, List, Optional

from audio_sink import AudioCommand
from logging_utils import log_event
from signal_source import SignalSource, read_sample
from vario_controller import FeedbackController


def _advance_source(source, dt: float) -> None:
    # Replay sources follow the loop's clock
    advance = getattr(source, 'advance', None)
    if callable(advance):
        advance(dt)


def simulate(controller: FeedbackController, samples: Iterable[Optional[float]],
             dt: float) -> List[List[AudioCommand]]:
    """Tick once per sample with a fixed dt. Returns the commands of every tick."""
    return [controller.tick(sample, dt) for sample in samples]


class FeedbackLoop:
    """
    Runs controller.tick() on a daemon thread at a fixed interval.

    Only this thread touches the controller, so the controller itself needs no locking.
    """

    def __init__(self, controller: FeedbackController, source: SignalSource,
                 tick_interval_s: float = 0.016,
                 clock: Callable[[], float] = time.perf_counter):
        self.controller = controller
        self.source = source
        self.tick_interval_s = tick_interval_s
        self.clock = clock

        self.running = False
        self.tick_count = 0
        self.worker_thread: Optional[threading.Thread] = None
        self._last_time: Optional[float] = None

    def start(self) -> None:
        """Start the tick thread"""
        if self.running:
            return

        self.running = True
        self._last_time = None
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.start()
        log_event("INFO", "FeedbackLoop", "Started", tick_ms=round(self.tick_interval_s * 1000, 1))

    def stop(self, timeout: float = 1.0) -> None:
        """Stop the tick thread and silence the sink"""
        if not self.running:
            return

        self.running = False
        if self.worker_thread is not None and self.worker_thread is not threading.current_thread():
            self.worker_thread.join(timeout)
        self.worker_thread = None
        self.controller.shutdown()
        log_event("INFO", "FeedbackLoop", "Stopped", ticks=self.tick_count)

    def step(self) -> List[AudioCommand]:
        """Run a single tick using the time elapsed since the previous one."""
        now = self.clock()
        dt = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now

        _advance_source(self.source, dt)
        commands = self.controller.tick(read_sample(self.source), dt)
        self.tick_count += 1
        return commands

    def _worker_loop(self) -> None:
        while self.running:
            try:
                self.step()
            except Exception as e:
                log_event("ERROR", "FeedbackLoop", "Tick error", error=e)
            time.sleep(self.tick_interval_s)
