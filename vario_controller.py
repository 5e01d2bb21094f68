"""
Variometer - Feedback Controller
Turns a vertical-rate signal into beeps (lift), a continuous tone (sink) or
silence (deadzone), one decision per loop iteration.

The controller is a resumable loop: every wait (beep hold, beep fade, silence
gap, tone fade in/out, idle poll) is a Phase with an elapsed-time counter.
tick() advances the current wait by dt and, once it completes, keeps running
the loop in the same tick until the next wait begins. The enable toggle and
the signal are only read at the top of the loop, so a beep or fade that has
started always finishes before the controller reacts to new input.
"""

import math
from enum import Enum
from typing import List, Optional

from audio_sink import AudioCommand, AudioSink, CommandKind, apply_command
from config import FADE_TIME, IDLE_POLL_INTERVAL, VariometerConfig
from interpolation import LiftProfile, lift_profile, sink_profile
from logging_utils import log_event
from volume_fade import VolumeRamp, fade_in, fade_to_zero


class Mode(Enum):
    IDLE = "idle"          # Disabled, no signal, or no clip
    LIFT = "lift"          # Beeping
    SINK = "sink"          # Continuous tone
    DEADZONE = "deadzone"  # Silence


class Phase(Enum):
    READY = "ready"                  # Top of loop, decide on next tick
    IDLE_WAIT = "idle_wait"          # Poll interval while idle
    SWAP_FADE = "swap_fade"          # Sink tone fading out before a beep
    BEEP_HOLD = "beep_hold"
    BEEP_FADE = "beep_fade"
    BEEP_GAP = "beep_gap"            # Silence after a beep
    TONE_FADE_IN = "tone_fade_in"
    TONE_FADE_OUT = "tone_fade_out"  # Deadzone fade-out
    NEXT_FRAME = "next_frame"        # Resume on the next tick


_TIMED_WAITS = (Phase.IDLE_WAIT, Phase.BEEP_HOLD, Phase.BEEP_GAP)
_FADES = (Phase.SWAP_FADE, Phase.BEEP_FADE, Phase.TONE_FADE_IN, Phase.TONE_FADE_OUT)


class FeedbackController:
    """
    Drives one audio sink from the vertical rate.

    Args:
        config: Thresholds and audio parameters
        sink: Audio output, owned exclusively by this controller
        toggle: Any object with an ``enabled`` attribute
        clip_loaded: False when the tone clip failed to load; the controller then idles forever
    """

    def __init__(self, config: VariometerConfig, sink: AudioSink, toggle,
                 clip_loaded: bool = True):
        self.config = config
        self.sink = sink
        self.toggle = toggle
        self.clip_loaded = clip_loaded

        self._phase = Phase.READY
        self._mode = Mode.IDLE
        self._holding_sink_tone = False
        self._volume = config.base_volume  # Last volume sent to the sink

        # Ephemeral per-episode state
        self._wait_for = 0.0
        self._wait_elapsed = 0.0
        self._ramp: Optional[VolumeRamp] = None
        self._beep: Optional[LiftProfile] = None

        self._issued: List[AudioCommand] = []

    # --- Introspection ---

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_holding_sink_tone(self) -> bool:
        return self._holding_sink_tone

    @property
    def volume(self) -> float:
        return self._volume

    # --- Entry points ---

    def tick(self, vertical_rate: Optional[float], dt: float) -> List[AudioCommand]:
        """Advance by dt seconds. vertical_rate is None when the signal is unavailable.
        Returns the sink commands issued during this tick, in order."""
        self._issued = []
        if self._phase is Phase.READY:
            self._decide(vertical_rate)
        else:
            self._resume(vertical_rate, dt)
        return self._issued

    def reset(self) -> None:
        """Drop any in-progress episode and decide afresh on the next tick."""
        self._clear_episode()
        self._phase = Phase.READY

    def shutdown(self) -> None:
        """Stop audio immediately and return to the initial state."""
        self._issued = []
        if self.sink.is_playing():
            self._stop()
        self._holding_sink_tone = False
        self._mode = Mode.IDLE
        self.reset()

    # --- Sink commands ---

    def _emit(self, cmd: AudioCommand) -> None:
        apply_command(self.sink, cmd)
        self._issued.append(cmd)

    def _play(self, loop: bool) -> None:
        self._emit(AudioCommand(CommandKind.PLAY, loop))

    def _stop(self) -> None:
        self._emit(AudioCommand(CommandKind.STOP))

    def _set_volume(self, volume: float) -> None:
        self._volume = volume
        self._emit(AudioCommand(CommandKind.SET_VOLUME, volume))

    def _set_pitch(self, pitch: float) -> None:
        self._emit(AudioCommand(CommandKind.SET_PITCH, pitch))

    # --- Waits ---

    def _clear_episode(self) -> None:
        self._wait_for = 0.0
        self._wait_elapsed = 0.0
        self._ramp = None

    def _wait(self, phase: Phase, seconds: float) -> None:
        self._clear_episode()
        self._phase = phase
        self._wait_for = seconds

    def _fade(self, phase: Phase, ramp: VolumeRamp) -> None:
        self._clear_episode()
        self._phase = phase
        self._ramp = ramp

    def _next_frame(self) -> None:
        self._clear_episode()
        self._phase = Phase.NEXT_FRAME

    def _resume(self, vertical_rate: Optional[float], dt: float) -> None:
        phase = self._phase

        if phase in _TIMED_WAITS:
            self._wait_elapsed += max(0.0, dt)
            if self._wait_elapsed < self._wait_for:
                return
        elif phase in _FADES:
            self._set_volume(self._ramp.advance(dt))
            if not self._ramp.finished:
                return

        if phase in (Phase.IDLE_WAIT, Phase.BEEP_GAP, Phase.NEXT_FRAME):
            self._decide(vertical_rate)
        elif phase is Phase.SWAP_FADE:
            self._stop_and_reset_volume()
            self._holding_sink_tone = False
            self._start_beep()
        elif phase is Phase.BEEP_HOLD:
            if self._beep.beep_duration > FADE_TIME:
                self._fade(Phase.BEEP_FADE, fade_to_zero(self._volume, FADE_TIME))
            else:
                # Too short to fade; accept the abrupt stop
                self._end_beep()
        elif phase is Phase.BEEP_FADE:
            self._end_beep()
        elif phase is Phase.TONE_FADE_IN:
            self._set_volume(self.config.base_volume)
            self._holding_sink_tone = True
            self._next_frame()
        elif phase is Phase.TONE_FADE_OUT:
            self._stop_and_reset_volume()
            self._holding_sink_tone = False
            self._next_frame()

    # --- Loop body ---

    def _can_run(self, vertical_rate: Optional[float]) -> bool:
        if not getattr(self.toggle, "enabled", False) or not self.clip_loaded:
            return False
        return vertical_rate is not None and math.isfinite(vertical_rate)

    def _enter_mode(self, mode: Mode) -> None:
        if mode is not self._mode:
            log_event("DEBUG", "Vario", "Mode change", previous=self._mode.value, current=mode.value)
            self._mode = mode

    def _decide(self, vertical_rate: Optional[float]) -> None:
        cfg = self.config

        if not self._can_run(vertical_rate):
            self._enter_mode(Mode.IDLE)
            if self.sink.is_playing():
                self._stop()
            self._holding_sink_tone = False
            self._wait(Phase.IDLE_WAIT, IDLE_POLL_INTERVAL)
            return

        if vertical_rate > cfg.lift_threshold:
            self._enter_mode(Mode.LIFT)
            self._beep = lift_profile(vertical_rate, cfg)
            if self._holding_sink_tone:
                # Fade the sink tone out first so tone and beep never overlap
                self._fade(Phase.SWAP_FADE, fade_to_zero(self._volume, FADE_TIME))
                return
            self._start_beep()

        elif vertical_rate < cfg.sink_threshold:
            self._enter_mode(Mode.SINK)
            self._set_pitch(sink_profile(vertical_rate, cfg).pitch)
            if not self._holding_sink_tone or not self.sink.is_playing():
                # Start silent and ramp up to avoid a start pop
                self._set_volume(0.0)
                self._play(loop=True)
                self._fade(Phase.TONE_FADE_IN, fade_in(cfg.base_volume, FADE_TIME))
                return
            self._set_volume(cfg.base_volume)
            self._next_frame()

        else:
            self._enter_mode(Mode.DEADZONE)
            if self.sink.is_playing():
                self._fade(Phase.TONE_FADE_OUT, fade_to_zero(self._volume, FADE_TIME))
                return
            self._holding_sink_tone = False
            self._next_frame()

    def _start_beep(self) -> None:
        beep = self._beep
        self._set_pitch(beep.pitch)
        self._set_volume(self.config.base_volume)
        self._play(loop=False)

        if beep.beep_duration > FADE_TIME:
            hold = beep.beep_duration - FADE_TIME
        else:
            hold = beep.beep_duration
        self._wait(Phase.BEEP_HOLD, hold)

    def _end_beep(self) -> None:
        self._stop()
        self._wait(Phase.BEEP_GAP, self._beep.beep_duration)

    def _stop_and_reset_volume(self) -> None:
        self._stop()
        self._set_volume(self.config.base_volume)
