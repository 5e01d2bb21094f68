from dataclasses import dataclass

from config import BEEP_BASE_DURATION, VariometerConfig


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation with t clamped to [0, 1]."""
    return a + (b - a) * clamp01(t)


def inverse_lerp(a: float, b: float, value: float) -> float:
    """Position of value between a and b, clamped to [0, 1]. Returns 0 when a == b."""
    if a == b:
        return 0.0
    return clamp01((value - a) / (b - a))


@dataclass(frozen=True)
class LiftProfile:
    t: float
    pitch: float
    beep_duration: float


@dataclass(frozen=True)
class SinkProfile:
    t: float
    pitch: float


def lift_profile(vertical_rate: float, config: VariometerConfig) -> LiftProfile:
    """Pitch and beep length for a climb rate; faster, higher beeps as climb increases."""
    t = inverse_lerp(config.lift_threshold, config.lift_max, vertical_rate)
    pitch = lerp(1.0, config.lift_max_pitch, t)
    beep_duration = lerp(BEEP_BASE_DURATION, BEEP_BASE_DURATION / config.lift_max_beep_rate, t)
    return LiftProfile(t=t, pitch=pitch, beep_duration=beep_duration)


def sink_profile(vertical_rate: float, config: VariometerConfig) -> SinkProfile:
    """Pitch for a sink rate; the tone drops toward sink_min_pitch."""
    t = inverse_lerp(config.sink_threshold, config.sink_max, vertical_rate)
    return SinkProfile(t=t, pitch=lerp(1.0, config.sink_min_pitch, t))
