# Variometer Configuration
# All default values and constants

from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, Dict

from logging_utils import log_event


# Name of the parameter block inside the settings file
SETTINGS_BLOCK = "VARIOMETER_SETTINGS"

# Timing constants (seconds)
BEEP_BASE_DURATION = 0.3    # Beep length at the lift threshold
FADE_TIME = 0.05            # Micro-fade used for every transition
IDLE_POLL_INTERVAL = 0.2    # Re-check interval while disabled/unavailable


@dataclass(frozen=True)
class VariometerConfig:
    """Thresholds and audio parameters (immutable once loaded)"""
    # Lift (climb) settings
    lift_threshold: float = 5.0       # Starts beeping at +5 m/s
    lift_max: float = 15.0            # Max effect at +15 m/s
    lift_max_pitch: float = 1.5       # 150% pitch at max
    lift_max_beep_rate: float = 2.0   # 200% beep speed at max

    # Sink (descend) settings
    sink_threshold: float = -5.0      # Starts tone at -5 m/s
    sink_max: float = -15.0           # Max effect at -15 m/s
    sink_min_pitch: float = 0.5       # 50% pitch at max sink

    # Audio settings
    base_volume: float = 0.5
    audio_clip_path: str = "Variometer/Sounds/tone"  # No file extension


# File key -> VariometerConfig field
SETTINGS_KEYS: Dict[str, str] = {
    'liftThreshold': 'lift_threshold',
    'liftMax': 'lift_max',
    'liftMaxPitch': 'lift_max_pitch',
    'liftMaxBeepRate': 'lift_max_beep_rate',
    'sinkThreshold': 'sink_threshold',
    'sinkMax': 'sink_max',
    'sinkMinPitch': 'sink_min_pitch',
    'baseVolume': 'base_volume',
    'audioClipPath': 'audio_clip_path',
}

_LIFT_FIELDS = ('lift_threshold', 'lift_max', 'lift_max_pitch', 'lift_max_beep_rate')
_SINK_FIELDS = ('sink_threshold', 'sink_max', 'sink_min_pitch')
_POSITIVE_FIELDS = ('lift_max_pitch', 'lift_max_beep_rate', 'sink_min_pitch')


@dataclass
class AudioOutputConfig:
    """Audio output device and clip lookup"""
    sample_rate: int = 44100
    block_size: int = 256
    # Device index - None means use system default
    device_index: int | None = None
    clip_root: str = "."              # Asset ids are resolved relative to this folder
    clip_extensions: tuple = (".wav", ".ogg")


@dataclass
class Config:
    """Master configuration"""
    variometer: VariometerConfig = field(default_factory=VariometerConfig)
    audio: AudioOutputConfig = field(default_factory=AudioOutputConfig)

    # Global
    tick_interval_ms: int = 16        # ~60 decisions per second
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


def _coerce_setting(name: str, value: Any):
    if name == 'audio_clip_path':
        if not isinstance(value, str) or not value.strip():
            raise ValueError("expected a non-empty string")
        return value.strip()
    if isinstance(value, bool):
        raise ValueError("expected a number")
    number = float(value)
    if number != number or number in (float('inf'), float('-inf')):
        raise ValueError("expected a finite number")
    return number


def validate_variometer_config(config: VariometerConfig) -> VariometerConfig:
    """Enforce threshold ordering; a broken lift or sink group reverts to defaults."""
    defaults = VariometerConfig()
    changes: Dict[str, Any] = {}

    for name in _POSITIVE_FIELDS:
        if getattr(config, name) <= 0:
            log_event("WARN", "Config", "Value must be positive, keeping default",
                      key=name, value=getattr(config, name))
            changes[name] = getattr(defaults, name)

    if not (config.lift_max > config.lift_threshold >= 0):
        log_event("WARN", "Config", "Lift thresholds out of order, using defaults",
                  lift_threshold=config.lift_threshold, lift_max=config.lift_max)
        for name in _LIFT_FIELDS:
            changes[name] = getattr(defaults, name)

    if not (config.sink_max < config.sink_threshold <= 0):
        log_event("WARN", "Config", "Sink thresholds out of order, using defaults",
                  sink_threshold=config.sink_threshold, sink_max=config.sink_max)
        for name in _SINK_FIELDS:
            changes[name] = getattr(defaults, name)

    volume = max(0.0, min(1.0, config.base_volume))
    if volume != config.base_volume:
        log_event("WARN", "Config", "baseVolume clamped", value=config.base_volume, clamped=volume)
        changes['base_volume'] = volume

    return replace(config, **changes) if changes else config


def parse_settings_block(block) -> VariometerConfig:
    """Build a VariometerConfig from an untyped key/value block.
    Missing keys keep defaults, unknown keys are ignored, and malformed
    values are logged and left at their default."""
    if not isinstance(block, dict):
        if block is not None:
            log_event("WARN", "Config", f"{SETTINGS_BLOCK} is not a mapping, using defaults")
        return VariometerConfig()

    values: Dict[str, Any] = {}
    for key, raw in block.items():
        name = SETTINGS_KEYS.get(key)
        if name is None:
            continue
        try:
            values[name] = _coerce_setting(name, raw)
        except (TypeError, ValueError) as e:
            log_event("WARN", "Config", "Malformed value, keeping default", key=key, value=raw, error=e)

    return validate_variometer_config(VariometerConfig(**values))


def settings_block(config: VariometerConfig) -> Dict[str, Any]:
    """Inverse of parse_settings_block, keyed by the file names."""
    return {key: getattr(config, name) for key, name in SETTINGS_KEYS.items()}


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a mutable dataclass instance.
    Unknown keys are ignored; values whose type does not match the default are skipped."""
    if not isinstance(data, dict):
        return

    known = {f.name for f in fields(target)}
    for key, value in data.items():
        if key not in known:
            continue

        current = getattr(target, key)

        if is_dataclass(current) and isinstance(value, dict):
            apply_dict_to_dataclass(current, value)
            continue

        if isinstance(current, tuple) and isinstance(value, list):
            value = tuple(value)

        if current is not None and not isinstance(value, type(current)):
            if isinstance(current, float) and isinstance(value, int) and not isinstance(value, bool):
                value = float(value)
            else:
                log_event("WARN", "Config", f"Ignoring {key}: expected {type(current).__name__}", value=value)
                continue

        setattr(target, key, value)

