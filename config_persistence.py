import json
from dataclasses import asdict
from pathlib import Path

from config import (
    SETTINGS_BLOCK,
    Config,
    apply_dict_to_dataclass,
    parse_settings_block,
    settings_block,
)
from logging_utils import log_event

# Top-level keys besides the settings block
_APP_KEYS = ('audio', 'tick_interval_ms', 'log_level')


def get_config_dir() -> Path:
    """Get config directory in the user's home folder."""
    return Path.home() / '.variometer'


def get_config_file() -> Path:
    """Get config file path."""
    return get_config_dir() / 'config.json'


def config_to_dict(config: Config) -> dict:
    data = {SETTINGS_BLOCK: settings_block(config.variometer)}
    data['audio'] = asdict(config.audio)
    data['audio']['clip_extensions'] = list(config.audio.clip_extensions)
    data['tick_interval_ms'] = config.tick_interval_ms
    data['log_level'] = config.log_level
    return data


def config_from_dict(data: dict) -> Config:
    """Build a Config from parsed JSON; anything unusable keeps its default."""
    config = Config()
    if not isinstance(data, dict):
        log_event("WARN", "Config", "Config root is not an object, using defaults")
        return config

    config.variometer = parse_settings_block(data.get(SETTINGS_BLOCK))
    apply_dict_to_dataclass(config, {k: data[k] for k in _APP_KEYS if k in data})
    if config.tick_interval_ms <= 0:
        log_event("WARN", "Config", "tick_interval_ms must be positive, keeping default",
                  value=config.tick_interval_ms)
        config.tick_interval_ms = Config.tick_interval_ms
    return config


def save_config(config: Config, path: Path | None = None) -> bool:
    """Save config to JSON file."""
    try:
        config_file = Path(path) if path is not None else get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config_to_dict(config), f, indent=2)
        log_event("INFO", "Config", f"Saved to {config_file}")
        return True
    except Exception as e:
        log_event("ERROR", "Config", "Failed to save", error=e)
        return False


def load_config(path: Path | None = None) -> Config:
    """Load config from JSON file, returns default if not found or unreadable."""
    try:
        config_file = Path(path) if path is not None else get_config_file()
        if not config_file.exists():
            log_event("INFO", "Config", "No saved config found, using defaults")
            return Config()

        with open(config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except Exception as e:
        log_event("ERROR", "Config", "Failed to load, using defaults", error=e)
        return Config()

    config = config_from_dict(data)
    vario = config.variometer
    log_event("INFO", "Config", "Config loaded",
              lift_above=vario.lift_threshold, sink_below=vario.sink_threshold)
    return config
