#!/usr/bin/env python3
"""
Variometer - audible climb/sink feedback

Beeps faster and higher as climb rate rises above the lift threshold, and
plays a falling continuous tone below the sink threshold.
"""

import argparse
import cProfile
import sys
import time
from pathlib import Path

from audio_sink import RecordingSink
from config import Config
from config_persistence import load_config, save_config
from feedback_loop import FeedbackLoop
from logging_utils import log_event, set_log_level
from signal_source import ConstantSource, load_replay_csv
from toggle_wiring import FeedbackToggle, toggle_status_text
from vario_controller import FeedbackController


def build_sink(config: Config, dry_run: bool):
    """Return (sink, clip_loaded). Falls back to a recording sink when no device can be used."""
    vario = config.variometer
    if dry_run:
        return RecordingSink(volume=vario.base_volume, log_commands=True), True

    from clip_player import ClipPlayer, load_clip

    loaded = load_clip(vario.audio_clip_path, config.audio.clip_root, config.audio.clip_extensions)
    if loaded is None:
        # Controller idles for the whole session; the error was logged once by load_clip
        return RecordingSink(volume=vario.base_volume), False

    clip, clip_rate = loaded
    player = ClipPlayer(clip, clip_rate, config.audio, volume=vario.base_volume)
    try:
        player.open()
    except Exception as e:
        log_event("ERROR", "Startup", "Could not open audio output, running silent", error=e)
        return RecordingSink(volume=vario.base_volume, log_commands=True), True
    return player, True


def build_source(args):
    if args.replay:
        return load_replay_csv(args.replay, loop=args.loop)
    return ConstantSource(args.rate)


def print_output_devices() -> int:
    from clip_player import list_output_devices

    print("Available Output Devices:\n")
    for d in list_output_devices():
        print(f"[{d['index']}] {d['name']}")
        print(f"    Output: {d['channels']} channels, Default SR: {d['default_samplerate']} Hz")
        print()
    return 0


def run_app(args) -> int:
    config = load_config(Path(args.config) if args.config else None)
    set_log_level(args.log_level or config.log_level)

    toggle = FeedbackToggle(enabled=not args.disabled)
    log_event("INFO", "Startup", toggle_status_text(toggle.enabled))

    sink, clip_loaded = build_sink(config, args.dry_run)
    source = build_source(args)
    controller = FeedbackController(config.variometer, sink, toggle, clip_loaded=clip_loaded)
    loop = FeedbackLoop(controller, source, tick_interval_s=config.tick_interval_ms / 1000.0)

    loop.start()
    try:
        started = time.perf_counter()
        while loop.running:
            if args.duration is not None and time.perf_counter() - started >= args.duration:
                break
            if getattr(source, 'finished', False):
                break
            time.sleep(0.1)
    except KeyboardInterrupt:
        log_event("INFO", "Startup", "Interrupted")
    finally:
        loop.stop()
        close = getattr(sink, 'close', None)
        if callable(close):
            close()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the variometer audio feedback")
    parser.add_argument("--config", help="Path to config.json (default: ~/.variometer/config.json)")
    parser.add_argument("--replay", help="CSV of time,vertical_rate rows to play back")
    parser.add_argument("--loop", action="store_true", help="Loop the replay profile")
    parser.add_argument("--rate", type=float, default=0.0,
                        help="Constant vertical rate in m/s when no replay is given")
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--dry-run", action="store_true",
                        help="Log audio commands instead of opening an output device")
    parser.add_argument("--disabled", action="store_true", help="Start with the variometer switched off")
    parser.add_argument("--write-config", metavar="PATH",
                        help="Write a config file with default values and exit")
    parser.add_argument("--list-devices", action="store_true", help="List audio output devices and exit")
    parser.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    args = parser.parse_args()

    if args.write_config:
        sys.exit(0 if save_config(Config(), Path(args.write_config)) else 1)

    if args.list_devices:
        sys.exit(print_output_devices())

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = run_app(args)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = run_app(args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
