"""
Variometer - Audio Sink contract
The command set the feedback controller uses to drive an audio output,
plus an in-memory sink for dry runs and tests.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from logging_utils import log_event


class AudioSink(Protocol):
    def play(self, loop: bool) -> None: ...
    def stop(self) -> None: ...
    def set_volume(self, volume: float) -> None: ...
    def set_pitch(self, pitch: float) -> None: ...
    def is_playing(self) -> bool: ...


class CommandKind(Enum):
    PLAY = "play"
    STOP = "stop"
    SET_VOLUME = "set_volume"
    SET_PITCH = "set_pitch"


@dataclass(frozen=True)
class AudioCommand:
    """One call made on the audio sink"""
    kind: CommandKind
    value: Optional[float | bool] = None   # loop flag for PLAY, level for volume/pitch

    def __str__(self) -> str:
        if self.value is None:
            return self.kind.value
        return f"{self.kind.value}({self.value})"


def apply_command(sink: AudioSink, cmd: AudioCommand) -> None:
    """Forward a command to the matching sink method."""
    if cmd.kind is CommandKind.PLAY:
        sink.play(bool(cmd.value))
    elif cmd.kind is CommandKind.STOP:
        sink.stop()
    elif cmd.kind is CommandKind.SET_VOLUME:
        sink.set_volume(float(cmd.value))
    elif cmd.kind is CommandKind.SET_PITCH:
        sink.set_pitch(float(cmd.value))
    else:
        raise ValueError(f"Unknown audio command: {cmd.kind}")


@dataclass
class AudioSinkState:
    volume: float = 1.0
    pitch: float = 1.0
    loop: bool = False
    playing: bool = False


class RecordingSink:
    """Audio sink without a device: keeps state and a command history.
    Used for --dry-run and as the fake sink in tests."""

    def __init__(self, volume: float = 1.0, log_commands: bool = False):
        self.state = AudioSinkState(volume=volume)
        self.history: List[AudioCommand] = []
        self.log_commands = log_commands

    def _record(self, cmd: AudioCommand) -> None:
        self.history.append(cmd)
        if self.log_commands:
            log_event("INFO", "DryRun", str(cmd))

    def play(self, loop: bool) -> None:
        self.state.loop = loop
        self.state.playing = True
        self._record(AudioCommand(CommandKind.PLAY, loop))

    def stop(self) -> None:
        self.state.playing = False
        self._record(AudioCommand(CommandKind.STOP))

    def set_volume(self, volume: float) -> None:
        self.state.volume = max(0.0, min(1.0, volume))
        self._record(AudioCommand(CommandKind.SET_VOLUME, self.state.volume))

    def set_pitch(self, pitch: float) -> None:
        self.state.pitch = pitch
        self._record(AudioCommand(CommandKind.SET_PITCH, pitch))

    def is_playing(self) -> bool:
        return self.state.playing
