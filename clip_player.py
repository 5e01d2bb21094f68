"""
Variometer - Clip Player
Plays the tone clip on an output device. Pitch is applied by resampling the
clip on the fly, volume by scaling each block. Parameters are written by the
controller thread and read by the audio callback under a lock.
"""

import threading
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import soundfile as sf

from config import AudioOutputConfig
from logging_utils import log_event

MIN_PITCH = 0.01


def resolve_clip_path(asset_id: str, clip_root: str | Path = ".",
                      extensions: Sequence[str] = (".wav", ".ogg")) -> Optional[Path]:
    """Map an extension-less asset id to the first existing file."""
    base = Path(clip_root) / asset_id
    if base.suffix and base.is_file():
        return base
    for ext in extensions:
        candidate = base.with_name(base.name + ext)
        if candidate.is_file():
            return candidate
    return None


def load_clip(asset_id: str, clip_root: str | Path = ".",
              extensions: Sequence[str] = (".wav", ".ogg")) -> Optional[tuple[np.ndarray, int]]:
    """Load a clip as mono float32. Returns (samples, sample_rate), or None after logging why."""
    path = resolve_clip_path(asset_id, clip_root, extensions)
    if path is None:
        log_event("ERROR", "ClipPlayer",
                  f"Audio clip not found at: {asset_id}. Ensure file exists and is "
                  + " or ".join(e.lstrip('.') for e in extensions),
                  clip_root=clip_root)
        return None

    try:
        data, sr = sf.read(str(path), dtype='float32')
    except Exception as e:
        log_event("ERROR", "ClipPlayer", "Failed to decode audio clip", path=path, error=e)
        return None

    if data.ndim == 2:
        data = data.mean(axis=1)
    elif data.ndim != 1:
        log_event("ERROR", "ClipPlayer", f"Unexpected audio shape {data.shape}", path=path)
        return None

    if len(data) == 0:
        log_event("ERROR", "ClipPlayer", "Empty audio clip", path=path)
        return None

    log_event("INFO", "ClipPlayer", "Clip loaded", path=path, samples=len(data), sample_rate=sr)
    return data.astype(np.float32), int(sr)


def list_output_devices() -> list[dict]:
    """Output-capable devices as dicts with index, name, channels and default_samplerate."""
    import sounddevice as sd

    devices = []
    for i, d in enumerate(sd.query_devices()):
        if d['max_output_channels'] <= 0:
            continue
        devices.append({
            'index': i,
            'name': d['name'],
            'channels': d['max_output_channels'],
            'default_samplerate': d['default_samplerate'],
        })
    return devices


class ClipPlayer:
    """Audio sink that plays one clip, looping or one-shot, on a sounddevice stream."""

    def __init__(self, clip: np.ndarray, clip_rate: int,
                 audio: Optional[AudioOutputConfig] = None, volume: float = 1.0):
        audio = audio or AudioOutputConfig()
        self.clip = np.asarray(clip, dtype=np.float32)
        self.clip_rate = int(clip_rate)
        self.sample_rate = audio.sample_rate
        self.block_size = audio.block_size
        self.device_index = audio.device_index
        self.stream = None

        self._lock = threading.Lock()
        self._volume = max(0.0, min(1.0, volume))
        self._pitch = 1.0
        self._loop = False
        self._playing = False
        self._position = 0.0   # Fractional read index into the clip

        n = len(self.clip)
        self._xp = np.arange(n + 1, dtype=np.float64)
        # Looping interpolates back into the first sample; one-shot decays to silence
        self._loop_table = np.append(self.clip, self.clip[:1])
        self._once_table = np.append(self.clip, np.float32(0.0))

    # --- Device ---

    def open(self) -> None:
        """Open and start the output stream"""
        if self.stream is not None:
            return
        import sounddevice as sd

        self.stream = sd.OutputStream(
            samplerate=self.sample_rate,
            blocksize=self.block_size,
            device=self.device_index,
            channels=1,
            dtype='float32',
            callback=self._callback,
        )
        self.stream.start()
        log_event("INFO", "ClipPlayer", "Output stream started",
                  sample_rate=self.sample_rate, block_size=self.block_size, device=self.device_index)

    def close(self) -> None:
        """Stop and release the output stream"""
        if self.stream is None:
            return
        try:
            self.stream.stop()
            self.stream.close()
        finally:
            self.stream = None
        log_event("INFO", "ClipPlayer", "Output stream closed")

    # --- AudioSink ---

    def play(self, loop: bool) -> None:
        with self._lock:
            self._loop = loop
            self._position = 0.0
            self._playing = True

    def stop(self) -> None:
        with self._lock:
            self._playing = False
            self._position = 0.0

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._volume = max(0.0, min(1.0, volume))

    def set_pitch(self, pitch: float) -> None:
        with self._lock:
            self._pitch = max(MIN_PITCH, pitch)

    def is_playing(self) -> bool:
        with self._lock:
            return self._playing

    # --- Rendering ---

    def render(self, frames: int) -> np.ndarray:
        """Produce the next block of mono samples and advance the read position."""
        out = np.zeros(frames, dtype=np.float32)
        n = len(self.clip)

        with self._lock:
            if not self._playing or n == 0:
                return out

            step = self._pitch * self.clip_rate / self.sample_rate
            positions = self._position + np.arange(frames, dtype=np.float64) * step

            if self._loop:
                positions = np.mod(positions, n)
                out[:] = np.interp(positions, self._xp, self._loop_table)
                self._position = float((self._position + frames * step) % n)
            else:
                mask = positions < n
                out[mask] = np.interp(positions[mask], self._xp, self._once_table)
                if mask.all():
                    self._position += frames * step
                else:
                    # Clip ran out during this block
                    self._playing = False
                    self._position = 0.0

            out *= self._volume

        return out

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            log_event("DEBUG", "ClipPlayer", "Stream status", status=status)
        outdata[:, 0] = self.render(frames)
