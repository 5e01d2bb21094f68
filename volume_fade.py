from dataclasses import dataclass


@dataclass
class VolumeRamp:
    """Linear volume ramp driven by accumulated tick time.

    Progress is elapsed/duration rather than a step count, so the target is
    reached exactly at or after `duration` no matter how ticks are spaced.
    """
    from_volume: float
    to_volume: float
    duration: float
    elapsed: float = 0.0

    @property
    def finished(self) -> bool:
        return self.elapsed >= self.duration

    @property
    def volume(self) -> float:
        if self.finished:
            return self.to_volume
        progress = self.elapsed / self.duration
        return self.from_volume + (self.to_volume - self.from_volume) * progress

    def advance(self, dt: float) -> float:
        """Add dt seconds (negative dt counts as zero) and return the new volume."""
        self.elapsed += max(0.0, dt)
        return self.volume


def fade_to_zero(current_volume: float, duration: float) -> VolumeRamp:
    return VolumeRamp(from_volume=current_volume, to_volume=0.0, duration=max(0.0, duration))


def fade_in(target_volume: float, duration: float) -> VolumeRamp:
    return VolumeRamp(from_volume=0.0, to_volume=target_volume, duration=max(0.0, duration))
