"""
Fixed-step clock driving the preview physics of the 3D scene.

Frames arrive at whatever rate the renderer manages; physics always advances
in ``delta_time`` steps. Frame time is accumulated (scaled by ``time_scale``)
and drained in whole steps.
"""

from dataclasses import dataclass

@dataclass
class PhysicsSettings:
    """Physics step size and simulation speed."""
    delta_time: float = 1.0 / 60.0  # seconds of scene time per step
    time_scale: float = 1.0         # scene seconds per wall-clock second

    def __post_init__(self):
        if self.delta_time <= 0:
            raise ValueError(f"delta_time must be positive, got {self.delta_time}")
        if self.time_scale < 0:
            raise ValueError(f"time_scale must be non-negative, got {self.time_scale}")

    @classmethod
    def from_delta_time(cls, delta_time: float) -> "PhysicsSettings":
        return cls(delta_time=delta_time)

    def steps_per_second(self) -> int:
        return int(round(1.0 / self.delta_time))

@dataclass
class PhysicsTime:
    """Accumulator of unsimulated time."""
    accumulated: float = 0.0
    paused: bool = False
    elapsed: float = 0.0  # scene time simulated so far

    def tick(self, delta: float) -> None:
        if not self.paused:
            self.accumulated += delta

    def can_step(self, period: float) -> bool:
        return not self.paused and self.accumulated >= period

    def consume(self, period: float) -> None:
        self.accumulated -= period
        self.elapsed += period

    def advance(self, frame_delta: float, settings: PhysicsSettings) -> int:
        """
        Feed one frame of wall-clock time and drain it into fixed steps.

        Args:
            frame_delta: Wall-clock seconds since the previous frame
            settings: Step size and time scale

        Returns:
            Number of physics steps the caller must run
        """
        if frame_delta < 0:
            raise ValueError(f"frame_delta must be non-negative, got {frame_delta}")

        self.tick(frame_delta * settings.time_scale)
        steps = 0
        while self.can_step(settings.delta_time):
            self.consume(settings.delta_time)
            steps += 1
        return steps

    def reset(self) -> None:
        self.accumulated = 0.0
        self.elapsed = 0.0
