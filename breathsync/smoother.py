"""
Frame-rate independent smoothing of particle targets.

The only per-particle state that survives between frames lives here. Each
frame, values chase their targets with new = prev + (target - prev) * f,
f = 1 - exp(-rate * dt). f stays in [0, 1), so values approach the target
monotonically and never overshoot.

Two rates:
- radius_rate follows the breathing radius and scale
- position_rate glides the angle, so a particle moved to a new slot (or
  re-seeded after a swarm change) slides there instead of teleporting
"""

import math
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from breathsync.easing import smoothing_factor
from breathsync.orbital import MotionTarget

TAU = 2 * math.pi


class SmoothingConfig(BaseModel):
    """Follow rates for the frame smoother."""
    model_config = ConfigDict(frozen=True)

    radius_rate: float = Field(6.0, gt=0.0, description="Radius/scale follow speed (1/s)")
    position_rate: float = Field(3.0, gt=0.0, description="Angular reflow speed (1/s)")
    fade_in: bool = Field(False, description="Fade new particles in instead of showing them at once")
    fade_in_rate: float = Field(2.5, gt=0.0, description="Opacity follow speed when fading in (1/s)")
    max_dt: float = Field(0.1, gt=0.0, description="Largest frame delta applied (s)")


@dataclass(frozen=True)
class ParticleRenderState:
    """Smoothed per-particle state handed to the renderer."""
    current_radius: float
    current_angle: float
    current_scale: float
    current_opacity: float


def shortest_arc(from_angle: float, to_angle: float) -> float:
    """Signed angular difference in [-pi, pi)."""
    return (to_angle - from_angle + math.pi) % TAU - math.pi


class FrameSmoother:
    """
    Id-keyed exponential filter.

    Single writer: only the frame loop calls advance()/evict(). No particle's
    update reads another particle's state.
    """

    def __init__(self, config: Optional[SmoothingConfig] = None, default_radius: float = 6.0):
        self.config = config or SmoothingConfig()
        self.default_radius = default_radius
        self._states: dict[str, ParticleRenderState] = {}

    @property
    def default_state(self) -> ParticleRenderState:
        """Returned for ids that are not tracked: parked at the outer orbit, invisible."""
        return ParticleRenderState(
            current_radius=self.default_radius,
            current_angle=0.0,
            current_scale=0.0,
            current_opacity=0.0,
        )

    def _initial_state(self, target: MotionTarget) -> ParticleRenderState:
        return ParticleRenderState(
            current_radius=target.target_radius,
            current_angle=target.target_angle,
            current_scale=target.target_scale,
            current_opacity=0.0 if self.config.fade_in else 1.0,
        )

    def advance(
        self,
        particle_id: str,
        target: MotionTarget,
        previous: Optional[ParticleRenderState],
        dt: float,
    ) -> ParticleRenderState:
        """
        Move one particle's render state toward its target.

        Args:
            particle_id: Particle id
            target: Target from the motion model
            previous: Explicit previous state, or None to use the stored one
            dt: Frame delta in seconds (clamped to [0, max_dt])

        Returns:
            New ParticleRenderState (also stored for the next frame)
        """
        if previous is None:
            previous = self._states.get(particle_id)

        if previous is None:
            # First sighting: start on target, no fly-in
            state = self._initial_state(target)
            self._states[particle_id] = state
            return state

        dt = min(max(dt, 0.0), self.config.max_dt)
        follow = smoothing_factor(self.config.radius_rate, dt)
        reflow = smoothing_factor(self.config.position_rate, dt)

        opacity = previous.current_opacity
        if opacity < 1.0:
            opacity += (1.0 - opacity) * smoothing_factor(self.config.fade_in_rate, dt)

        state = ParticleRenderState(
            current_radius=previous.current_radius
            + (target.target_radius - previous.current_radius) * follow,
            current_angle=previous.current_angle
            + shortest_arc(previous.current_angle, target.target_angle) * reflow,
            current_scale=previous.current_scale
            + (target.target_scale - previous.current_scale) * follow,
            current_opacity=opacity,
        )
        self._states[particle_id] = state
        return state

    def get(self, particle_id: str) -> ParticleRenderState:
        """Stored state, or default_state for unknown ids (never raises)."""
        return self._states.get(particle_id, self.default_state)

    def evict(self, particle_id: str) -> None:
        self._states.pop(particle_id, None)

    def ids(self) -> list[str]:
        return list(self._states)

    def snapshot(self) -> dict[str, ParticleRenderState]:
        return dict(self._states)

    def clear(self) -> None:
        self._states.clear()

    def __contains__(self, particle_id: str) -> bool:
        return particle_id in self._states

    def __len__(self) -> int:
        return len(self._states)
