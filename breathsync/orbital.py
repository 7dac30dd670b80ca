"""
Breath-driven orbital motion.

Given the shared BreathState and a particle's static identity, computes where
the particle wants to be this frame:

- Radius: inhale pulls the swarm in, exhale pushes it out. This is the one
  place the breathing metaphor becomes a number.
- Angular velocity: simplified Kepler, v ~ sqrt(GM / r), with the apparent
  mass growing on inhale so shards visibly speed up as they gather. Clamped
  to a velocity band so nothing stalls or runs away.
- Ambient drift: two low-frequency sinusoids keyed by seed and wall-clock
  time. No per-particle random state; the seed makes it a pure function.

Oscillations are evaluated from absolute time. Only the orbit angle is
integrated (angle += v * dt), which keeps it continuous and monotonic across
radius or phase discontinuities.
"""

import math
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from breathsync.breath_clock import BreathState
from breathsync.easing import lerp
from breathsync.presence import ParticleIdentity


# ============================================================================
# Data Structures
# ============================================================================

class OrbitalConfig(BaseModel):
    """Orbit bounds, Kepler constants and ambient drift amplitudes."""
    model_config = ConfigDict(frozen=True)

    min_radius: float = Field(2.25, gt=0.0, description="Closest approach (full inhale)")
    max_radius: float = Field(6.0, gt=0.0, description="Farthest orbit (full exhale)")

    base_gm: float = Field(1.2, gt=0.0, description="Gravitational parameter GM")
    reference_radius: float = Field(4.5, gt=0.0, description="Radius where velocity ratio is 1")
    breath_mass_modulation: float = Field(0.6, ge=0.0, lt=1.0, description="Apparent mass swing with breath")
    min_velocity_factor: float = Field(0.3, gt=0.0)
    max_velocity_factor: float = Field(4.0, gt=0.0)
    base_orbit_speed: float = Field(0.04, gt=0.0, description="Orbit speed at reference radius (rad/s)")
    orbit_speed_variation: float = Field(0.02, ge=0.0, description="Per-particle speed spread (+/-)")

    exhale_scale: float = Field(1.4, gt=0.0, description="Shard scale at full exhale")
    inhale_scale: float = Field(0.6, gt=0.0, description="Shard scale at full inhale")

    ambient_scale: float = Field(0.04, ge=0.0, description="Radial drift amplitude")
    wobble_amplitude: float = Field(0.015, ge=0.0, description="Perpendicular wobble amplitude")
    wobble_frequency: float = Field(0.35, ge=0.0, description="Wobble frequency (Hz)")
    max_phase_offset: float = Field(0.04, ge=0.0, lt=1.0, description="Per-particle radius offset fraction")

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_radius >= self.max_radius:
            raise ValueError("min_radius must be smaller than max_radius")
        if self.min_velocity_factor >= self.max_velocity_factor:
            raise ValueError("min_velocity_factor must be smaller than max_velocity_factor")
        if self.orbit_speed_variation >= self.base_orbit_speed:
            raise ValueError("orbit_speed_variation must be smaller than base_orbit_speed")
        return self


@dataclass(frozen=True)
class KeplerianVelocity:
    """Breakdown of one velocity evaluation."""
    velocity: float          # final angular velocity (rad/s)
    keplerian_factor: float  # sqrt(GM_eff / r)
    velocity_ratio: float    # relative to the reference radius, before clamping
    was_clamped: bool
    effective_gm: float


@dataclass(frozen=True)
class MotionTarget:
    """Where a particle wants to be this frame."""
    target_radius: float
    target_angular_velocity: float
    target_scale: float
    orbit_angle: float        # integrated orbit angle (unwrapped)
    target_angle: float       # slot seed + orbit angle
    radial_offset: float = 0.0
    perpendicular_offset: float = 0.0


# ============================================================================
# Physics
# ============================================================================

def keplerian_velocity(
    radius: float,
    breath_phase: float,
    base_speed: float,
    config: OrbitalConfig,
) -> KeplerianVelocity:
    """
    Angular velocity from v = sqrt(GM / r), breath-modulated.

    Normalized so that at the reference radius with a neutral breath
    (phase 0.5) the velocity equals base_speed.

    Args:
        radius: Distance from the swarm center (> 0)
        breath_phase: 0 = exhaled (lighter), 1 = inhaled (heavier)
        base_speed: Speed at the reference radius (rad/s)
        config: Orbital configuration
    """
    mass_modulation = 1 + config.breath_mass_modulation * (breath_phase * 2 - 1)
    effective_gm = config.base_gm * mass_modulation

    keplerian_factor = math.sqrt(effective_gm / radius)
    reference_factor = math.sqrt(config.base_gm / config.reference_radius)
    velocity_ratio = keplerian_factor / reference_factor

    clamped = max(config.min_velocity_factor, min(config.max_velocity_factor, velocity_ratio))

    return KeplerianVelocity(
        velocity=base_speed * clamped,
        keplerian_factor=keplerian_factor,
        velocity_ratio=velocity_ratio,
        was_clamped=clamped != velocity_ratio,
        effective_gm=effective_gm,
    )


class OrbitalMotionModel:
    """Stateless per-particle target computation."""

    def __init__(self, config: Optional[OrbitalConfig] = None):
        self.config = config or OrbitalConfig()

    def orbit_radius(self, breath_phase: float, radius_seed: float = 0.0,
                     radius_floor: Optional[float] = None) -> float:
        """
        Orbit radius for a breath phase.

        Linear from max_radius (phase 0, exhaled) to min_radius (phase 1,
        inhaled), plus a small per-particle offset, clamped to
        [max(min_radius, floor), max_radius]. Non-increasing in breath_phase.
        """
        cfg = self.config
        span = cfg.max_radius - cfg.min_radius
        radius = lerp(cfg.min_radius, cfg.max_radius, 1 - breath_phase)
        radius += radius_seed * cfg.max_phase_offset * span

        lower = cfg.min_radius
        if radius_floor is not None:
            lower = min(max(lower, radius_floor), cfg.max_radius)
        return min(max(radius, lower), cfg.max_radius)

    def breath_scale(self, breath_phase: float) -> float:
        """Shards swell when far out and shrink when gathered."""
        return lerp(self.config.exhale_scale, self.config.inhale_scale, breath_phase)

    def base_speed_for(self, identity: ParticleIdentity) -> float:
        """Per-particle orbit speed at the reference radius."""
        cfg = self.config
        return cfg.base_orbit_speed + (identity.radius_seed - 0.5) * 2 * cfg.orbit_speed_variation

    def ambient_offsets(self, identity: ParticleIdentity, elapsed: float) -> tuple[float, float]:
        """
        Radial and perpendicular drift at wall-clock time `elapsed`.

        Returns:
            (radial_offset, perpendicular_offset) in world units
        """
        cfg = self.config
        ambient_seed = identity.angular_seed * 137.508 / math.tau
        wobble_seed = identity.radius_seed * math.e * 10

        radial = math.sin(elapsed * 0.4 + ambient_seed) * cfg.ambient_scale

        wobble_phase = elapsed * cfg.wobble_frequency * math.tau + wobble_seed
        perpendicular = (
            math.sin(wobble_phase) * cfg.wobble_amplitude
            + math.cos(wobble_phase * 0.7) * cfg.wobble_amplitude * 0.6
        )
        return radial, perpendicular

    def compute_target(
        self,
        breath: BreathState,
        identity: ParticleIdentity,
        previous_angle: float,
        dt: float,
        size_scale: float = 1.0,
        radius_floor: Optional[float] = None,
        elapsed: Optional[float] = None,
    ) -> MotionTarget:
        """
        Target state for one particle.

        Args:
            breath: Current breath state
            identity: Particle identity (seeds)
            previous_angle: Integrated orbit angle from the previous frame
            dt: Frame delta in seconds (negative values count as 0)
            size_scale: Shard size from the spacing allocator
            radius_floor: Collision floor for the radius, if any
            elapsed: Wall-clock seconds for drift (defaults to breath.timestamp)
        """
        phase = breath.eased_progress
        radius = self.orbit_radius(phase, identity.radius_seed, radius_floor)

        velocity = keplerian_velocity(radius, phase, self.base_speed_for(identity), self.config)
        orbit_angle = previous_angle + velocity.velocity * max(dt, 0.0)

        time = breath.timestamp if elapsed is None else elapsed
        radial, perpendicular = self.ambient_offsets(identity, time)

        return MotionTarget(
            target_radius=radius,
            target_angular_velocity=velocity.velocity,
            target_scale=self.breath_scale(phase) * size_scale,
            orbit_angle=orbit_angle,
            target_angle=identity.angular_seed + orbit_angle,
            radial_offset=radial,
            perpendicular_offset=perpendicular,
        )
