"""
Swarm container: the single owning context for the frame loop.

Per frame:
    BreathClock(now) -> OrbitalMotionModel(phase, identity) -> FrameSmoother

Owns the identities, slot registry, integrated orbit angles and smoother
state. Everything is passed by value out of step(); there is no shared
global store.

Membership changes are applied as an explicit reconciliation (set
difference on ids), either immediately or deferred to the next hold phase.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from breathsync.breath_clock import BreathClock, BreathCycleConfig, BreathState, get_curve
from breathsync.logger import logger
from breathsync.orbital import OrbitalConfig, OrbitalMotionModel
from breathsync.presence import (
    CategoryTag,
    ParticleIdentity,
    Participant,
    ReconciliationResult,
    color_for,
    diff_participants,
    parse_participants,
)
from breathsync.smoother import FrameSmoother, ParticleRenderState, SmoothingConfig
from breathsync.spacing import SlotRegistry, SpacingAllocator, SpacingConfig


# ============================================================================
# Frame output
# ============================================================================

@dataclass(frozen=True)
class ParticleFrame:
    """Render-ready values for one particle (smoothed state plus drift)."""
    id: str
    radius: float
    angle: float
    scale: float
    opacity: float
    category_tag: CategoryTag
    color: str
    is_local_user: bool = False

    @property
    def x(self) -> float:
        return math.cos(self.angle) * self.radius

    @property
    def y(self) -> float:
        return math.sin(self.angle) * self.radius


@dataclass(frozen=True)
class SwarmFrame:
    """Everything a renderer, UI or audio collaborator needs for one frame."""
    breath: BreathState
    particles: tuple[ParticleFrame, ...] = ()

    def get(self, particle_id: str) -> Optional[ParticleFrame]:
        for particle in self.particles:
            if particle.id == particle_id:
                return particle
        return None

    def to_payload(self) -> dict[str, Any]:
        """
        Plain-dict snapshot (for debugging or handing across a process boundary).

        Returns:
            dict with "breath" and "particles" keys
        """
        return {
            "breath": {
                "phase": self.breath.phase_type.name.lower(),
                "label": self.breath.phase_type.label,
                "raw_progress": self.breath.raw_progress,
                "eased_progress": self.breath.eased_progress,
                "cycle_elapsed_seconds": self.breath.cycle_elapsed_seconds,
                "phase_seconds_remaining": self.breath.phase_seconds_remaining,
                "cycle_index": self.breath.cycle_index,
            },
            "particles": [
                {
                    "id": p.id,
                    "radius": p.radius,
                    "angle": p.angle,
                    "scale": p.scale,
                    "opacity": p.opacity,
                    "category": p.category_tag.value,
                    "color": p.color,
                    "local": p.is_local_user,
                }
                for p in self.particles
            ],
        }


# ============================================================================
# Swarm
# ============================================================================

class BreathingSwarm:
    """
    Breath clock, spacing, motion model and smoother wired together.

    Usage:
        swarm = BreathingSwarm.from_env()
        swarm.reconcile([{"id": "a", "category_tag": "grateful"}])
        frame = swarm.step(now=time.time(), dt=1 / 60)
    """

    def __init__(
        self,
        breath_config: Optional[BreathCycleConfig] = None,
        orbital_config: Optional[OrbitalConfig] = None,
        spacing_config: Optional[SpacingConfig] = None,
        smoothing_config: Optional[SmoothingConfig] = None,
        curve=None,
        reconcile_on_hold: bool = False,
    ):
        self.clock = BreathClock(breath_config or BreathCycleConfig(), curve)
        self.model = OrbitalMotionModel(orbital_config)
        self.allocator = SpacingAllocator(spacing_config)
        self.smoother = FrameSmoother(smoothing_config, default_radius=self.model.config.max_radius)
        self.reconcile_on_hold = reconcile_on_hold

        self._slots = SlotRegistry()
        self._identities: dict[str, ParticleIdentity] = {}
        self._orbit_angles: dict[str, float] = {}
        self._pending: Optional[list[Participant]] = None
        self._last_reconcile_cycle: Optional[int] = None
        self._last_now: float = 0.0

        if reconcile_on_hold and not self.clock.has_hold_phase:
            logger.warning("Reconcile on hold requested but the breath cycle has no hold; reconciling once per cycle")

    @classmethod
    def from_env(cls) -> "BreathingSwarm":
        """Build a swarm from environment configuration (fails fast on bad values)."""
        from breathsync import config

        curve_kwargs = {"delta": config.ROUNDED_WAVE_DELTA} if config.BREATH_CURVE == "rounded" else {}
        return cls(
            breath_config=config.load_breath_config(),
            orbital_config=config.load_orbital_config(),
            spacing_config=config.load_spacing_config(),
            smoothing_config=config.load_smoothing_config(),
            curve=get_curve(config.BREATH_CURVE, **curve_kwargs),
            reconcile_on_hold=config.RECONCILE_ON_HOLD,
        )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def reconcile(self, participants: Iterable[Any], now: Optional[float] = None) -> ReconciliationResult:
        """
        Apply a presence list: admit new ids, evict missing ones, update
        changed categories.

        Args:
            participants: Participant instances or raw dicts
            now: Epoch seconds used to seed new orbit angles (defaults to the
                last stepped time)

        Returns:
            ReconciliationResult
        """
        incoming = parse_participants(participants)
        diff = diff_participants(self._identities, incoming)
        result = ReconciliationResult()
        seed_time = self._last_now if now is None else now

        for particle_id in diff.evicted:
            self._evict(particle_id)
            result.removed.append(particle_id)

        for participant in diff.changed:
            current = self._identities[participant.id]
            self._identities[participant.id] = ParticleIdentity(
                id=current.id,
                angular_seed=current.angular_seed,
                radius_seed=current.radius_seed,
                category_tag=participant.category_tag,
                is_local_user=participant.is_local_user,
                slot_index=current.slot_index,
                color=color_for(participant.category_tag),
            )
            result.changed.append(participant.id)

        max_count = self.allocator.config.max_count
        for participant in diff.admitted:
            if len(self._identities) >= max_count:
                result.rejected.append(participant.id)
                continue
            self._admit(participant, seed_time)
            result.added.append(participant.id)

        if result.rejected:
            logger.warning(f"Swarm full ({max_count}): {len(result.rejected)} participant(s) not admitted")
        if result.has_changes:
            logger.info(
                f"Swarm reconciled: +{len(result.added)} -{len(result.removed)} "
                f"~{len(result.changed)} (total {len(self._identities)})"
            )
        return result

    def submit(self, participants: Iterable[Any]) -> None:
        """Queue a presence list; applied by the next eligible step()."""
        self._pending = list(participants)

    def _admit(self, participant: Participant, now: float) -> None:
        slot = self._slots.acquire(participant.id)
        assignment = self.allocator.assign(slot, len(self._identities) + 1)
        identity = ParticleIdentity(
            id=participant.id,
            angular_seed=assignment.angular_seed,
            radius_seed=assignment.radius_seed,
            category_tag=participant.category_tag,
            is_local_user=participant.is_local_user,
            slot_index=slot,
            color=color_for(participant.category_tag),
        )
        self._identities[participant.id] = identity
        # Orbit phase as if the particle had been orbiting since epoch 0
        self._orbit_angles[participant.id] = (self.model.base_speed_for(identity) * now) % math.tau

    def _evict(self, particle_id: str) -> None:
        self._identities.pop(particle_id, None)
        self._orbit_angles.pop(particle_id, None)
        self._slots.release(particle_id)
        self.smoother.evict(particle_id)

    def _should_apply_pending(self, breath: BreathState) -> bool:
        if self._pending is None:
            return False
        if not self.reconcile_on_hold:
            return True
        if breath.cycle_index == self._last_reconcile_cycle:
            return False
        # No hold ever comes: apply once per cycle instead
        return breath.phase_type.is_hold or not self.clock.has_hold_phase

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def step(self, now: float, dt: float) -> SwarmFrame:
        """
        Advance the whole swarm by one frame.

        Args:
            now: Epoch seconds from the host clock
            dt: Seconds since the previous frame

        Returns:
            SwarmFrame with the breath state and every tracked particle
        """
        breath = self.clock.state_at(now)
        self._last_now = now

        if self._should_apply_pending(breath):
            pending, self._pending = self._pending, None
            self.reconcile(pending, now=now)
            self._last_reconcile_cycle = breath.cycle_index

        count = len(self._identities)
        size_scale = self.allocator.size_scale(count)
        radius_floor = self.allocator.min_orbit_radius(count)

        particles = []
        for particle_id, identity in self._identities.items():
            target = self.model.compute_target(
                breath,
                identity,
                self._orbit_angles[particle_id],
                dt,
                size_scale=size_scale,
                radius_floor=radius_floor,
                elapsed=now,
            )
            self._orbit_angles[particle_id] = target.orbit_angle
            state = self.smoother.advance(particle_id, target, None, dt)

            radius = state.current_radius + target.radial_offset
            particles.append(ParticleFrame(
                id=particle_id,
                radius=radius,
                angle=state.current_angle + target.perpendicular_offset / max(radius, 1e-6),
                scale=state.current_scale,
                opacity=state.current_opacity,
                category_tag=identity.category_tag,
                color=identity.color,
                is_local_user=identity.is_local_user,
            ))

        return SwarmFrame(breath=breath, particles=tuple(particles))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def render_state(self, particle_id: str) -> ParticleRenderState:
        """Smoothed state for `particle_id`, or the smoother default if untracked."""
        return self.smoother.get(particle_id)

    def identity(self, particle_id: str) -> Optional[ParticleIdentity]:
        return self._identities.get(particle_id)

    def ids(self) -> list[str]:
        return list(self._identities)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def __len__(self) -> int:
        return len(self._identities)

    def __contains__(self, particle_id: str) -> bool:
        return particle_id in self._identities
