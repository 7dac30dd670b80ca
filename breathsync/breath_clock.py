"""
Global breathing clock.

Converts wall-clock time into the shared breath phase. The result is a pure
function of (timestamp, config): every client that evaluates the same epoch
second gets the same BreathState, which is what keeps the whole swarm in sync
without any network round-trip.

Phase convention:
    eased_progress 0 = fully exhaled (particles far out)
    eased_progress 1 = fully inhaled (particles pulled in)
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from breathsync.easing import (
    clamp01,
    ease_exhale,
    ease_inhale,
    hold_settle,
    rounded_square_wave,
)
from breathsync.logger import logger

# Largest float strictly below 1.0; progress never reports a completed phase
_MAX_PROGRESS = math.nextafter(1.0, 0.0)


# ============================================================================
# Data Structures
# ============================================================================

class PhaseType(IntEnum):
    """Ordered breath sub-phases."""
    INHALE = 0
    HOLD_IN = 1
    EXHALE = 2
    HOLD_OUT = 3

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]

    @property
    def description(self) -> str:
        return _PHASE_DESCRIPTIONS[self]

    @property
    def is_hold(self) -> bool:
        return self in (PhaseType.HOLD_IN, PhaseType.HOLD_OUT)


_PHASE_LABELS = {
    PhaseType.INHALE: "Inhale",
    PhaseType.HOLD_IN: "Hold",
    PhaseType.EXHALE: "Exhale",
    PhaseType.HOLD_OUT: "Hold",
}

_PHASE_DESCRIPTIONS = {
    PhaseType.INHALE: "Breathing In",
    PhaseType.HOLD_IN: "Holding Breath",
    PhaseType.EXHALE: "Breathing Out",
    PhaseType.HOLD_OUT: "Resting",
}


class BreathCycleConfig(BaseModel):
    """
    Durations (seconds) of the four ordered sub-phases.

    A zero duration skips that phase (e.g. 4-7-8 breathing has no hold-out).
    Negative durations, or a cycle with no length at all, are rejected.
    """
    model_config = ConfigDict(frozen=True)

    inhale: float = Field(3.0, ge=0.0, description="Inhale duration (seconds)")
    hold_in: float = Field(5.0, ge=0.0, description="Hold after inhale (seconds)")
    exhale: float = Field(5.0, ge=0.0, description="Exhale duration (seconds)")
    hold_out: float = Field(3.0, ge=0.0, description="Hold after exhale (seconds)")

    @model_validator(mode="after")
    def _check_cycle_length(self):
        if not all(math.isfinite(d) for d in self.durations):
            raise ValueError("Breath phase durations must be finite")
        if self.total_cycle_seconds <= 0:
            raise ValueError("Breath cycle must have a positive total duration")
        return self

    @property
    def durations(self) -> tuple[float, float, float, float]:
        return (self.inhale, self.hold_in, self.exhale, self.hold_out)

    @property
    def total_cycle_seconds(self) -> float:
        return self.inhale + self.hold_in + self.exhale + self.hold_out

    def duration_of(self, phase: PhaseType) -> float:
        return self.durations[phase]

    def phase_start(self, phase: PhaseType) -> float:
        """Offset of a phase from the start of the cycle (seconds)."""
        offset = 0.0
        for duration in self.durations[:phase]:
            offset += duration
        return offset


@dataclass(frozen=True)
class BreathState:
    """Breath phase at one instant. Produced fresh on every query."""
    phase_type: PhaseType
    raw_progress: float          # progress within the current sub-phase, [0, 1)
    eased_progress: float        # breath fullness, [0, 1]
    cycle_elapsed_seconds: float
    cycle_progress: float = 0.0  # progress through the whole cycle, [0, 1)
    phase_seconds_remaining: float = 0.0
    cycle_index: int = field(default=0, compare=False)
    timestamp: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class PhaseDisplay:
    """Text and timer values for UI collaborators."""
    label: str
    description: str
    seconds_remaining: int
    cycle_progress: float


# ============================================================================
# Clock arithmetic
# ============================================================================

def cycle_index(now: float, total_cycle_seconds: float) -> int:
    """Index of the breathing cycle containing `now`."""
    return math.floor(now / total_cycle_seconds)


def cycle_elapsed(now: float, total_cycle_seconds: float) -> float:
    """
    Seconds since the start of the current cycle, always in [0, total).

    Uses floor-mod so the result is never negative. The modulo is applied
    to the raw timestamp before any other arithmetic.
    """
    elapsed = now % total_cycle_seconds
    # A tiny negative input can round up to exactly `total`
    if elapsed >= total_cycle_seconds:
        elapsed = 0.0
    return elapsed


def is_hold_phase(phase_type: PhaseType) -> bool:
    """True during hold-in and hold-out."""
    return PhaseType(phase_type).is_hold


def locate_phase(elapsed: float, config: BreathCycleConfig) -> tuple[PhaseType, float]:
    """
    Find the sub-phase containing `elapsed` and the local progress in it.

    Phase intervals are [start, start + duration): the upper bound belongs to
    the next phase. Zero-length phases are never selected.
    """
    offset = 0.0
    for phase, duration in zip(PhaseType, config.durations):
        if duration > 0 and elapsed < offset + duration:
            progress = (elapsed - offset) / duration
            return phase, min(max(progress, 0.0), _MAX_PROGRESS)
        offset += duration

    # Only reachable through rounding at the very end of the cycle:
    # roll over to the first non-empty phase
    for phase, duration in zip(PhaseType, config.durations):
        if duration > 0:
            return phase, 0.0
    raise ValueError("Breath cycle has no non-empty phase")


# ============================================================================
# Curve strategies
# ============================================================================

class PhaseCurve:
    """
    Production curve: walk the four sub-phases and ease within each.

    Inhale and exhale use soft-ramp ease-in/out curves, holds use a damped
    settle around the resting value.
    """

    name = "phase"

    def has_holds(self, config: BreathCycleConfig) -> bool:
        return config.hold_in > 0 or config.hold_out > 0

    def __call__(self, now: float, config: BreathCycleConfig) -> BreathState:
        total = config.total_cycle_seconds
        elapsed = cycle_elapsed(now, total)
        phase, raw = locate_phase(elapsed, config)

        if phase == PhaseType.INHALE:
            eased = ease_inhale(raw)
        elif phase == PhaseType.HOLD_IN:
            eased = 1.0 - hold_settle(raw)
        elif phase == PhaseType.EXHALE:
            eased = 1.0 - ease_exhale(raw)
        else:
            eased = hold_settle(raw)

        return BreathState(
            phase_type=phase,
            raw_progress=raw,
            eased_progress=clamp01(eased),
            cycle_elapsed_seconds=elapsed,
            cycle_progress=min(elapsed / total, _MAX_PROGRESS),
            phase_seconds_remaining=(1 - raw) * config.duration_of(phase),
            cycle_index=cycle_index(now, total),
            timestamp=now,
        )


class RoundedWaveCurve:
    """
    Experimental curve: one rounded square wave per cycle.

    Pauses emerge from the wave shape instead of explicit hold phases.
    Phase type is derived from the wave: near the peak or trough it is a
    hold, otherwise inhale while rising and exhale while falling. Sub-phase
    durations are ignored; only the total cycle length is used, and
    raw_progress is the progress through the whole cycle.
    """

    name = "rounded"
    hold_threshold = 0.7

    def __init__(self, delta: float = 0.05):
        if delta <= 0:
            raise ValueError("Rounded wave delta must be positive")
        self.delta = delta

    @property
    def _hold_sine(self) -> float:
        """|sin(2 pi t)| above which the wave counts as a hold."""
        return max(self.delta, 0.001) * math.tan(self.hold_threshold * math.pi / 2)

    def has_holds(self, config: BreathCycleConfig) -> bool:
        return self._hold_sine < 1

    def _phase_end(self, phase: PhaseType, t: float) -> float:
        """Cycle fraction at which the derived phase changes (may exceed 1)."""
        if self._hold_sine < 1:
            edge = math.asin(self._hold_sine) / (2 * math.pi)
        else:
            edge = 0.25
        if phase == PhaseType.HOLD_IN:
            return 0.5 - edge
        if phase == PhaseType.HOLD_OUT:
            return 1 - edge
        if phase == PhaseType.EXHALE:
            return 0.5 + edge
        # Inhale runs across the cycle boundary
        return edge if t < 0.5 else 1 + edge

    def __call__(self, now: float, config: BreathCycleConfig) -> BreathState:
        total = config.total_cycle_seconds
        elapsed = cycle_elapsed(now, total)
        t = min(elapsed / total, _MAX_PROGRESS)

        wave = rounded_square_wave(t, self.delta)
        rising = math.cos(2 * math.pi * t) >= 0

        if wave > self.hold_threshold:
            phase = PhaseType.HOLD_IN
        elif wave < -self.hold_threshold:
            phase = PhaseType.HOLD_OUT
        elif rising:
            phase = PhaseType.INHALE
        else:
            phase = PhaseType.EXHALE

        return BreathState(
            phase_type=phase,
            raw_progress=t,
            eased_progress=clamp01((wave + 1) / 2),
            cycle_elapsed_seconds=elapsed,
            cycle_progress=t,
            phase_seconds_remaining=max(self._phase_end(phase, t) - t, 0.0) * total,
            cycle_index=cycle_index(now, total),
            timestamp=now,
        )


BREATH_CURVES = {
    PhaseCurve.name: PhaseCurve,
    RoundedWaveCurve.name: RoundedWaveCurve,
}

_DEFAULT_CURVE = PhaseCurve()


def get_curve(name: str, **kwargs):
    """
    Instantiate a breath curve by name.

    Raises:
        ValueError: If the curve name is unknown
    """
    try:
        curve_cls = BREATH_CURVES[name]
    except KeyError:
        raise ValueError(f"Unknown breath curve: {name!r}") from None
    return curve_cls(**kwargs)


# ============================================================================
# Public API
# ============================================================================

def compute_breath_state(now: float, config: BreathCycleConfig, curve=None) -> BreathState:
    """
    Breath state at epoch time `now` (seconds).

    Pure function: equal inputs give bit-identical results on every client.

    Args:
        now: Epoch timestamp in seconds (Date.now() / 1000 equivalent)
        config: Validated breath cycle configuration
        curve: Curve strategy (defaults to PhaseCurve)
    """
    return (curve or _DEFAULT_CURVE)(now, config)


def describe_phase(state: BreathState, config: BreathCycleConfig) -> PhaseDisplay:
    """
    Phase name and countdown for display.

    Example:
        describe_phase(state, config)
        # PhaseDisplay(label="Inhale", description="Breathing In", seconds_remaining=2, ...)
    """
    remaining = math.ceil(state.phase_seconds_remaining)
    return PhaseDisplay(
        label=state.phase_type.label,
        description=state.phase_type.description,
        seconds_remaining=remaining,
        cycle_progress=state.cycle_progress,
    )


class BreathClock:
    """
    Configuration plus curve, bundled for the frame loop.

    Holds no mutable state; state_at() is safe to call from anywhere.
    """

    def __init__(self, config: BreathCycleConfig, curve=None):
        self.config = config
        self.curve = curve or _DEFAULT_CURVE
        logger.info(
            f"Breath clock ready: curve={getattr(self.curve, 'name', type(self.curve).__name__)}, "
            f"cycle={config.total_cycle_seconds}s"
        )

    @property
    def has_hold_phase(self) -> bool:
        """True if the curve ever reports a hold phase for this config."""
        has_holds = getattr(self.curve, "has_holds", None)
        return True if has_holds is None else has_holds(self.config)

    def state_at(self, now: float) -> BreathState:
        return self.curve(now, self.config)

    def describe(self, state: BreathState) -> PhaseDisplay:
        return describe_phase(state, self.config)
