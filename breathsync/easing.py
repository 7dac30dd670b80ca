"""
Mathematical helpers for smooth, organic breathing motion.

Every curve maps progress in [0, 1] to [0, 1] and hits both ends exactly,
so consecutive phases join without a visible step.
"""

import math

# Hold-phase micro-movement (underdamped oscillation around the resting value)
HOLD_AMPLITUDE = 0.004
HOLD_DAMPING = 0.6
HOLD_FREQUENCY = 1.0  # cycles per hold


def clamp01(value: float) -> float:
    """Clamp a value to the 0-1 range."""
    return max(0.0, min(1.0, value))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation."""
    return a + (b - a) * t


def smoothstep(t: float) -> float:
    """Smooth ease-in / ease-out curve."""
    return t * t * (3 - 2 * t)


def controlled_breath_curve(t: float, start_ramp: float, end_ramp: float) -> float:
    """
    Soft start, steady middle, soft end.

    The ramps are raised-cosine velocity profiles (C1-continuous), the middle
    section moves at the constant velocity needed to cover the remaining
    distance.

    Args:
        t: Progress 0-1 (clamped)
        start_ramp: Fraction of time spent accelerating (0 < start_ramp)
        end_ramp: Fraction of time spent decelerating (start_ramp + end_ramp <= 1)

    Returns:
        Eased progress 0-1
    """
    t = clamp01(t)
    middle_end = 1 - end_ramp

    # Ramps each cover ramp * v / 2, so v * (1 - start/2 - end/2) = 1
    middle_velocity = 1 / (1 - start_ramp / 2 - end_ramp / 2)
    start_ramp_height = middle_velocity * start_ramp / 2
    end_ramp_start = 1 - middle_velocity * end_ramp / 2

    if t <= start_ramp:
        # Integral of (1 - cos(pi x)) / 2 from 0 to x
        normalized = t / start_ramp
        integral = normalized / 2 - math.sin(math.pi * normalized) / (2 * math.pi)
        return middle_velocity * start_ramp * integral

    if t >= middle_end:
        # Integral of (1 + cos(pi x)) / 2 from 0 to x
        normalized = (t - middle_end) / end_ramp
        integral = normalized / 2 + math.sin(math.pi * normalized) / (2 * math.pi)
        return end_ramp_start + middle_velocity * end_ramp * integral

    return start_ramp_height + middle_velocity * (t - start_ramp)


def ease_inhale(t: float) -> float:
    """Symmetric soft ramps (25% / 25%) for an even, controlled intake."""
    return controlled_breath_curve(t, 0.25, 0.25)


def ease_exhale(t: float) -> float:
    """
    Near-instant start (3%) and a long soft landing (30%).

    Movement becomes visible within the first fraction of a second, which is
    what users follow when the exhale cue appears.
    """
    return controlled_breath_curve(t, 0.03, 0.3)


def hold_settle(t: float) -> float:
    """
    Damped micro-oscillation used during hold phases.

    Zero at both ends of the hold (sin(0) and sin(2 pi) cancel), so holds
    settle instead of stopping dead.
    """
    t = clamp01(t)
    amplitude = HOLD_AMPLITUDE * math.exp(-HOLD_DAMPING * t)
    return amplitude * math.sin(t * math.pi * 2 * HOLD_FREQUENCY)


def ease_out_cubic(t: float) -> float:
    t = clamp01(t)
    return 1 - (1 - t) ** 3


def ease_in_quad(t: float) -> float:
    t = clamp01(t)
    return t * t


def rounded_square_wave(t: float, delta: float, amplitude: float = 1.0) -> float:
    """
    Square-like wave with rounded corners.

    f(t) = (2a / pi) * atan(sin(2 pi t) / delta)

    Lower delta gives sharper pauses at the peaks and troughs, higher delta
    approaches a plain sine.

    Returns:
        Wave value in [-amplitude, amplitude]
    """
    safe_delta = max(delta, 0.001)
    sine = math.sin(2 * math.pi * t)
    return (2 * amplitude / math.pi) * math.atan(sine / safe_delta)


def smoothing_factor(rate: float, dt: float) -> float:
    """
    Frame-rate independent lerp factor.

    Returns a value in [0, 1) for dt >= 0, so a lerp using it never overshoots.
    """
    return 1 - math.exp(-rate * dt)
