"""Tests for the frame smoother."""

import math

import pytest

from breathsync.orbital import MotionTarget
from breathsync.smoother import FrameSmoother, ParticleRenderState, SmoothingConfig, shortest_arc


def _target(radius=4.0, angle=1.0, scale=0.1):
    return MotionTarget(
        target_radius=radius,
        target_angular_velocity=0.04,
        target_scale=scale,
        orbit_angle=angle,
        target_angle=angle,
    )


class TestShortestArc:
    """Tests for shortest_arc."""

    def test_small_difference(self):
        """Should return the plain difference for nearby angles."""
        assert shortest_arc(1.0, 1.5) == pytest.approx(0.5)
        assert shortest_arc(1.5, 1.0) == pytest.approx(-0.5)

    def test_wraps_around(self):
        """Should go the short way across the wrap point."""
        assert shortest_arc(0.1, math.tau - 0.1) == pytest.approx(-0.2)
        assert shortest_arc(math.tau - 0.1, 0.1) == pytest.approx(0.2)

    def test_range(self):
        """Should stay within [-pi, pi)."""
        for i in range(100):
            arc = shortest_arc(0.0, i * 0.77)
            assert -math.pi <= arc < math.pi


class TestFrameSmoother:
    """Tests for FrameSmoother."""

    def test_first_frame_snaps(self, smoother):
        """Should place a new particle on its target without fly-in."""
        state = smoother.advance("a", _target(), None, 1 / 60)
        assert state.current_radius == 4.0
        assert state.current_angle == 1.0
        assert state.current_scale == 0.1
        assert state.current_opacity == 1.0

    def test_converges_without_overshoot(self, smoother):
        """Should approach a constant target monotonically."""
        smoother.advance("a", _target(radius=6.0, angle=0.0, scale=0.2), None, 1 / 60)
        target = _target(radius=3.0, angle=0.5, scale=0.1)

        previous = smoother.get("a")
        for _ in range(600):
            state = smoother.advance("a", target, None, 1 / 60)
            assert target.target_radius <= state.current_radius <= previous.current_radius
            assert previous.current_angle <= state.current_angle <= target.target_angle
            assert target.target_scale <= state.current_scale <= previous.current_scale
            previous = state

        assert previous.current_radius == pytest.approx(3.0, abs=1e-6)
        assert previous.current_angle == pytest.approx(0.5, abs=1e-6)
        assert previous.current_scale == pytest.approx(0.1, abs=1e-6)

    def test_frame_rate_independent(self):
        """Should land in the same place at 30 and 120 fps."""
        slow = FrameSmoother()
        fast = FrameSmoother()
        for s in (slow, fast):
            s.advance("a", _target(radius=6.0), None, 0.0)

        target = _target(radius=3.0)
        for _ in range(30):
            slow.advance("a", target, None, 1 / 30)
        for _ in range(120):
            fast.advance("a", target, None, 1 / 120)

        assert slow.get("a").current_radius == pytest.approx(fast.get("a").current_radius, rel=1e-9)

    def test_dt_clamped(self):
        """Should not jump further than max_dt allows after a stall."""
        smoother = FrameSmoother(SmoothingConfig(max_dt=0.1))
        smoother.advance("a", _target(radius=6.0), None, 0.0)
        stalled = smoother.advance("a", _target(radius=3.0), None, 10.0)

        reference = FrameSmoother(SmoothingConfig(max_dt=0.1))
        reference.advance("a", _target(radius=6.0), None, 0.0)
        expected = reference.advance("a", _target(radius=3.0), None, 0.1)

        assert stalled.current_radius == pytest.approx(expected.current_radius)

    def test_negative_dt_holds_still(self, smoother):
        """Should not move for negative dt."""
        smoother.advance("a", _target(radius=6.0), None, 0.0)
        state = smoother.advance("a", _target(radius=3.0), None, -1.0)
        assert state.current_radius == 6.0

    def test_angle_takes_short_way(self, smoother):
        """Should glide across the wrap point instead of spinning back."""
        smoother.advance("a", _target(angle=math.tau - 0.05), None, 0.0)
        state = smoother.advance("a", _target(angle=0.05), None, 1 / 60)
        assert state.current_angle > math.tau - 0.05

    def test_fade_in(self):
        """Should start invisible and fade towards full opacity."""
        smoother = FrameSmoother(SmoothingConfig(fade_in=True))
        first = smoother.advance("a", _target(), None, 1 / 60)
        assert first.current_opacity == 0.0

        opacity = 0.0
        for _ in range(300):
            state = smoother.advance("a", _target(), None, 1 / 60)
            assert opacity <= state.current_opacity < 1.0
            opacity = state.current_opacity
        assert opacity > 0.99

    def test_explicit_previous(self, smoother):
        """Should continue from a caller-supplied state."""
        previous = ParticleRenderState(current_radius=6.0, current_angle=0.0,
                                       current_scale=0.1, current_opacity=1.0)
        state = smoother.advance("a", _target(radius=3.0, angle=0.0), previous, 0.1)
        assert 3.0 < state.current_radius < 6.0
        assert smoother.get("a") == state

    def test_explicit_previous_overrides_stored(self, smoother):
        """Should smooth from the supplied previous state, not the stored one."""
        smoother.advance("a", _target(radius=6.0, angle=0.0), None, 0.0)
        previous = ParticleRenderState(current_radius=2.0, current_angle=0.0,
                                       current_scale=0.1, current_opacity=1.0)
        state = smoother.advance("a", _target(radius=2.0, angle=0.0), previous, 1 / 60)
        assert state.current_radius == pytest.approx(2.0)

    def test_unknown_id_returns_default(self):
        """Should return the default state for untracked ids."""
        smoother = FrameSmoother(default_radius=6.0)
        state = smoother.get("ghost")
        assert state == ParticleRenderState(current_radius=6.0, current_angle=0.0,
                                            current_scale=0.0, current_opacity=0.0)
        assert "ghost" not in smoother

    def test_evict(self, smoother):
        """Should forget evicted particles."""
        smoother.advance("a", _target(), None, 0.0)
        smoother.advance("b", _target(), None, 0.0)
        smoother.evict("a")
        smoother.evict("missing")
        assert smoother.ids() == ["b"]
        assert len(smoother) == 1

    def test_particles_independent(self, smoother):
        """Should update each particle from its own state only."""
        smoother.advance("a", _target(radius=6.0), None, 0.0)
        alone = smoother.advance("a", _target(radius=3.0), None, 0.05)

        other = FrameSmoother()
        other.advance("a", _target(radius=6.0), None, 0.0)
        other.advance("b", _target(radius=2.0), None, 0.0)
        together = other.advance("a", _target(radius=3.0), None, 0.05)

        assert alone == together

    def test_snapshot_and_clear(self, smoother):
        """Should copy state out and reset."""
        smoother.advance("a", _target(), None, 0.0)
        snapshot = smoother.snapshot()
        smoother.clear()
        assert "a" in snapshot
        assert len(smoother) == 0


class TestSmoothingConfig:
    """Tests for smoothing configuration."""

    def test_non_positive_rate_rejected(self):
        """Should reject non-positive rates."""
        with pytest.raises(ValueError):
            SmoothingConfig(radius_rate=0)
