"""Tests for golden-angle spacing and slot registry."""

import math

import pytest

from breathsync.spacing import (
    GOLDEN_ANGLE,
    SlotRegistry,
    SpacingAllocator,
    SpacingConfig,
    angular_seed_for,
    radius_seed_for,
    sphere_direction,
)


def _angular_gap(a, b):
    diff = abs(a - b) % math.tau
    return min(diff, math.tau - diff)


class TestSpacingConfig:
    """Tests for spacing configuration."""

    def test_defaults(self):
        """Should use the production shard sizes."""
        config = SpacingConfig()
        assert config.base_size == 4.0
        assert config.min_size == 0.05
        assert config.max_size == 0.12

    def test_inverted_size_band_rejected(self):
        """Should reject min_size above max_size."""
        with pytest.raises(ValueError):
            SpacingConfig(min_size=0.2, max_size=0.1)


class TestSeeds:
    """Tests for seed sequences."""

    def test_golden_angle_value(self):
        """Should be about 137.5 degrees."""
        assert GOLDEN_ANGLE == pytest.approx(2.399963, abs=1e-6)

    def test_angular_seed_range(self):
        """Should stay within one turn."""
        for i in range(5000):
            assert 0.0 <= angular_seed_for(i) < math.tau

    def test_radius_seed_range(self):
        """Should stay within [0, 1)."""
        for i in range(5000):
            assert 0.0 <= radius_seed_for(i) < 1.0

    def test_sphere_direction_unit_length(self):
        """Should return unit vectors."""
        for i in range(20):
            x, y, z = sphere_direction(i, 20)
            assert math.sqrt(x * x + y * y + z * z) == pytest.approx(1.0)

    def test_sphere_direction_single(self):
        """Should point up for a single particle."""
        assert sphere_direction(0, 1) == (0.0, 1.0, 0.0)


class TestSpacingAllocator:
    """Tests for SpacingAllocator."""

    def test_golden_angle_between_neighbours(self, allocator):
        """Should separate slots 0 and 1 by the golden angle."""
        a = allocator.assign(0, 100)
        b = allocator.assign(1, 100)
        assert b.angular_seed - a.angular_seed == pytest.approx(2.399963, abs=1e-6)

    def test_seed_independent_of_count(self, allocator):
        """Should place a slot at the same angle whatever the swarm size."""
        for total in (2, 10, 100, 1000):
            assert allocator.assign(7, total).angular_seed == allocator.assign(7, 50).angular_seed

    def test_idempotent(self, allocator):
        """Should return the same assignment on repeated calls."""
        for i in range(50):
            assert allocator.assign(i, 50) == allocator.assign(i, 50)

    def test_min_separation(self, allocator):
        """Should keep every pair of slots apart."""
        for total in (2, 5, 13, 50, 200, 1000):
            seeds = sorted(a.angular_seed for a in allocator.assign_all(total))
            gaps = [b - a for a, b in zip(seeds, seeds[1:])]
            gaps.append(seeds[0] + math.tau - seeds[-1])
            assert min(gaps) >= math.tau * 0.3 / total

    def test_no_duplicate_angles(self, allocator):
        """Should never collapse two slots onto one angle."""
        seeds = [a.angular_seed for a in allocator.assign_all(500)]
        for i in range(len(seeds)):
            for j in range(i + 1, len(seeds)):
                assert _angular_gap(seeds[i], seeds[j]) > 0

    def test_assign_all_empty(self, allocator):
        """Should return an empty list for an empty swarm."""
        assert allocator.assign_all(0) == []
        assert allocator.assign_all(-3) == []

    def test_size_scale_clamped(self, allocator):
        """Should shrink with the swarm inside the size band."""
        assert allocator.size_scale(1) == 0.12
        assert allocator.size_scale(0) == 0.12
        assert allocator.size_scale(10_000) == 0.05
        assert allocator.size_scale(1600) == pytest.approx(0.1)

    def test_size_scale_non_increasing(self, allocator):
        """Should never grow when particles are added."""
        sizes = [allocator.size_scale(n) for n in range(1, 3000, 7)]
        for a, b in zip(sizes, sizes[1:]):
            assert b <= a

    def test_min_orbit_radius_clears_globe(self, allocator):
        """Should keep shards off the globe surface."""
        config = allocator.config
        for total in (0, 1, 10, 100):
            floor = allocator.min_orbit_radius(total)
            assert floor >= config.globe_radius + allocator.size_scale(total) + config.buffer

    def test_min_orbit_radius_grows_for_large_swarms(self, allocator):
        """Should push the floor out once neighbour spacing dominates."""
        assert allocator.min_orbit_radius(1000) > allocator.min_orbit_radius(10)


class TestSlotRegistry:
    """Tests for id-keyed slot assignment."""

    def test_sequential_acquire(self):
        """Should hand out slots in arrival order."""
        registry = SlotRegistry()
        assert [registry.acquire(pid) for pid in ("a", "b", "c")] == [0, 1, 2]
        assert len(registry) == 3

    def test_acquire_is_stable(self):
        """Should return the held slot for a known id."""
        registry = SlotRegistry()
        registry.acquire("a")
        registry.acquire("b")
        assert registry.acquire("b") == 1
        assert len(registry) == 2

    def test_reuses_lowest_free_slot(self):
        """Should fill the lowest gap first."""
        registry = SlotRegistry()
        for pid in ("a", "b", "c", "d"):
            registry.acquire(pid)
        registry.release("b")
        registry.release("a")
        assert registry.acquire("e") == 0
        assert registry.acquire("f") == 1
        assert registry.index_of("c") == 2

    def test_survivors_keep_slots(self):
        """Should not move remaining ids when others leave."""
        registry = SlotRegistry()
        for pid in ("a", "b", "c"):
            registry.acquire(pid)
        registry.release("a")
        assert registry.index_of("b") == 1
        assert registry.index_of("c") == 2

    def test_release_trims_tail(self):
        """Should shrink capacity when trailing slots empty."""
        registry = SlotRegistry()
        for pid in ("a", "b", "c"):
            registry.acquire(pid)
        registry.release("b")
        assert registry.capacity == 3
        assert registry.release("c") == 2
        assert registry.capacity == 1

    def test_release_unknown(self):
        """Should ignore unknown ids."""
        registry = SlotRegistry()
        assert registry.release("ghost") is None

    def test_ids_and_clear(self):
        """Should list holders in slot order and clear everything."""
        registry = SlotRegistry()
        for pid in ("x", "y"):
            registry.acquire(pid)
        assert registry.ids() == ["x", "y"]
        assert "x" in registry
        registry.clear()
        assert len(registry) == 0
        assert "x" not in registry
