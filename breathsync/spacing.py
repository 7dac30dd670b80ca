"""
Golden-angle spacing for the particle swarm.

Each particle index gets an angular and radial seed from two low-discrepancy
sequences. Seeds depend on the index only, so growing the swarm appends new
angles without reshuffling existing ones. Shard size shrinks with the swarm
(baseSize / sqrt(N), clamped) so dense swarms do not overlap.

Indices come from SlotRegistry, which keys them by participant id.
"""

import math
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from breathsync.logger import logger

TAU = 2 * math.pi
GOLDEN_RATIO = (1 + math.sqrt(5)) / 2
# Fraction of a full turn between successive particles (~0.381966)
GOLDEN_FRACTION = 2 - GOLDEN_RATIO
GOLDEN_ANGLE = TAU * GOLDEN_FRACTION  # ~2.399963 rad (~137.5 deg)


# ============================================================================
# Data Structures
# ============================================================================

class SpacingConfig(BaseModel):
    """Shard sizing and collision-floor parameters."""
    model_config = ConfigDict(frozen=True)

    base_size: float = Field(4.0, gt=0.0, description="size = base_size / sqrt(count)")
    min_size: float = Field(0.05, gt=0.0, description="Smallest shard size")
    max_size: float = Field(0.12, gt=0.0, description="Largest shard size")
    globe_radius: float = Field(1.5, ge=0.0, description="Radius of the central body")
    buffer: float = Field(0.03, ge=0.0, description="Gap between shard and globe surface")
    spacing_factor: float = Field(1.95, gt=0.0, description="Worst-case golden spacing factor")
    wobble_margin: float = Field(0.11, ge=0.0, description="Room reserved for ambient drift")
    max_count: int = Field(1000, ge=1, description="Safety cap on tracked particles")

    @model_validator(mode="after")
    def _check_size_band(self):
        if self.min_size > self.max_size:
            raise ValueError("min_size must not exceed max_size")
        return self


@dataclass(frozen=True)
class SlotAssignment:
    """Deterministic placement of one slot."""
    index: int
    angular_seed: float  # radians, [0, 2*pi)
    radius_seed: float   # [0, 1)
    size_scale: float


# ============================================================================
# Allocation
# ============================================================================

def angular_seed_for(index: int) -> float:
    """Golden-angle position of a slot, independent of swarm size."""
    # Reduce the fraction before scaling so large indices stay precise
    return ((index * GOLDEN_FRACTION) % 1.0) * TAU


def radius_seed_for(index: int) -> float:
    """Second low-discrepancy sequence, decorrelated from the angle."""
    return (index * math.pi + 0.1) % 1.0


def sphere_direction(index: int, total_count: int) -> tuple[float, float, float]:
    """
    Fibonacci-sphere unit vector for renderers that place shards in 3-D.

    Latitude spreads evenly from pole to pole, longitude advances by the
    golden angle.
    """
    if total_count <= 1:
        return (0.0, 1.0, 0.0)

    y = 1 - (index / (total_count - 1)) * 2
    radius_at_y = math.sqrt(max(0.0, 1 - y * y))
    theta = angular_seed_for(index)
    return (math.cos(theta) * radius_at_y, y, math.sin(theta) * radius_at_y)


class SpacingAllocator:
    """
    Stateless slot placement.

    assign() is referentially transparent: the same (index, total_count)
    always yields the same SlotAssignment.
    """

    def __init__(self, config: Optional[SpacingConfig] = None):
        self.config = config or SpacingConfig()

    def size_scale(self, total_count: int) -> float:
        """Shard size for a swarm of `total_count`, clamped to the size band."""
        count = max(total_count, 1)
        size = self.config.base_size / math.sqrt(count)
        return min(max(size, self.config.min_size), self.config.max_size)

    def assign(self, index: int, total_count: int) -> SlotAssignment:
        return SlotAssignment(
            index=index,
            angular_seed=angular_seed_for(index),
            radius_seed=radius_seed_for(index),
            size_scale=self.size_scale(total_count),
        )

    def assign_all(self, total_count: int) -> list[SlotAssignment]:
        """Assignments for indices 0..total_count-1 (empty for total_count <= 0)."""
        if total_count <= 0:
            return []
        return [self.assign(i, total_count) for i in range(total_count)]

    def min_orbit_radius(self, total_count: int) -> float:
        """
        Collision floor for the orbit radius.

        The larger of:
        - globe clearance: globe radius + shard size + buffer
        - neighbour clearance: golden spacing leaves at least ~1.95/sqrt(N)
          of the radius between neighbours, which must fit two shards plus
          the wobble margin
        """
        size = self.size_scale(total_count)
        globe_floor = self.config.globe_radius + size + self.config.buffer
        if total_count <= 0:
            return globe_floor

        required_spacing = 2 * size + self.config.wobble_margin
        spacing_floor = required_spacing * math.sqrt(total_count) / self.config.spacing_factor
        return max(globe_floor, spacing_floor)


# ============================================================================
# Id-keyed slots
# ============================================================================

class SlotRegistry:
    """
    Pool of slot indices keyed by participant id.

    A participant keeps its slot for as long as it is tracked, whatever
    order the presence list arrives in. Freed slots are reused lowest-first,
    so arrival order decides which index a newcomer gets.
    """

    def __init__(self):
        self._slots: list[Optional[str]] = []
        self._by_id: dict[str, int] = {}

    def acquire(self, particle_id: str) -> int:
        """Return the slot held by `particle_id`, assigning one if needed."""
        existing = self._by_id.get(particle_id)
        if existing is not None:
            return existing

        for index, holder in enumerate(self._slots):
            if holder is None:
                break
        else:
            index = len(self._slots)
            self._slots.append(None)

        self._slots[index] = particle_id
        self._by_id[particle_id] = index
        logger.debug(f"Slot {index} assigned to {particle_id}")
        return index

    def release(self, particle_id: str) -> Optional[int]:
        """Free the slot held by `particle_id`. Returns the freed index."""
        index = self._by_id.pop(particle_id, None)
        if index is None:
            return None

        self._slots[index] = None
        # Trim trailing empty slots so capacity tracks the live swarm
        while self._slots and self._slots[-1] is None:
            self._slots.pop()
        return index

    def index_of(self, particle_id: str) -> Optional[int]:
        return self._by_id.get(particle_id)

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def ids(self) -> list[str]:
        return [holder for holder in self._slots if holder is not None]

    def clear(self) -> None:
        self._slots.clear()
        self._by_id.clear()

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, particle_id: str) -> bool:
        return particle_id in self._by_id
