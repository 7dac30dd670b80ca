"""Shared pytest fixtures for all tests."""

import threading

import pytest

from breathsync.breath_clock import BreathCycleConfig
from breathsync.orbital import OrbitalConfig, OrbitalMotionModel
from breathsync.presence import CategoryTag, ParticleIdentity, Participant
from breathsync.smoother import FrameSmoother
from breathsync.spacing import SpacingAllocator
from breathsync.swarm import BreathingSwarm


@pytest.fixture
def breath_config():
    """Default 3-5-5-3 breath cycle (16 seconds)."""
    return BreathCycleConfig()


@pytest.fixture
def relaxing_config():
    """4-7-8 breathing with no hold after the exhale (19 seconds)."""
    return BreathCycleConfig(inhale=4, hold_in=7, exhale=8, hold_out=0)


@pytest.fixture
def orbital_config():
    return OrbitalConfig()


@pytest.fixture
def motion_model(orbital_config):
    return OrbitalMotionModel(orbital_config)


@pytest.fixture
def allocator():
    return SpacingAllocator()


@pytest.fixture
def smoother():
    return FrameSmoother()


@pytest.fixture
def identity():
    """A mid-swarm particle identity."""
    return ParticleIdentity(id="p-1", angular_seed=2.4, radius_seed=0.5, category_tag=CategoryTag.GRATEFUL)


@pytest.fixture
def participants():
    """Small presence list with mixed moods."""
    return [
        Participant(id="alice", category_tag=CategoryTag.GRATEFUL, is_local_user=True),
        Participant(id="bob", category_tag=CategoryTag.ANXIOUS),
        Participant(id="carol", category_tag=CategoryTag.HERE),
    ]


@pytest.fixture
def swarm(breath_config):
    """Swarm with default configuration and immediate reconciliation."""
    return BreathingSwarm(breath_config=breath_config)


@pytest.fixture
def cancel_event():
    """Create cancel event for frame loops."""
    return threading.Event()
