"""
Configuration management with environment variable support.

All settings can be overridden via environment variables.
Automatically loads .env file if present.

Values are read once at import. The load_*_config() helpers turn them into
validated, immutable models; an invalid value is fatal at load time.
"""

import os
from pathlib import Path
from typing import Literal
from dotenv import load_dotenv

# Load .env file from project root (one level up from breathsync/)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Logging configuration
LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = os.getenv("LOG_LEVEL", "INFO")

# Breath cycle configuration (seconds per sub-phase, 16s total by default)
BREATH_INHALE_SECONDS: float = float(os.getenv("BREATH_INHALE_SECONDS", "3"))
BREATH_HOLD_IN_SECONDS: float = float(os.getenv("BREATH_HOLD_IN_SECONDS", "5"))
BREATH_EXHALE_SECONDS: float = float(os.getenv("BREATH_EXHALE_SECONDS", "5"))
BREATH_HOLD_OUT_SECONDS: float = float(os.getenv("BREATH_HOLD_OUT_SECONDS", "3"))
BREATH_CURVE: Literal["phase", "rounded"] = os.getenv("BREATH_CURVE", "phase")
ROUNDED_WAVE_DELTA: float = float(os.getenv("ROUNDED_WAVE_DELTA", "0.05"))

# Orbit configuration (world units, radii measured from the swarm center)
ORBIT_MIN_RADIUS: float = float(os.getenv("ORBIT_MIN_RADIUS", "2.25"))  # full inhale
ORBIT_MAX_RADIUS: float = float(os.getenv("ORBIT_MAX_RADIUS", "6.0"))   # full exhale
KEPLER_BASE_GM: float = float(os.getenv("KEPLER_BASE_GM", "1.2"))
KEPLER_REFERENCE_RADIUS: float = float(os.getenv("KEPLER_REFERENCE_RADIUS", "4.5"))
BREATH_MASS_MODULATION: float = float(os.getenv("BREATH_MASS_MODULATION", "0.6"))
MIN_VELOCITY_FACTOR: float = float(os.getenv("MIN_VELOCITY_FACTOR", "0.3"))
MAX_VELOCITY_FACTOR: float = float(os.getenv("MAX_VELOCITY_FACTOR", "4.0"))
BASE_ORBIT_SPEED: float = float(os.getenv("BASE_ORBIT_SPEED", "0.04"))  # rad/s
ORBIT_SPEED_VARIATION: float = float(os.getenv("ORBIT_SPEED_VARIATION", "0.02"))
EXHALE_SCALE: float = float(os.getenv("EXHALE_SCALE", "1.4"))
INHALE_SCALE: float = float(os.getenv("INHALE_SCALE", "0.6"))

# Ambient drift
AMBIENT_SCALE: float = float(os.getenv("AMBIENT_SCALE", "0.04"))
WOBBLE_AMPLITUDE: float = float(os.getenv("WOBBLE_AMPLITUDE", "0.015"))
WOBBLE_FREQUENCY: float = float(os.getenv("WOBBLE_FREQUENCY", "0.35"))  # Hz
MAX_PHASE_OFFSET: float = float(os.getenv("MAX_PHASE_OFFSET", "0.04"))

# Spacing / shard sizing
GLOBE_RADIUS: float = float(os.getenv("GLOBE_RADIUS", "1.5"))
SHARD_BASE_SIZE: float = float(os.getenv("SHARD_BASE_SIZE", "4.0"))
SHARD_MIN_SIZE: float = float(os.getenv("SHARD_MIN_SIZE", "0.05"))
SHARD_MAX_SIZE: float = float(os.getenv("SHARD_MAX_SIZE", "0.12"))
SHARD_BUFFER: float = float(os.getenv("SHARD_BUFFER", "0.03"))
FIBONACCI_SPACING_FACTOR: float = 1.95
MAX_PARTICLE_COUNT: int = int(os.getenv("MAX_PARTICLE_COUNT", "1000"))

# Frame smoothing
BREATH_LERP_SPEED: float = float(os.getenv("BREATH_LERP_SPEED", "6.0"))      # radius follow
POSITION_LERP_SPEED: float = float(os.getenv("POSITION_LERP_SPEED", "3.0"))  # slot reflow
FADE_IN_ENABLED: bool = os.getenv("FADE_IN_ENABLED", "false").lower() == "true"
FADE_IN_SPEED: float = float(os.getenv("FADE_IN_SPEED", "2.5"))
MAX_FRAME_DT: float = float(os.getenv("MAX_FRAME_DT", "0.1"))

# Swarm reconciliation
RECONCILE_ON_HOLD: bool = os.getenv("RECONCILE_ON_HOLD", "false").lower() == "true"

# Host frame loop
ANIMATION_FPS: int = int(os.getenv("ANIMATION_FPS", "60"))

# Simulated presence (for running without a presence service)
MOCK_PRESENCE: bool = os.getenv("MOCK_PRESENCE", "false").lower() == "true"
MOCK_PRESENCE_COUNT: int = int(os.getenv("MOCK_PRESENCE_COUNT", "48"))
MOCK_PRESENCE_SEED: int = int(os.getenv("MOCK_PRESENCE_SEED", "7"))


def load_breath_config():
    """
    Build the breath cycle configuration from environment settings.

    Returns:
        BreathCycleConfig

    Raises:
        ValueError: If any phase duration is invalid
    """
    from breathsync.breath_clock import BreathCycleConfig
    from breathsync.logger import logger

    try:
        config = BreathCycleConfig(
            inhale=BREATH_INHALE_SECONDS,
            hold_in=BREATH_HOLD_IN_SECONDS,
            exhale=BREATH_EXHALE_SECONDS,
            hold_out=BREATH_HOLD_OUT_SECONDS,
        )
    except ValueError:
        logger.error("Invalid breath cycle configuration", exc_info=True)
        raise

    logger.info(
        f"Breath cycle loaded: {config.inhale}-{config.hold_in}-"
        f"{config.exhale}-{config.hold_out} ({config.total_cycle_seconds}s)"
    )
    return config


def load_orbital_config():
    """
    Build the orbital motion configuration from environment settings.

    Returns:
        OrbitalConfig

    Raises:
        ValueError: If orbit bounds or velocity bounds are malformed
    """
    from breathsync.orbital import OrbitalConfig
    from breathsync.logger import logger

    try:
        config = OrbitalConfig(
            min_radius=ORBIT_MIN_RADIUS,
            max_radius=ORBIT_MAX_RADIUS,
            base_gm=KEPLER_BASE_GM,
            reference_radius=KEPLER_REFERENCE_RADIUS,
            breath_mass_modulation=BREATH_MASS_MODULATION,
            min_velocity_factor=MIN_VELOCITY_FACTOR,
            max_velocity_factor=MAX_VELOCITY_FACTOR,
            base_orbit_speed=BASE_ORBIT_SPEED,
            orbit_speed_variation=ORBIT_SPEED_VARIATION,
            exhale_scale=EXHALE_SCALE,
            inhale_scale=INHALE_SCALE,
            ambient_scale=AMBIENT_SCALE,
            wobble_amplitude=WOBBLE_AMPLITUDE,
            wobble_frequency=WOBBLE_FREQUENCY,
            max_phase_offset=MAX_PHASE_OFFSET,
        )
    except ValueError:
        logger.error("Invalid orbital configuration", exc_info=True)
        raise

    logger.info(f"Orbit loaded: radius {config.min_radius}-{config.max_radius}")
    return config


def load_spacing_config():
    """Build the spacing allocator configuration from environment settings."""
    from breathsync.spacing import SpacingConfig
    from breathsync.logger import logger

    try:
        return SpacingConfig(
            base_size=SHARD_BASE_SIZE,
            min_size=SHARD_MIN_SIZE,
            max_size=SHARD_MAX_SIZE,
            globe_radius=GLOBE_RADIUS,
            buffer=SHARD_BUFFER,
            spacing_factor=FIBONACCI_SPACING_FACTOR,
            wobble_margin=2 * (WOBBLE_AMPLITUDE + AMBIENT_SCALE),
            max_count=MAX_PARTICLE_COUNT,
        )
    except ValueError:
        logger.error("Invalid spacing configuration", exc_info=True)
        raise


def load_smoothing_config():
    """Build the frame smoothing configuration from environment settings."""
    from breathsync.smoother import SmoothingConfig
    from breathsync.logger import logger

    try:
        return SmoothingConfig(
            radius_rate=BREATH_LERP_SPEED,
            position_rate=POSITION_LERP_SPEED,
            fade_in=FADE_IN_ENABLED,
            fade_in_rate=FADE_IN_SPEED,
            max_dt=MAX_FRAME_DT,
        )
    except ValueError:
        logger.error("Invalid smoothing configuration", exc_info=True)
        raise
