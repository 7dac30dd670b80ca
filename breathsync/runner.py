"""
Reference host frame loop.

The swarm components are pure; this is the host side that drives them:
- Blocking, meant for a background thread
- Cancellation via threading.Event
- Paced at fps with time.sleep(1 / fps)
- duration == 0 runs until cancelled
"""

import threading
import time
from typing import Callable, Optional

from breathsync.config import ANIMATION_FPS
from breathsync.logger import logger
from breathsync.mock_presence import SimulatedPresence
from breathsync.swarm import BreathingSwarm, SwarmFrame


def run_swarm(
    swarm: BreathingSwarm,
    on_frame: Callable[[SwarmFrame], None],
    cancel_event: threading.Event,
    duration: float = 0,
    presence: Optional[SimulatedPresence] = None,
    fps: int = ANIMATION_FPS,
    clock: Callable[[], float] = time.time,
) -> int:
    """
    Step the swarm once per frame and hand each frame to `on_frame`.

    Args:
        swarm: Swarm to drive
        on_frame: Frame consumer (renderer, UI, audio)
        cancel_event: Set to stop the loop
        duration: Seconds to run (0 = until cancelled)
        presence: Optional presence source, polled every frame
        fps: Target frame rate
        clock: Wall-clock source in epoch seconds

    Returns:
        Number of frames delivered

    Raises:
        ValueError: If fps is not positive
    """
    if fps <= 0:
        raise ValueError("fps must be > 0")

    logger.info(f"Starting swarm loop: duration={duration}s, fps={fps}, particles={len(swarm)}")

    start = clock()
    previous = start
    frames = 0

    while not cancel_event.is_set():
        now = clock()
        if duration and now - start >= duration:
            break

        dt = now - previous
        previous = now

        if presence is not None and presence.step(dt):
            swarm.submit(presence.participants())

        frame = swarm.step(now, dt)

        try:
            on_frame(frame)
        except Exception:
            logger.error("Error delivering swarm frame", exc_info=True)
            raise

        frames += 1
        time.sleep(1 / fps)

    if cancel_event.is_set():
        logger.info(f"Swarm loop cancelled after {frames} frames")
    else:
        logger.info(f"Swarm loop completed: {frames} frames")
    return frames


def start_swarm_thread(
    swarm: BreathingSwarm,
    on_frame: Callable[[SwarmFrame], None],
    duration: float = 0,
    presence: Optional[SimulatedPresence] = None,
    fps: int = ANIMATION_FPS,
    name: str = "breathsync-swarm",
) -> tuple[threading.Thread, threading.Event]:
    """
    Run run_swarm() on a daemon thread.

    Returns:
        (thread, cancel_event); set the event and join the thread to stop
    """
    cancel_event = threading.Event()

    def wrapper():
        try:
            run_swarm(swarm, on_frame, cancel_event, duration=duration, presence=presence, fps=fps)
        except Exception:
            logger.error(f"Swarm thread failed: {name}", exc_info=True)

    thread = threading.Thread(target=wrapper, name=name, daemon=True)
    thread.start()
    return thread, cancel_event


def swarm_from_env() -> tuple[BreathingSwarm, Optional[SimulatedPresence]]:
    """
    Build the swarm (and simulated presence when MOCK_PRESENCE=true) from
    environment settings.
    """
    from breathsync import config

    swarm = BreathingSwarm.from_env()
    presence = None
    if config.MOCK_PRESENCE:
        presence = SimulatedPresence(count=config.MOCK_PRESENCE_COUNT, seed=config.MOCK_PRESENCE_SEED)
        swarm.reconcile(presence.participants())
    return swarm, presence
