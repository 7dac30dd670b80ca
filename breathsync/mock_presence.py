"""
Simulated presence for running the swarm without a presence service.

Enable by setting MOCK_PRESENCE=true in .env

Features:
- Deterministic starting crowd with a mood mix (seeded)
- Occasional joins and leaves so admission/eviction paths get exercised
- Same participant list shape the real presence layer hands over
"""

import random
from typing import Optional

from breathsync.logger import logger
from breathsync.presence import CategoryTag, Participant

# Rough mood mix of a live session
_MOOD_WEIGHTS: dict[CategoryTag, float] = {
    CategoryTag.MOMENT: 0.25,
    CategoryTag.HERE: 0.2,
    CategoryTag.GRATEFUL: 0.15,
    CategoryTag.ANXIOUS: 0.12,
    CategoryTag.PROCESSING: 0.1,
    CategoryTag.PREPARING: 0.1,
    CategoryTag.CELEBRATING: 0.08,
}


class SimulatedPresence:
    """
    Mock presence collaborator.

    Owns its own random.Random, so two instances with the same seed produce
    the same sequence of lists regardless of anything else in the process.
    """

    def __init__(self, count: int = 48, seed: Optional[int] = 7, churn_per_minute: float = 6.0):
        if count < 0:
            raise ValueError("count must be >= 0")
        if churn_per_minute < 0:
            raise ValueError("churn_per_minute must be >= 0")

        self.target_count = count
        self.churn_per_minute = churn_per_minute
        self._rng = random.Random(seed)
        self._next_id = 0
        self._participants: list[Participant] = [self._new_participant() for _ in range(count)]

        logger.info(f"[MOCK] Simulated presence: {count} participants (seed={seed})")

    def _new_participant(self) -> Participant:
        moods = list(_MOOD_WEIGHTS)
        mood = self._rng.choices(moods, weights=[_MOOD_WEIGHTS[m] for m in moods])[0]
        participant = Participant(id=f"sim-{self._next_id}", category_tag=mood)
        self._next_id += 1
        return participant

    def participants(self) -> list[Participant]:
        """Current presence list (a copy)."""
        return list(self._participants)

    def step(self, dt: float) -> bool:
        """
        Advance the simulation by `dt` seconds.

        Each churn event is a leave or a join; the crowd drifts around the
        target count instead of wandering off.

        Returns:
            True if the participant list changed
        """
        if dt <= 0 or self.churn_per_minute == 0:
            return False

        probability = min(1.0, self.churn_per_minute * dt / 60.0)
        if self._rng.random() >= probability:
            return False

        current = len(self._participants)
        if current > self.target_count:
            leave = True
        elif current < self.target_count or current == 0:
            leave = False
        else:
            leave = self._rng.random() < 0.5

        if leave:
            leaving = self._participants.pop(self._rng.randrange(len(self._participants)))
            logger.debug(f"[MOCK] Participant left: {leaving.id}")
        else:
            joining = self._new_participant()
            self._participants.append(joining)
            logger.debug(f"[MOCK] Participant joined: {joining.id} ({joining.category_tag.value})")
        return True

    def __len__(self) -> int:
        return len(self._participants)
