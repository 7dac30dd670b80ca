"""
Participant boundary between the presence collaborator and the swarm.

The presence layer hands over an ordered list of {id, category_tag}
entries. This module validates them, resolves each category once, and
turns consecutive lists into admit/evict/change sets keyed by id.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from breathsync.logger import logger


class CategoryTag(str, Enum):
    """Mood a participant selected when joining."""
    MOMENT = "moment"
    ANXIOUS = "anxious"
    PROCESSING = "processing"
    PREPARING = "preparing"
    GRATEFUL = "grateful"
    CELEBRATING = "celebrating"
    HERE = "here"


# Shard colors, four families shared across the seven moods
CATEGORY_COLORS: dict[CategoryTag, str] = {
    CategoryTag.MOMENT: "#5ac8fa",       # presence blue
    CategoryTag.HERE: "#5ac8fa",
    CategoryTag.ANXIOUS: "#ff6b6b",      # release coral
    CategoryTag.PROCESSING: "#ff6b6b",
    CategoryTag.GRATEFUL: "#4cd964",     # gratitude green
    CategoryTag.PREPARING: "#ffcc00",    # connection gold
    CategoryTag.CELEBRATING: "#ffcc00",
}


class Participant(BaseModel):
    """One entry of the presence list."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable participant id")
    category_tag: CategoryTag = Field(CategoryTag.MOMENT, description="Selected mood")
    is_local_user: bool = Field(False, description="True for this client's own participant")


@dataclass(frozen=True)
class ParticleIdentity:
    """
    Static identity of a tracked particle.

    Created once at admission; replaced (never mutated) on category change.
    """
    id: str
    angular_seed: float
    radius_seed: float
    category_tag: CategoryTag = CategoryTag.MOMENT
    is_local_user: bool = False
    slot_index: int = 0
    color: str = CATEGORY_COLORS[CategoryTag.MOMENT]


@dataclass(frozen=True)
class ParticipantDiff:
    """Membership changes between two presence lists."""
    admitted: list[Participant] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)
    changed: list[Participant] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.admitted or self.evicted or self.changed)


@dataclass
class ReconciliationResult:
    """Outcome of applying a presence list to the swarm."""
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)


def color_for(category: CategoryTag) -> str:
    return CATEGORY_COLORS[category]


def parse_participants(raw: Iterable[Any]) -> list[Participant]:
    """
    Validate raw presence entries.

    Accepts Participant instances or dicts with "id" and optional
    "category_tag" / "is_local_user". Malformed entries and repeated ids
    are skipped with a warning; the first occurrence of an id wins.

    Returns:
        List of Participant in input order
    """
    participants = []
    seen: set[str] = set()

    for entry in raw:
        if isinstance(entry, Participant):
            participant = entry
        else:
            try:
                participant = Participant.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Skipping invalid participant {entry!r}: {e.error_count()} error(s)")
                continue

        if participant.id in seen:
            logger.warning(f"Skipping duplicate participant id '{participant.id}'")
            continue

        seen.add(participant.id)
        participants.append(participant)

    return participants


def participants_from_counts(counts: dict[str, int]) -> list[Participant]:
    """
    Expand aggregate mood counts into individual participants.

    Ids are stable ("grateful-0", "grateful-1", ...) so the same
    distribution always produces the same ids.

    Example:
        participants_from_counts({"grateful": 2, "here": 1})
        # -> grateful-0, grateful-1, here-0
    """
    participants = []
    for mood, count in counts.items():
        if not isinstance(count, int) or count <= 0:
            continue
        try:
            category = CategoryTag(mood)
        except ValueError:
            logger.warning(f"Skipping unknown mood '{mood}'")
            continue
        for i in range(count):
            participants.append(Participant(id=f"{category.value}-{i}", category_tag=category))
    return participants


def diff_participants(
    previous: dict[str, ParticleIdentity],
    participants: list[Participant],
) -> ParticipantDiff:
    """
    Set difference between tracked identities and an incoming list.

    Args:
        previous: Currently tracked identities keyed by id
        participants: Incoming (already validated) presence list

    Returns:
        ParticipantDiff with admitted/changed in input order and evicted
        in tracking order
    """
    incoming_ids = {p.id for p in participants}
    admitted = []
    changed = []

    for participant in participants:
        current: Optional[ParticleIdentity] = previous.get(participant.id)
        if current is None:
            admitted.append(participant)
        elif (current.category_tag != participant.category_tag
              or current.is_local_user != participant.is_local_user):
            changed.append(participant)

    evicted = [pid for pid in previous if pid not in incoming_ids]
    return ParticipantDiff(admitted=admitted, evicted=evicted, changed=changed)
