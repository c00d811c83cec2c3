from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class TrackRecord:
    """A track parsed from an export. Only ``track_id`` takes part in syncing."""

    name: str
    track_id: str


class SyncOutcome(str, Enum):
    """Terminal outcome of a successful sync."""

    ADDED = "added"
    NOTHING_TO_ADD = "nothing_to_add"


@dataclass(frozen=True)
class SyncResult:
    """Result of syncing a list of tracks into a playlist."""

    playlist_id: str
    outcome: SyncOutcome
    requested: int = 0
    already_present: int = 0
    submitted: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def added(self) -> int:
        return len(self.submitted) if self.outcome is SyncOutcome.ADDED else 0

    def to_json(self) -> Dict[str, Any]:
        """Serialize result to JSON."""
        return {
            "playlistId": self.playlist_id,
            "outcome": self.outcome.value,
            "requested": self.requested,
            "alreadyPresent": self.already_present,
            "submitted": list(self.submitted),
        }
