import logging
from typing import AbstractSet, Iterable, List, Sequence

from csv2playlist.domain.entities import SyncOutcome, SyncResult, TrackRecord
from csv2playlist.domain.ports import PlaylistAPI


logger = logging.getLogger(__name__)


def select_new_track_ids(desired_ids: Iterable[str], existing: AbstractSet[str]) -> List[str]:
    """Return the desired ids missing from ``existing``, sorted and without duplicates."""
    return sorted({track_id for track_id in desired_ids if track_id not in existing})


class TrackSyncEngine:
    """Adds the tracks of a list that a playlist does not contain yet."""

    def __init__(self, api: PlaylistAPI):
        self._api = api

    def sync(self, playlist_id: str, desired: Sequence[TrackRecord]) -> SyncResult:
        """Add missing tracks to a playlist.

        The playlist is listed before anything is added, and nothing is added when
        every desired track is already there.

        Args:
            playlist_id: Target playlist id
            desired: Track records to be present in the playlist

        Returns:
            SyncResult with outcome ADDED or NOTHING_TO_ADD
        """
        desired_ids = [record.track_id for record in desired]

        existing = set(self._api.list_track_ids(playlist_id))
        logger.debug(f"Playlist {playlist_id} already has {len(existing)} tracks")

        submitted = select_new_track_ids(desired_ids, existing)
        already_present = len({track_id for track_id in desired_ids if track_id in existing})

        if not submitted:
            logger.info(f"No new tracks to add to playlist {playlist_id}")
            return SyncResult(
                playlist_id=playlist_id,
                outcome=SyncOutcome.NOTHING_TO_ADD,
                requested=len(desired_ids),
                already_present=already_present,
            )

        logger.info(f"Adding {len(submitted)} tracks to playlist {playlist_id} "
                    f"({already_present} already present)")
        self._api.add_tracks(playlist_id, submitted)

        return SyncResult(
            playlist_id=playlist_id,
            outcome=SyncOutcome.ADDED,
            requested=len(desired_ids),
            already_present=already_present,
            submitted=tuple(submitted),
        )
