"""Dry-run playlist adapter that never writes to the remote service."""

from typing import Iterable, List, Sequence, Tuple

from csv2playlist.domain.ports import PlaylistAPI

PLACEHOLDER_PREFIX = 'dry-run:'


class DryRunPlaylistAPI(PlaylistAPI):
    """Forwards reads to a real adapter and records writes instead of sending them."""

    def __init__(self, delegate: PlaylistAPI):
        self._delegate = delegate
        self.created: List[str] = []
        self.added: List[Tuple[str, Tuple[str, ...]]] = []

    def find_playlist_id(self, name: str) -> str:
        return self._delegate.find_playlist_id(name)

    def create_playlist(self, name: str) -> str:
        self.created.append(name)
        return f"{PLACEHOLDER_PREFIX}{name}"

    def list_track_ids(self, playlist_id: str) -> Iterable[str]:
        # A playlist that would have been created is empty
        if playlist_id.startswith(PLACEHOLDER_PREFIX):
            return []
        return self._delegate.list_track_ids(playlist_id)

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        self.added.append((playlist_id, tuple(track_ids)))
