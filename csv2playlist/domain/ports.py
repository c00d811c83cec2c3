from __future__ import annotations

from typing import Iterable, Protocol, Sequence


class PlaylistAPI(Protocol):
    """Port defining the remote playlist capabilities the core depends on.

    Implementations must raise ``PlaylistNotFound`` only from ``find_playlist_id`` and
    wrap every other remote failure in ``RemoteTransportError``.
    """

    def find_playlist_id(self, name: str) -> str:
        """Return the id of the user's playlist called ``name`` or raise PlaylistNotFound."""

    def create_playlist(self, name: str) -> str:
        """Create a playlist called ``name`` and return its id."""

    def list_track_ids(self, playlist_id: str) -> Iterable[str]:
        """Iterate ids of the tracks currently in the playlist."""

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        """Append the given tracks to the playlist."""
