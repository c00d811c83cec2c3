import logging
from enum import Enum

from csv2playlist.domain.errors import PlaylistNotFound
from csv2playlist.domain.ports import PlaylistAPI


logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    """States of a single playlist resolution."""

    RESOLVING = "resolving"
    CREATING = "creating"
    RESOLVED = "resolved"
    FAILED = "failed"


class PlaylistResolver:
    """Turns a playlist name into a playlist id, creating the playlist if it does not exist."""

    def __init__(self, api: PlaylistAPI):
        self._api = api
        self.state = None

    def _transition(self, state: ResolutionState, name: str) -> None:
        logger.debug(f"Playlist '{name}': {self.state.value if self.state else 'start'} -> {state.value}")
        self.state = state

    def resolve(self, name: str) -> str:
        """Return the id of the playlist called ``name``.

        Only ``PlaylistNotFound`` from the lookup leads to a create call. Any other
        lookup error, or a failed create, propagates unchanged.

        Args:
            name: Playlist name

        Returns:
            Playlist id
        """
        self.state = None
        self._transition(ResolutionState.RESOLVING, name)
        try:
            playlist_id = self._api.find_playlist_id(name)
        except PlaylistNotFound:
            self._transition(ResolutionState.CREATING, name)
        except Exception:
            self._transition(ResolutionState.FAILED, name)
            raise
        else:
            logger.info(f"Found existing playlist: {name} (ID: {playlist_id})")
            self._transition(ResolutionState.RESOLVED, name)
            return playlist_id

        logger.info(f"Creating new playlist: {name}")
        try:
            playlist_id = self._api.create_playlist(name)
        except Exception:
            self._transition(ResolutionState.FAILED, name)
            raise

        logger.info(f"Created playlist: {name} (ID: {playlist_id})")
        self._transition(ResolutionState.RESOLVED, name)
        return playlist_id
