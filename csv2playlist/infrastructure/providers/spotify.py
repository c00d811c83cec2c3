import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from csv2playlist.crosscutting.config import Settings
from csv2playlist.domain.errors import PlaylistNotFound, RemoteTransportError
from csv2playlist.domain.ports import PlaylistAPI

logger = logging.getLogger(__name__)

PLAYLIST_PAGE_LIMIT = 50
TRACK_PAGE_LIMIT = 100
ADD_BATCH_SIZE = 100


def iter_pages(fetch: Callable[..., Optional[Dict[str, Any]]], limit: int) -> Iterator[List[Dict[str, Any]]]:
    """Yield pages of items from an offset-paginated endpoint.

    Stops after the first short or empty page. Each call starts again from offset 0.

    Args:
        fetch: Callable accepting ``limit`` and ``offset`` keyword arguments
        limit: Page size
    """
    offset = 0
    while True:
        page = fetch(limit=limit, offset=offset)
        items = (page or {}).get('items') or []
        if items:
            yield items
        if len(items) < limit:
            return
        offset += limit


def build_spotify_client(settings: Settings) -> spotipy.Spotify:
    """Create a spotipy client authorised through the OAuth authorization code flow.

    spotipy's transport retries are disabled: adding tracks is not idempotent and the
    first remote failure ends the run.
    """
    auth_manager = SpotifyOAuth(
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        redirect_uri=settings.redirect_uri,
        scope=settings.scope_string(),
        cache_path=settings.token_cache,
    )
    return spotipy.Spotify(auth_manager=auth_manager, requests_timeout=settings.timeout,
                           retries=0, status_retries=0)


class SpotifyPlaylistAPI(PlaylistAPI):
    """Spotify implementation of the playlist port."""

    def __init__(self, client: spotipy.Spotify, username: Optional[str] = None):
        """Initialize Spotify adapter.

        Args:
            client: Authorised spotipy client
            username: Owner for created playlists; defaults to the current user
        """
        self._client = client
        self._username = username

    def _call(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a spotipy call, mapping transport failures to RemoteTransportError."""
        try:
            return func(*args, **kwargs)
        except spotipy.SpotifyException as e:
            logger.error(f"Spotify {operation} failed with HTTP {e.http_status}: {e.msg}")
            raise RemoteTransportError(operation, str(e.msg), http_status=e.http_status, cause=e) from e
        except SpotifyOauthError as e:
            logger.error(f"Spotify authorization failed during {operation}: {e}")
            raise RemoteTransportError(operation, f"authorization failed: {e}", cause=e) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error during {operation}: {e}")
            raise RemoteTransportError(operation, str(e), cause=e) from e

    def _owner(self) -> str:
        if not self._username:
            current_user = self._call('current_user', self._client.current_user)
            self._username = current_user['id']
        return self._username

    def find_playlist_id(self, name: str) -> str:
        """Return the id of the first playlist of the current user named exactly ``name``.

        Raises:
            PlaylistNotFound: No playlist has that name
            RemoteTransportError: Listing playlists failed
        """
        def fetch(limit: int, offset: int):
            return self._call('find_playlist', self._client.current_user_playlists,
                              limit=limit, offset=offset)

        for items in iter_pages(fetch, PLAYLIST_PAGE_LIMIT):
            for playlist in items:
                if playlist and playlist.get('name') == name:
                    logger.debug(f"Playlist '{name}' has ID {playlist['id']}")
                    return playlist['id']

        raise PlaylistNotFound(name)

    def create_playlist(self, name: str) -> str:
        """Create a private playlist and return its id."""
        result = self._call('create_playlist', self._client.user_playlist_create,
                            self._owner(), name, public=False)
        return result['id']

    def list_track_ids(self, playlist_id: str) -> Iterator[str]:
        """Iterate track ids in a playlist.

        Local files and unavailable tracks have no catalog id and are skipped.
        """
        def fetch(limit: int, offset: int):
            return self._call('list_tracks', self._client.playlist_items, playlist_id,
                              fields='items(track(id)),next', limit=limit, offset=offset,
                              additional_types=('track',))

        for items in iter_pages(fetch, TRACK_PAGE_LIMIT):
            for item in items:
                track = item.get('track')
                if track and track.get('id'):
                    yield track['id']

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        """Add tracks to a playlist, at most 100 per request."""
        for i in range(0, len(track_ids), ADD_BATCH_SIZE):
            batch = list(track_ids[i:i + ADD_BATCH_SIZE])
            self._call('add_tracks', self._client.playlist_add_items, playlist_id, batch)
            logger.debug(f"Added batch of {len(batch)} tracks at offset {i} to playlist {playlist_id}")
