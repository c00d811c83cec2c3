import os
import sys
from typing import Iterable, List, Optional, Sequence

import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()

from csv2playlist.domain.errors import PlaylistNotFound  # noqa: E402


class FakePlaylistAPI:
    """In-memory playlist service that records every call made to it."""

    def __init__(self, playlists=None, tracks=None,
                 find_error: Optional[Exception] = None,
                 create_error: Optional[Exception] = None,
                 list_error: Optional[Exception] = None,
                 add_error: Optional[Exception] = None,
                 created_id: str = "pid_1"):
        self.playlists = dict(playlists or {})
        self.tracks = {k: list(v) for k, v in (tracks or {}).items()}
        self.find_error = find_error
        self.create_error = create_error
        self.list_error = list_error
        self.add_error = add_error
        self.created_id = created_id
        self.calls: List[tuple] = []

    def calls_to(self, method: str) -> List[tuple]:
        return [c[1:] for c in self.calls if c[0] == method]

    def find_playlist_id(self, name: str) -> str:
        self.calls.append(("find_playlist_id", name))
        if self.find_error:
            raise self.find_error
        if name not in self.playlists:
            raise PlaylistNotFound(name)
        return self.playlists[name]

    def create_playlist(self, name: str) -> str:
        self.calls.append(("create_playlist", name))
        if self.create_error:
            raise self.create_error
        self.playlists[name] = self.created_id
        self.tracks.setdefault(self.created_id, [])
        return self.created_id

    def list_track_ids(self, playlist_id: str) -> Iterable[str]:
        self.calls.append(("list_track_ids", playlist_id))
        if self.list_error:
            raise self.list_error
        return list(self.tracks.get(playlist_id, []))

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        self.calls.append(("add_tracks", playlist_id, list(track_ids)))
        if self.add_error:
            raise self.add_error
        self.tracks.setdefault(playlist_id, []).extend(track_ids)


@pytest.fixture
def fake_api_factory():
    return FakePlaylistAPI


@pytest.fixture(autouse=True)
def _clear_spotify_env():
    """Ensure Spotify credentials do not leak across tests.
    A developer shell or .env may set these variables; clear before each test
    and restore afterwards so tests explicitly setting them remain deterministic.
    """
    keys = ['SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET', 'SPOTIFY_REDIRECT_URI',
            'SPOTIFY_USERNAME', 'CSV2PLAYLIST_TOKEN_CACHE', 'CSV2PLAYLIST_TIMEOUT']
    backup = {k: os.environ.get(k) for k in keys}
    for k in keys:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
