import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values


DEFAULT_REDIRECT_URI = 'http://localhost:8888/callback'
DEFAULT_TOKEN_CACHE = '.spotify_token_cache'
DEFAULT_TIMEOUT = 15

SPOTIFY_SCOPES = [
    'playlist-read-private',      # Find playlists by name
    'playlist-modify-private',    # Create/modify private playlists
]


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class Settings:
    """Credentials and options for talking to Spotify."""

    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    username: Optional[str] = None
    token_cache: str = DEFAULT_TOKEN_CACHE
    timeout: int = DEFAULT_TIMEOUT

    def scope_string(self) -> str:
        """Get Spotify scopes as space-separated string."""
        return ' '.join(SPOTIFY_SCOPES)

    def summary(self) -> Dict[str, Any]:
        """Get configuration summary (without sensitive data)."""
        return {
            'client_id': self.client_id,
            'has_client_secret': bool(self.client_secret),
            'redirect_uri': self.redirect_uri,
            'username': self.username,
            'token_cache': self.token_cache,
            'timeout': self.timeout,
            'spotify_scopes': list(SPOTIFY_SCOPES),
        }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def load_settings(env_file: Optional[str] = None,
                  overrides: Optional[Mapping[str, Optional[str]]] = None) -> Settings:
    """Build settings from overrides, then the environment, then a .env file.

    The .env file is read without touching ``os.environ``.

    Args:
        env_file: Path to a .env file; ``.env`` in the working directory when omitted
        overrides: Values that take precedence, keyed like the environment variables

    Returns:
        Settings

    Raises:
        ConfigError: A required value is missing or invalid
    """
    path = Path(env_file) if env_file else Path('.env')
    if env_file and not path.exists():
        raise ConfigError(f"Env file not found: {path}")
    file_values = dotenv_values(path) if path.exists() else {}
    overrides = overrides or {}

    def get(key: str) -> Optional[str]:
        for source in (overrides, os.environ, file_values):
            value = _clean(source.get(key))
            if value is not None:
                return value
        return None

    missing = [key for key in ('SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET') if get(key) is None]
    if missing:
        raise ConfigError(f"{', '.join(missing)} not found in arguments, environment or {path}")

    timeout_raw = get('CSV2PLAYLIST_TIMEOUT')
    try:
        timeout = int(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
    except ValueError:
        raise ConfigError(f"CSV2PLAYLIST_TIMEOUT must be an integer, got '{timeout_raw}'")
    if timeout <= 0:
        raise ConfigError("CSV2PLAYLIST_TIMEOUT must be positive")

    return Settings(
        client_id=get('SPOTIFY_CLIENT_ID'),
        client_secret=get('SPOTIFY_CLIENT_SECRET'),
        redirect_uri=get('SPOTIFY_REDIRECT_URI') or DEFAULT_REDIRECT_URI,
        username=get('SPOTIFY_USERNAME'),
        token_cache=get('CSV2PLAYLIST_TOKEN_CACHE') or DEFAULT_TOKEN_CACHE,
        timeout=timeout,
    )
