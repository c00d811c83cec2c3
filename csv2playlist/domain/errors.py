from __future__ import annotations

from typing import Optional


class Csv2PlaylistError(Exception):
    """Base class for errors raised by csv2playlist."""


class RemoteTransportError(Csv2PlaylistError):
    """Failure talking to the remote playlist service (network, auth, rate limit, bad response).

    Always fatal to the current operation; never retried.
    """

    def __init__(self, operation: str, message: str,
                 http_status: Optional[int] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.http_status = http_status
        self.cause = cause


class PlaylistNotFound(Csv2PlaylistError):
    """No playlist with the requested name exists. Triggers creation during resolution."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Could not find playlist '{name}'")
        self.name = name


class IngestionError(Csv2PlaylistError):
    """Track records could not be read from their source."""


class CsvFormatError(IngestionError):
    """CSV export is missing, malformed, or has a row without a track id."""

    def __init__(self, path: str, message: str, line: Optional[int] = None) -> None:
        location = f"{path}:{line}" if line is not None else path
        super().__init__(f"{location}: {message}")
        self.path = path
        self.line = line
