import argparse
import json
import logging
import os
import signal
import sys
import time
from datetime import datetime
from typing import List, Optional

from csv2playlist.application.resolver import PlaylistResolver
from csv2playlist.application.sync import TrackSyncEngine
from csv2playlist.crosscutting.config import ConfigError, Settings, load_settings
from csv2playlist.crosscutting.logging import (
    CorrelationContext, log_error, log_sync_complete, log_sync_start, setup_logging
)
from csv2playlist.domain.entities import SyncOutcome, SyncResult, TrackRecord
from csv2playlist.domain.errors import IngestionError, RemoteTransportError
from csv2playlist.domain.ports import PlaylistAPI
from csv2playlist.infrastructure.csv_source import parse_csv_file
from csv2playlist.infrastructure.providers.dry_run import DryRunPlaylistAPI
from csv2playlist.infrastructure.providers.spotify import SpotifyPlaylistAPI, build_spotify_client


logger = logging.getLogger(__name__)

# Remote operation -> user facing phase
PHASES = {
    'find_playlist': 'resolution',
    'create_playlist': 'resolution',
    'current_user': 'resolution',
    'list_tracks': 'listing',
    'add_tracks': 'addition',
}


class CLI:
    """Command Line Interface for csv2playlist."""

    def __init__(self):
        """Initialize CLI."""
        self.parser = self._create_parser()
        self._start_time = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='csv2playlist',
            description='Create a playlist with songs from a csv'
        )
        parser.add_argument('playlist_name', help='Spotify playlist name')
        parser.add_argument('csv_filename', help='CSV filename')
        parser.add_argument(
            '--client-id',
            help='Spotify client ID (default: $SPOTIFY_CLIENT_ID)'
        )
        parser.add_argument(
            '--client-secret',
            help='Spotify client secret (default: $SPOTIFY_CLIENT_SECRET)'
        )
        parser.add_argument(
            '--username',
            help='Spotify username owning created playlists (default: current user)'
        )
        parser.add_argument(
            '--redirect-uri',
            help='OAuth redirect URI (default: $SPOTIFY_REDIRECT_URI or http://localhost:8888/callback)'
        )
        parser.add_argument(
            '--env-file',
            help='Path to a .env file (default: ./.env when present)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be added without changing any playlist'
        )
        parser.add_argument(
            '--report-path',
            help='Directory to write a JSON sync report to'
        )
        parser.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            default='INFO',
            help='Set logging level'
        )
        parser.add_argument(
            '--log-format',
            choices=['text', 'json'],
            default='text',
            help='Log line format (default: text)'
        )
        parser.add_argument(
            '--log-file',
            help='Also write logs to this file'
        )
        return parser

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            logger.warning(f"Received signal {signum}, shutting down...")
            sys.exit(130)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _create_run_id(self) -> str:
        """Create unique run identifier."""
        return f"csv2playlist_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    def _load_settings(self, args: argparse.Namespace) -> Settings:
        return load_settings(env_file=args.env_file, overrides={
            'SPOTIFY_CLIENT_ID': args.client_id,
            'SPOTIFY_CLIENT_SECRET': args.client_secret,
            'SPOTIFY_USERNAME': args.username,
            'SPOTIFY_REDIRECT_URI': args.redirect_uri,
        })

    def _create_api(self, settings: Settings, dry_run: bool) -> PlaylistAPI:
        """Create the playlist adapter."""
        api = SpotifyPlaylistAPI(build_spotify_client(settings), username=settings.username)
        if dry_run:
            return DryRunPlaylistAPI(api)
        return api

    def sync_playlist(self, api: PlaylistAPI, playlist_name: str,
                      tracks: List[TrackRecord]) -> SyncResult:
        """Resolve the playlist and add the missing tracks to it.

        Remote errors propagate; the logging context names the phase that failed.
        """
        with CorrelationContext(playlist_name=playlist_name, stage='resolution'):
            playlist_id = PlaylistResolver(api).resolve(playlist_name)

        with CorrelationContext(playlist_name=playlist_name, playlist_id=playlist_id, stage='sync'):
            return TrackSyncEngine(api).sync(playlist_id, tracks)

    def _write_report(self, result: SyncResult, run_id: str, playlist_name: str,
                      report_path: str, dry_run: bool) -> Optional[str]:
        """Write the sync report as JSON and return its path.

        The playlist is already updated at this point, so a failed write is logged
        and does not change the outcome.
        """
        report_data = {
            'runId': run_id,
            'playlistName': playlist_name,
            'dryRun': dry_run,
            'timestamp': datetime.now().isoformat(),
            **result.to_json(),
        }
        report_file = os.path.join(report_path, f"sync_report_{run_id}.json")
        try:
            os.makedirs(report_path, exist_ok=True)
            with open(report_file, 'w') as f:
                json.dump(report_data, f, indent=2)
        except OSError as e:
            log_error(logger, 'Could not write report', e, report_path=report_path)
            return None

        logger.info(f"Report saved to: {report_file}")
        return report_file

    def _summary(self, result: SyncResult, playlist_name: str, dry_run: bool) -> str:
        if result.outcome is SyncOutcome.NOTHING_TO_ADD:
            return f"No new tracks to add to '{playlist_name}'"
        if dry_run:
            return f"DRY-RUN: would add {result.added} tracks to '{playlist_name}'"
        return f"Successfully added {result.added} tracks to '{playlist_name}'"

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run the CLI and return the process exit code."""
        self._start_time = time.time()
        args = self.parser.parse_args(argv)
        setup_logging(args.log_level, log_file=args.log_file, structured=args.log_format == 'json')
        run_id = self._create_run_id()

        with CorrelationContext(run_id=run_id):
            try:
                tracks = parse_csv_file(args.csv_filename)
                settings = self._load_settings(args)
                logger.debug(f"Configuration: {settings.summary()}")
                api = self._create_api(settings, args.dry_run)

                log_sync_start(logger, args.playlist_name, len(tracks), dry_run=args.dry_run)
                result = self.sync_playlist(api, args.playlist_name, tracks)
                log_sync_complete(logger, args.playlist_name, result.playlist_id,
                                  result.outcome.value, result.added)

                print(self._summary(result, args.playlist_name, args.dry_run))

                if args.report_path:
                    self._write_report(result, run_id, args.playlist_name, args.report_path, args.dry_run)
                return 0

            except IngestionError as e:
                log_error(logger, 'Could not read tracks', e)
                return 1
            except ConfigError as e:
                log_error(logger, 'Invalid configuration', e)
                return 1
            except RemoteTransportError as e:
                phase = PHASES.get(e.operation, e.operation)
                log_error(logger, f"Sync failed during {phase}", e,
                          phase=phase, operation=e.operation, http_status=e.http_status)
                return 1
            except KeyboardInterrupt:
                logger.warning("Operation cancelled by user")
                return 130
            finally:
                duration = time.time() - self._start_time
                logger.debug(f"CLI execution time: {duration:.2f}s")


def main():
    """Main entry point."""
    cli = CLI()
    cli._setup_signal_handlers()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
