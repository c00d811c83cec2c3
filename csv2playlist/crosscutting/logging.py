import json
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextvars import ContextVar

# Context variables for correlation
run_id_var: ContextVar[Optional[str]] = ContextVar('run_id', default=None)
playlist_name_var: ContextVar[Optional[str]] = ContextVar('playlist_name', default=None)
playlist_id_var: ContextVar[Optional[str]] = ContextVar('playlist_id', default=None)
stage_var: ContextVar[Optional[str]] = ContextVar('stage', default=None)

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SecretMasker:
    """Masks sensitive information in log messages."""

    def __init__(self):
        """Initialize secret masker with patterns."""
        self.patterns = [
            # API tokens and keys
            r'(?i)(token|key|secret|password|auth)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{10,})["\']?',
            # Spotify access/refresh tokens
            r'(?i)(access_token|refresh_token)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{20,})["\']?',
            # Client secrets
            r'(?i)(client_secret)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{20,})["\']?',
            # OAuth codes
            r'(?i)(code|authorization_code)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{20,})["\']?',
        ]

        self.compiled_patterns = [re.compile(pattern) for pattern in self.patterns]

    def mask_secrets(self, text: str) -> str:
        """Mask sensitive information in text."""
        if not text:
            return text

        def replace_match(match):
            prefix = match.group(1)
            secret = match.group(2)
            # Keep first 4 and last 4 characters, mask the rest
            if len(secret) > 8:
                masked_secret = secret[:4] + '*' * (len(secret) - 8) + secret[-4:]
            else:
                masked_secret = '*' * len(secret)
            return f"{prefix}: {masked_secret}"

        masked_text = text
        for pattern in self.compiled_patterns:
            masked_text = pattern.sub(replace_match, masked_text)

        return masked_text

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive information in string values of a dictionary."""
        if not data:
            return data

        masked_data = {}
        for key, value in data.items():
            if isinstance(value, str):
                masked_data[key] = self.mask_secrets(value)
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            else:
                masked_data[key] = value

        return masked_data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self):
        """Initialize formatter."""
        super().__init__()
        self.masker = SecretMasker()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': self.masker.mask_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add correlation fields if available
        correlation = {
            'runId': run_id_var.get(),
            'playlistName': playlist_name_var.get(),
            'playlistId': playlist_id_var.get(),
            'stage': stage_var.get(),
        }
        log_entry.update({k: v for k, v in correlation.items() if v})

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if getattr(record, 'fields', None):
            log_entry['fields'] = self.masker.mask_dict(record.fields)

        return json.dumps(log_entry, ensure_ascii=False)


class CorrelationContext:
    """Context manager for correlation data."""

    def __init__(self, run_id: Optional[str] = None,
                 playlist_name: Optional[str] = None,
                 playlist_id: Optional[str] = None,
                 stage: Optional[str] = None):
        """Initialize correlation context."""
        self._values = {
            run_id_var: run_id,
            playlist_name_var: playlist_name,
            playlist_id_var: playlist_id,
            stage_var: stage,
        }
        self._tokens = []

    def __enter__(self):
        """Set correlation context."""
        for var, value in self._values.items():
            if value is not None:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


def setup_logging(level: str = 'INFO',
                  log_file: Optional[str] = None,
                  structured: bool = False) -> logging.Logger:
    """Configure the csv2playlist logger with console and optional file output."""
    logger = logging.getLogger('csv2playlist')
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    formatter = StructuredFormatter() if structured else logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_with_fields(logger: logging.Logger, level: str, message: str,
                    fields: Optional[Dict[str, Any]] = None, **kwargs):
    """Log message with additional fields."""
    extra_fields = dict(fields or {})
    extra_fields.update(kwargs)
    logger.log(getattr(logging, level.upper()), message, extra={'fields': extra_fields})


def log_sync_start(logger: logging.Logger, playlist_name: str, track_count: int, **kwargs):
    """Log sync start."""
    with CorrelationContext(playlist_name=playlist_name, stage='start'):
        log_with_fields(logger, 'INFO', 'Sync started', {
            'track_count': track_count,
            **kwargs
        })


def log_sync_complete(logger: logging.Logger, playlist_name: str, playlist_id: str,
                      outcome: str, added: int, **kwargs):
    """Log sync completion."""
    with CorrelationContext(playlist_name=playlist_name, playlist_id=playlist_id, stage='complete'):
        log_with_fields(logger, 'INFO', 'Sync completed', {
            'outcome': outcome,
            'added': added,
            **kwargs
        })


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs):
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    })
