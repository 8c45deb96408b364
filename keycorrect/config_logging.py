"""
KeyCorrect Logging & Errors
===========================
Structured logging and the internal exception hierarchy.

Log settings are read from the environment:
    KEYCORRECT_LOG_LEVEL      DEBUG, INFO, WARNING, ... (default INFO)
    KEYCORRECT_LOG_FORMAT     json or text (default text)
    KEYCORRECT_LOG_FILE       true/false, write a rotating log file (default false)
    KEYCORRECT_LOG_DIR        directory for the log file
    KEYCORRECT_LOG_CONSOLE    true/false (default true)
"""

import os
import sys
import json
import logging
import uuid
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
import threading

LOG_FILE_MAX_BYTES = 2 * 1024 * 1024  # 2MB max per log file
LOG_BACKUP_COUNT = 3

APP_NAME = "keycorrect"


@dataclass
class LogConfig:
    """Logging configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # Options: json, text
    log_to_file: bool = False
    log_to_console: bool = True
    log_dir: Path = field(default_factory=lambda: Path.home() / '.keycorrect' / 'logs')

    @classmethod
    def from_env(cls) -> 'LogConfig':
        """Load logging configuration from environment variables."""
        config = cls(
            log_level=os.environ.get('KEYCORRECT_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('KEYCORRECT_LOG_FORMAT', 'text'),
            log_to_file=os.environ.get('KEYCORRECT_LOG_FILE', 'false').lower() == 'true',
            log_to_console=os.environ.get('KEYCORRECT_LOG_CONSOLE', 'true').lower() == 'true',
        )
        if os.environ.get('KEYCORRECT_LOG_DIR'):
            config.log_dir = Path(os.environ['KEYCORRECT_LOG_DIR'])
        return config


_log_config: Optional[LogConfig] = None
_loggers: Dict[str, 'StructuredLogger'] = {}
_loggers_lock = threading.Lock()


def get_log_config() -> LogConfig:
    """Get or create the global logging configuration."""
    global _log_config
    if _log_config is None:
        _log_config = LogConfig.from_env()
    return _log_config


def reset_log_config():
    """Reset logging configuration and cached loggers (for testing)."""
    global _log_config
    _log_config = None
    with _loggers_lock:
        _loggers.clear()


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class StructuredLogger:
    """Thread-safe structured logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[LogConfig] = None):
        self.name = name
        self.config = config or get_log_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))
        self.logger.handlers.clear()
        self.logger.propagate = True

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)
            # Avoid duplicate lines through the root logger
            self.logger.propagate = False

        if self.config.log_to_file:
            from logging.handlers import RotatingFileHandler
            self.config.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self.config.log_dir / f"{APP_NAME}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> Optional[str]:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None)

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _build_log_record(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        """Build a structured log record."""
        return {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'logger': self.name,
            'correlation_id': self.get_correlation_id(),
            'message': message,
            **kwargs
        }

    def _render(self, level: str, message: str, **kwargs) -> str:
        if self.config.log_format == 'json':
            return json.dumps(self._build_log_record(level, message, **kwargs), default=str)
        return message

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._render('DEBUG', message, **kwargs), extra=kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._render('INFO', message, **kwargs), extra=kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._render('WARNING', message, **kwargs), extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log error message with optional exception info."""
        self.logger.error(self._render('ERROR', message, **kwargs), exc_info=exc_info, extra=kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.time() - start_time) * 1000
            self.info(f"{operation} completed", operation=operation, status='completed',
                      duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    _RESERVED = frozenset((
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'stack_info', 'thread', 'threadName', 'exc_info', 'exc_text',
        'message', 'taskName',
    ))

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        # StructuredLogger already rendered a JSON document
        if message.startswith('{'):
            if record.exc_info:
                data = json.loads(message)
                data['traceback'] = self.formatException(record.exc_info)
                return json.dumps(data, default=str)
            return message

        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': message,
        }

        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self._RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance (cached per name)."""
    with _loggers_lock:
        logger = _loggers.get(name)
        if logger is None:
            logger = StructuredLogger(name, get_log_config())
            _loggers[name] = logger
        return logger


# =============================================================================
# ERROR HIERARCHY
# =============================================================================

class KeyCorrectError(Exception):
    """Base exception for keycorrect internals."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class DictionaryLoadError(KeyCorrectError):
    """A dictionary file for one language could not be read."""
    def __init__(self, message: str, language: Optional[str] = None, **kwargs):
        super().__init__(message, code="LOAD_ERROR",
                         details={'language': language, **kwargs})
        self.language = language


class WordValidationError(KeyCorrectError):
    """A custom word or language code is malformed."""
    def __init__(self, message: str, word: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR",
                         details={'word': word, **kwargs})
        self.word = word


class PersistenceError(KeyCorrectError):
    """Writing a custom overlay file failed."""
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, code="PERSISTENCE_ERROR",
                         details={'path': path, **kwargs})
        self.path = path


class BackupFormatError(KeyCorrectError):
    """Backup archive is not a readable keycorrect backup."""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="BACKUP_FORMAT_ERROR", details=kwargs)


class IncompatibleBackupError(KeyCorrectError):
    """Backup was produced by a newer format version."""
    def __init__(self, backup_version: int, current_version: int):
        super().__init__(
            f"Backup version {backup_version} is newer than supported version {current_version}",
            code="INCOMPATIBLE_VERSION",
            details={'backup_version': backup_version, 'current_version': current_version}
        )
        self.backup_version = backup_version
        self.current_version = current_version
