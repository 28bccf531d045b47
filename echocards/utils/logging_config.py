"""
Logging setup for EchoCards.

Everything goes to the console and to ``<data_path>/logs/echocards.log``;
errors are copied to ``errors.log`` so a failed import or export can be found
without reading the full log.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

MAIN_LOG = "echocards.log"
ERROR_LOG = "errors.log"

LOG_LEVELS = {
    name: getattr(logging, name) for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}

APP_COMPONENTS = ("services", "utils", "models", "pages")

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("streamlit", "watchdog")

_BASE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EchoCardsFormatter(logging.Formatter):
    """Formatter that appends source location to error records."""

    def __init__(self):
        super().__init__(_BASE_FORMAT)
        self._error_formatter = logging.Formatter(
            _BASE_FORMAT + "\n%(pathname)s:%(lineno)d in %(funcName)s"
        )

    def format(self, record):
        if record.levelno >= logging.ERROR:
            return self._error_formatter.format(record)
        return super().format(record)


class LoggingConfig:
    """Installs the application's handlers on the root logger, once."""

    def __init__(self, data_path: str = "data"):
        self.data_path = Path(data_path)
        self.log_dir = self.data_path / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._configured = False

    def setup_logging(
        self,
        log_level: str = None,
        console_output: bool = True,
        file_output: bool = True,
        max_file_size: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ) -> None:
        """
        Configure the root logger.

        Args:
            log_level: Level name; falls back to ``LOG_LEVEL``, then INFO
            console_output: Log to stdout
            file_output: Log to the rotating files in ``log_dir``
            max_file_size: Bytes before a log file is rotated
            backup_count: Rotated files kept per log
        """
        if self._configured:
            return

        level = self._get_log_level(log_level)
        formatter = EchoCardsFormatter()

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        handlers = []
        if console_output:
            handlers.append((logging.StreamHandler(sys.stdout), level))
        if file_output:
            for filename, handler_level in ((MAIN_LOG, level), (ERROR_LOG, logging.ERROR)):
                rotating = logging.handlers.RotatingFileHandler(
                    self.log_dir / filename, maxBytes=max_file_size, backupCount=backup_count
                )
                handlers.append((rotating, handler_level))

        for handler, handler_level in handlers:
            handler.setLevel(handler_level)
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        for component in APP_COMPONENTS:
            logging.getLogger(f"echocards.{component}").setLevel(level)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        self._configured = True
        logging.getLogger(__name__).info(f"Logging configured - Level: {logging.getLevelName(level)}")

    def _get_log_level(self, log_level: Optional[str]) -> int:
        level_name = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
        return LOG_LEVELS.get(level_name, logging.INFO)

    def log_summary(self) -> Dict[str, Any]:
        """Size in bytes of each log file (rotated ones included) and their total."""
        files = {}
        if self.log_dir.exists():
            files = {
                path.name: path.stat().st_size
                for path in sorted(self.log_dir.iterdir())
                if path.name.startswith((MAIN_LOG, ERROR_LOG))
            }
        return {
            "log_directory": str(self.log_dir),
            "files": files,
            "total_size": sum(files.values()),
        }


# Set by setup_application_logging
logging_config: Optional[LoggingConfig] = None


def setup_application_logging(log_level: str = None, data_path: str = "data") -> None:
    """Configure logging for the app, with log files under ``data_path``."""
    global logging_config
    logging_config = LoggingConfig(data_path)
    logging_config.setup_logging(log_level=log_level)


def get_log_summary() -> Optional[Dict[str, Any]]:
    """Log file summary for the active configuration, or None before setup."""
    if logging_config is None:
        return None
    return logging_config.log_summary()


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific component (typically ``__name__``)."""
    return logging.getLogger(name)
