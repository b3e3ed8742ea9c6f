import logging
import sys
from datetime import datetime
from pathlib import Path


class Log:
    """Centralized logging with structured format."""

    _logger: logging.Logger = logging.getLogger("venuewatch")
    _FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

    @classmethod
    def configure(cls, log_level: str, log_dir: Path | None = None) -> Path | None:
        """Configure the logger with the specified level and stdout handler.

        When log_dir is given, also write this run's records to
        pipeline-run-YYYYMMDD-HHMMSS.log inside it and return that path.
        """
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(cls._FORMAT))
            cls._logger.addHandler(handler)
        if log_dir is None:
            return None
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"pipeline-run-{datetime.now():%Y%m%d-%H%M%S}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(cls._FORMAT))
        cls._logger.addHandler(file_handler)
        return log_path

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)
