"""
Structured logging configuration for the recruitment-model package.

This module provides a centralized way to configure logging across the library
and CLI, with separate output files for forecast events, performance metrics,
monitoring alerts, warnings and debug detail.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Set

# Define logger names for different concerns
FORECAST_LOGGER = "recruitment_model.forecast"
PERFORMANCE_LOGGER = "recruitment_model.performance"
MONITORING_LOGGER = "recruitment_model.monitoring"
DEBUG_LOGGER = "recruitment_model.debug"

# Standard log format with module name and line number
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILES = (
    "forecast_events.log",
    "performance_metrics.log",
    "warnings_errors.log",
    "debug_detail.log",
    "combined.log",
)

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Track if logging is already configured and log files
_LOGGING_CONFIGURED = False
_log_files_created: Set[Path] = set()


def clear_logs(log_dir: Path) -> None:
    """
    Clear all log files in the specified directory.

    Args:
        log_dir: Directory containing log files to clear
    """
    for name in LOG_FILES:
        log_file = log_dir / name
        if log_file.exists():
            try:
                log_file.unlink()
            except OSError as e:
                logging.getLogger(__name__).warning(f"Could not delete {log_file}: {e}")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8',
        mode='a'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    _log_files_created.add(path)
    return handler


def _attach(logger_name: str, handler: logging.Handler, level: int) -> None:
    named = logging.getLogger(logger_name)
    for h in named.handlers[:]:
        named.removeHandler(h)
    named.setLevel(level)
    named.addHandler(handler)
    named.propagate = True  # Allow to bubble up to root


def setup_logging(log_dir: Path, debug: bool = False, clear_existing: bool = True) -> None:
    """
    Configure structured logging for the application.

    Creates separate log files for different concerns:
    - forecast_events.log: Forecast pipeline stages and monitoring alerts (INFO+)
    - performance_metrics.log: Timings and sample sizes (INFO+)
    - warnings_errors.log: Warnings and errors, including degraded fallbacks (WARNING+)
    - debug_detail.log: Detailed debug information (DEBUG, only if debug=True)
    - combined.log: Combined log of all messages (INFO+)

    Calling it again after a successful setup is a no-op.

    Args:
        log_dir: Directory where log files will be stored
        debug: If True, enables debug logging and creates debug_detail.log
        clear_existing: If True, clears existing log files before starting
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        return

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    if clear_existing:
        clear_logs(log_dir)

    # Remove all handlers from the root logger before setup
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    file_formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    console_formatter = logging.Formatter("%(levelname)-8s %(message)s")

    # Console handler (for warnings and above)
    console = logging.StreamHandler()
    console.setLevel(logging.WARNING)
    console.setFormatter(console_formatter)
    root_logger.addHandler(console)

    root_logger.addHandler(
        _rotating_handler(log_dir / "combined.log", logging.INFO, file_formatter)
    )
    root_logger.addHandler(
        _rotating_handler(log_dir / "warnings_errors.log", logging.WARNING, file_formatter)
    )

    # Forecast and monitoring events share one file
    forecast_handler = _rotating_handler(
        log_dir / "forecast_events.log", logging.INFO, file_formatter
    )
    _attach(FORECAST_LOGGER, forecast_handler, logging.INFO)
    _attach(MONITORING_LOGGER, forecast_handler, logging.INFO)

    _attach(
        PERFORMANCE_LOGGER,
        _rotating_handler(log_dir / "performance_metrics.log", logging.INFO, file_formatter),
        logging.INFO,
    )

    if debug:
        _attach(
            DEBUG_LOGGER,
            _rotating_handler(log_dir / "debug_detail.log", logging.DEBUG, file_formatter),
            logging.DEBUG,
        )

    _LOGGING_CONFIGURED = True


def reset_logging() -> None:
    """Drop the handlers installed by setup_logging so it can run again."""
    global _LOGGING_CONFIGURED

    for name in (None, FORECAST_LOGGER, PERFORMANCE_LOGGER, MONITORING_LOGGER, DEBUG_LOGGER):
        target = logging.getLogger(name)
        for h in target.handlers[:]:
            target.removeHandler(h)
            h.close()
    _log_files_created.clear()
    _LOGGING_CONFIGURED = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance.

    Unlike the CLI, library code never configures handlers on its own; call
    setup_logging first if file output is wanted.

    Args:
        name: Logger name (e.g., __name__). If None, returns root logger.
    """
    return logging.getLogger(name)


__all__ = [
    "FORECAST_LOGGER",
    "PERFORMANCE_LOGGER",
    "MONITORING_LOGGER",
    "DEBUG_LOGGER",
    "LOG_FORMAT",
    "clear_logs",
    "setup_logging",
    "reset_logging",
    "get_logger",
]
