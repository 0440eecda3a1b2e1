"""Logging configuration for filmsync."""
import logging
import logging.handlers
import time
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

RUN_LOGGER_NAME = "filmsync"
NOISY_LOGGERS = ("urllib3", "PIL", "google.auth")


def setup_logging(log_dir: Path, retention_days: int = 30, verbose: bool = False) -> logging.Logger:
    """Configure file + console handlers and return the run logger.

    The returned logger is the handle the CLI threads through every sync
    component for the lifetime of one run.

    Args:
        log_dir: Directory for log files (created if missing)
        retention_days: How many days of logs to keep
        verbose: If True, set console to DEBUG level
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(log_dir, retention_days)

    run_logger = logging.getLogger(RUN_LOGGER_NAME)
    run_logger.setLevel(logging.DEBUG)
    run_logger.propagate = False

    # Remove existing handlers (avoid duplicates)
    for handler in list(run_logger.handlers):
        handler.close()
    run_logger.handlers.clear()

    # File handler - daily rotation, DEBUG level
    log_file = log_dir / f"{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_file,
        when='midnight',
        interval=1,
        backupCount=retention_days,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    run_logger.addHandler(file_handler)

    # Console handler - INFO level (or DEBUG if verbose)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter('[%(asctime)s] %(message)s', datefmt='%H:%M:%S'))
    run_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return run_logger


def close_logging(run_logger: logging.Logger) -> None:
    """Flush and detach handlers at the end of a run."""
    for handler in list(run_logger.handlers):
        handler.close()
        run_logger.removeHandler(handler)


def cleanup_old_logs(log_dir: Path, retention_days: int):
    """Delete log files older than retention_days."""
    if not log_dir.exists():
        return

    cutoff_date = datetime.now() - timedelta(days=retention_days)

    for log_file in log_dir.glob('*.log'):
        try:
            # Parse YYYY-MM-DD.log format
            file_date = datetime.strptime(log_file.stem, '%Y-%m-%d')
            if file_date < cutoff_date:
                log_file.unlink()
        except (ValueError, OSError):
            # Skip files that don't match date format or can't be deleted
            continue


@contextmanager
def timer(operation_name: str, logger: logging.Logger):
    """Context manager to time operations and log duration."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        logger.debug(f"{operation_name} took {duration:.1f}s")
