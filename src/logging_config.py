"""Logging configuration for the feed generator."""
import logging
import logging.handlers
import time
from contextlib import contextmanager
from pathlib import Path

LOG_FILE_NAME = "feed.log"


def setup_logging(log_dir: Path | None = None, retention_days: int = 30, verbose: bool = False):
    """Send log records to stderr, and to log_dir/feed.log when log_dir is given.

    The log file rotates at midnight; rotated files older than
    retention_days are removed by the handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root_logger.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        run_log = logging.handlers.TimedRotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8",
        )
        run_log.setLevel(logging.DEBUG)
        run_log.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        root_logger.addHandler(run_log)

    return root_logger


@contextmanager
def timer(operation_name: str, logger: logging.Logger):
    """Context manager to time operations and log duration."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug(f"{operation_name} took {time.perf_counter() - start:.2f}s")
