"""
Logging setup for the digest pipeline.

Everything ends up in loguru: our own modules log through the standard
`logging` module and are forwarded by InterceptHandler, so third-party
libraries and application code share one sink configuration.
"""

import inspect
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from config.settings import get_settings

QUIET_LIBRARIES = ("httpx", "httpcore", "apscheduler", "google_genai", "openai")

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {extra} | {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping the original call site."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure sinks once per process.

    Args:
        level: Minimum level; defaults to LOG_LEVEL
        log_file: Optional rotating log file; defaults to LOG_FILE
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True, diagnose=False)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Scheduled runs write from executor threads too
        logger.add(path, format=FILE_FORMAT, level=level, rotation="10 MB", retention="14 days", enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging at {level}" + (f", also to {log_file}" if log_file else ""))


def get_logger(name: str):
    """Loguru logger tagged with a component name."""
    return logger.bind(component=name)


class StepLogger:
    """
    Times one durable workflow step and logs its start and outcome.

        with StepLogger("summarize-news", run_id="digest-20261018"):
            ...
    """

    def __init__(self, step: str, **context):
        self.step = step
        self.log = logger.bind(step=step, **context)
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        self.log.info(f"Step {self.step} started")
        return self.log

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.log.info(f"Step {self.step} finished in {elapsed:.2f}s")
        else:
            self.log.error(f"Step {self.step} failed after {elapsed:.2f}s: {exc_val!r}")
        return False


def log_api_call(
    service: str,
    endpoint: str,
    target: str,
    success: bool,
    duration_ms: float,
    error: Optional[str] = None,
) -> None:
    """One line per outbound provider request; failures at WARNING."""
    call = logger.bind(service=service, endpoint=endpoint, target=target, ms=round(duration_ms, 1))
    if success:
        call.debug(f"{service} {endpoint} [{target}] ok in {duration_ms:.0f}ms")
    else:
        call.warning(f"{service} {endpoint} [{target}] failed in {duration_ms:.0f}ms: {error}")
