"""
Utility modules for the Market Digest pipeline.
"""

from utils.logging import setup_logging, get_logger, StepLogger, log_api_call
from utils.helpers import (
    get_date_range,
    format_date_today,
    async_retry,
    gather_bounded,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "StepLogger",
    "log_api_call",
    "get_date_range",
    "format_date_today",
    "async_retry",
    "gather_bounded",
]
