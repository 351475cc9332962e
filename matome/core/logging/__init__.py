# noqa: D104
"""Logging utilities."""

from matome.core.logging.logging import (
    JSONFormatter,
    SimpleConsoleFormatter,
    setup_logger,
    setup_logger_from_config,
)
from matome.core.logging.logging_utils import (
    log_bulk_progress,
    log_bulk_retry,
    log_bulk_summary,
    log_decode_result,
    log_fetch_attempt,
    log_fetch_failure,
    log_fetch_rejected,
    log_fetch_success,
    log_load_start,
    log_parse_failure,
    log_parse_result,
    log_renumbered,
)

__all__ = [
    "JSONFormatter",
    "SimpleConsoleFormatter",
    "log_bulk_progress",
    "log_bulk_retry",
    "log_bulk_summary",
    "log_decode_result",
    "log_fetch_attempt",
    "log_fetch_failure",
    "log_fetch_rejected",
    "log_fetch_success",
    "log_load_start",
    "log_parse_failure",
    "log_parse_result",
    "log_renumbered",
    "setup_logger",
    "setup_logger_from_config",
]
