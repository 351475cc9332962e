# noqa: D104
"""Utility functions."""

from matome.core.utils.date_utils import (
    JST,
    normalize_datetime_to_local,
    now_jst,
    parse_board_datetime,
    parse_iso_datetime,
)
from matome.core.utils.decorators import log_execution_time

__all__ = [
    "JST",
    "log_execution_time",
    "normalize_datetime_to_local",
    "now_jst",
    "parse_board_datetime",
    "parse_iso_datetime",
]
