# noqa: D104
"""Error handling and exceptions."""

from matome.core.errors.error_metrics import ErrorMetrics, error_metrics
from matome.core.errors.exceptions import (
    ConfigurationException,
    DataException,
    FetchException,
    MatomeException,
    ThreadLoadError,
)

__all__ = [
    "ConfigurationException",
    "DataException",
    "ErrorMetrics",
    "FetchException",
    "MatomeException",
    "ThreadLoadError",
    "error_metrics",
]
