# noqa: D104
"""Core package - configuration and base components.

This package contains the core infrastructure modules:
- config: Base configuration
- clients: HTTP clients (AsyncHTTPClient, CloudscraperClient)
- errors: Exception classes and error metrics
- logging: Logging utilities
- utils: Date utilities, decorators
"""

from matome.core.config import BaseConfig

__all__ = [
    "BaseConfig",
]
