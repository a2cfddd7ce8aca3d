"""Core utilities shared across :mod:`modsplit` packages.

The core namespace provides the configuration loading and logging setup that
the extraction engine and CLI build on.

Example:
    >>> from modsplit.core import get_logger
    >>> logger = get_logger(__name__)
    >>> isinstance(logger, object)
    True
"""

from __future__ import annotations

from .config import (
    AppConfig,
    BalanceFailurePolicy,
    ExtractorSettings,
    load_config,
)
from .logging import configure_logging, get_logger

__all__ = [
    "AppConfig",
    "BalanceFailurePolicy",
    "ExtractorSettings",
    "configure_logging",
    "get_logger",
    "load_config",
]
