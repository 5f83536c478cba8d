# Area: Shared
"""
Shared utilities used by the sync core, the stores and the CLI.

This package contains:
- Logging configuration
- Wall-clock helpers
"""

from .clock import Clock, now_ms
from .logging_config import (
    setup_logging,
    log_action_error,
)

__all__ = [
    "Clock",
    "now_ms",
    "setup_logging",
    "log_action_error",
]
