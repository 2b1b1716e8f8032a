"""Services package.

Keep this module lightweight: importing `services` should only configure
logging helpers, never pull in the host or UI stacks.
"""

from .logger import PerformanceLogger, cleanup_logging, get_logger, setup_logging

__all__ = ["PerformanceLogger", "cleanup_logging", "get_logger", "setup_logging"]
