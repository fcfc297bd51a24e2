"""
Package-wide helpers.
"""
from .logger import get_logger, debug_enabled

__all__ = ["get_logger", "debug_enabled"]
