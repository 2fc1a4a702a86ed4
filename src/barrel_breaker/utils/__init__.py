"""
Utilities module - logging helpers.
"""

from barrel_breaker.utils.logger import logger

__all__ = ["logger"]
