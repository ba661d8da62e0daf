"""Utility modules for Texloom.

Provides:
- logger: get_logger for namespaced logging
"""

from texloom.utils.logger import get_logger

__all__ = [
    "get_logger",
]
