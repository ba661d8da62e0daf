"""Logging helpers for Texloom.

Loggers are standard library loggers namespaced under ``texloom.`` so an
application can tune the whole package with one ``logging`` call. The
package root logger carries a ``NullHandler``: a library never configures
output on its own.

Example:
    >>> from texloom.utils.logger import get_logger
    >>> logger = get_logger("renderers.latex")
    >>> logger.name
    'texloom.renderers.latex'
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "texloom"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger under the ``texloom`` namespace
    """
    if not (name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}.")):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
