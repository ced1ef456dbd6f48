#!/usr/bin/env python3
"""
Safe console output for progress messages with emoji prefixes.
"""

import logging
from typing import Optional

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}


def _ascii_safe(message: str) -> str:
    return message.encode('ascii', errors='replace').decode('ascii')


def safe_print(message: str, level: Optional[str] = None):
    """Print a message, falling back to ASCII on consoles without Unicode.

    When level is given the message is also sent to the drmlicense logger.
    """
    try:
        print(message)
    except UnicodeEncodeError:
        print(_ascii_safe(message))
    if level:
        safe_log(logging.getLogger('drmlicense'), level, message)


def safe_log(logger, level: str, message: str):
    """Log at the named level (unknown names log at INFO), ASCII fallback"""
    lvl = _LEVELS.get(level.upper(), logging.INFO)
    try:
        logger.log(lvl, message)
    except UnicodeEncodeError:
        logger.log(lvl, _ascii_safe(message))
