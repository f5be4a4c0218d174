"""
Logging configuration for the command-line launcher.

Library code only ever calls logging.getLogger(__name__); applications
embedding schedload keep their own handlers.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """
    Configure root logging for the launcher.

    Errors and warnings are always shown. Progress messages (sleeps,
    successful loads, reporter output) need verbose mode.
    """
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    logging.getLogger("schedload").setLevel(logging.INFO if verbose else logging.WARNING)
