from __future__ import annotations

import logging
import sys

TRACE = 15
PROTOCOL = 18
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PROTOCOL, "PROTOCOL")

LOG_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


def configure(verbose: bool = False, debug: bool = False) -> None:
    """Route log records to stderr; stdout carries command output only."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = TRACE
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
