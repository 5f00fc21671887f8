from __future__ import annotations

import logging
import sys


# PUBLIC_INTERFACE
def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the root logger with a single stderr handler.

    Safe to call more than once: existing root handlers are replaced rather than
    stacked, so re-importing the app in tests does not duplicate output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    logging.captureWarnings(True)
