from __future__ import annotations

import logging
import os
import sys

FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level_name: str | None = None) -> None:
    # Level via env (DEBUG/INFO/WARNING/ERROR), default INFO
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid stacking handlers when create_app() runs more than once (tests).
    if not any(getattr(h, "_team_portal", False) for h in root.handlers):
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter(FORMAT, DATEFMT))
        ch.setLevel(level)
        ch._team_portal = True
        root.addHandler(ch)

    logging.getLogger(__name__).info("Logging initialized at %s", level_name)
