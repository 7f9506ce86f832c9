from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("campus_attendance").setLevel(level)
    # Flask dev server request lines are noise next to the write-path logs.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
