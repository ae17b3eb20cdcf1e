import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "ignition_scripts"


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Attach a single stream handler to the root logger.

    The service logs to stdout; the CLI passes ``sys.stderr`` so that
    documents written to stdout stay clean.
    """
    root = logging.getLogger()
    if root.handlers:
        # already configured, only adjust the level
        root.setLevel(level.upper())
        return
    handler = logging.StreamHandler(stream or sys.stdout)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%SZ")
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
