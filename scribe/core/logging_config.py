"""Process-wide logging setup shared by the API and the CLI scripts."""

import logging
import time

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def build_formatter() -> logging.Formatter:
    """Formatter whose timestamps are UTC, matching the trailing Z."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(build_formatter())
        root.addHandler(handler)
    root.setLevel(level)
    # SQLAlchemy echoes through its own logger when DEBUG is on; keep it at WARNING otherwise.
    if level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
