"""Logging configuration for pioagent."""

import logging

from pioagent.config import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)-18s - [%(funcName)s:%(lineno)d] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Install a root handler at the configured level.

    Library code only creates module loggers; the hosting process calls this once.
    """
    level = (settings or Settings()).log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("pioagent").setLevel(level)
