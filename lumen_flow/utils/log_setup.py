"""Logging setup shared by the CLI, the API and the scheduler."""

import logging

from lumen_flow.utils.config import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger from config.

    Calling this more than once replaces the handlers installed earlier.
    """
    logging.basicConfig(level=config.level, format=config.format, force=True)

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(max(logging.WARNING, logging.getLevelName(config.level)))
