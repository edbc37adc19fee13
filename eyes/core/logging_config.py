# eyes/core/logging_config.py
# Logging setup -- every module logs through a named "eyes.<area>" logger

import logging

from eyes.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "") -> None:
    """Install the root handler once at startup."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
