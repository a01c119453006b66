"""
Logging setup.

The library only ever calls ``logging.getLogger(__name__)``; applications
that embed it call ``setup_logging()`` once at start-up.
"""

import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
LEVEL_ENV_VAR = "STORYWEAVE_LOG_LEVEL"


def setup_logging(level=None):
    """
    Configure the ``storyweave`` logger with a single console handler.

    Level precedence: explicit argument, then the STORYWEAVE_LOG_LEVEL
    environment variable, then INFO. Calling this twice replaces the
    handler instead of duplicating output.
    """
    resolved = level or os.getenv(LEVEL_ENV_VAR, "INFO")
    if isinstance(resolved, str):
        resolved = resolved.upper()

    package_logger = logging.getLogger("storyweave")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(console_handler)
    package_logger.setLevel(resolved)

    logging.captureWarnings(True)
    return package_logger
