"""Just a logger."""

import logging

from rich.logging import RichHandler

from agecypher.util.config import LOGGING_LEVEL

LOGGER = logging.getLogger("agecypher")
LOGGER.setLevel(getattr(logging, LOGGING_LEVEL))
LOGGER.addHandler(RichHandler())
