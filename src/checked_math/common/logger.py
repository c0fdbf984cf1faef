"""Package-wide logger."""
import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(processName)s: %(message)s"

logger = logging.getLogger("checked_math")

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(os.environ.get("CHECKED_MATH_LOG_LEVEL", "INFO").upper())
