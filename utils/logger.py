"""
Script contains logger for the LeekDuck scraper
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(name="leekduck")


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger once for command line runs."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )
    # urllib3 retries are noisy at debug level
    logging.getLogger("urllib3").setLevel(logging.WARNING)
