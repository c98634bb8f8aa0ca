"""
Structured logger for the symptom checker.
"""
import logging
import sys
from typing import Optional

ROOT_LOGGER = "symptom_checker"


def setup_logger(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the project logger once with a stdout handler.
    Passing a level later only changes the level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if level:
        logger.setLevel(level.upper())

    if logger.handlers:
        return logger

    if not level:
        logger.setLevel(logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | [%(name)s] | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    setup_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
