"""Logging setup shared by the API entry point and tests"""
import logging
from typing import Union

from .config import LOG_LEVEL


def configure_logging(level: Union[int, str] = LOG_LEVEL, force: bool = False) -> None:
    """Initialise the root logger with a terse format.

    Pass ``force=True`` to reconfigure an already configured root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
