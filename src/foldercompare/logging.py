"""Logging configuration for foldercompare."""

from __future__ import annotations

import logging


LOGGER_NAME = "foldercompare"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the foldercompare root logger.

    Verbose output adds the level and the emitting module, which helps when
    following a scan file by file.
    """
    if verbose:
        level = logging.DEBUG
        fmt = "%(levelname)s %(name)s: %(message)s"
    elif quiet:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.INFO
        fmt = "%(message)s"

    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
