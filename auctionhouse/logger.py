"""Logger factory shared by services and routers."""

import logging
import sys

from auctionhouse.config import config

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``auctionhouse`` namespace.

    The console handler is attached once to the namespace root, so repeated
    calls never duplicate output.
    """
    root = logging.getLogger("auctionhouse")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        root.addHandler(handler)
        root.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
        root.propagate = False

    if name == "auctionhouse" or name.startswith("auctionhouse."):
        return logging.getLogger(name)
    return logging.getLogger(f"auctionhouse.{name}")
