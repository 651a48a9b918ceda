"""Logging setup for the household service."""

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Driver command and heartbeat events drown out service logs below WARNING.
_QUIET_LOGGERS = ("pymongo",)


def configure_logging(level: str = "INFO") -> None:
    """Route ``household.*`` records to stderr at ``level``.

    The handler is attached once; later calls only change the level.
    """
    logger = logging.getLogger("household")
    logger.setLevel(level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
