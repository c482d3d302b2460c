# Logging setup: module loggers everywhere, one handler on the package root.

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``careerrag`` logger (idempotent)."""
    logger = logging.getLogger("careerrag")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(h)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
