import logging
import os
import threading

TRACE = 5

logging.addLevelName(TRACE, "TRACE")

ROOT_LOGGER_NAME = "keyedmap"

_configure_lock = threading.Lock()
_configured = False


def _configure_root(root: logging.Logger) -> None:
    root.addHandler(logging.NullHandler())
    level = os.getenv("KEYEDMAP_LOGGING_LEVEL")
    if level:
        root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Return the logger for the keyedmap module `name`.

    The first call prepares the `keyedmap` logger: it gets a `NullHandler`, so an
    application which never configures logging sees no output, and takes its level
    from `KEYEDMAP_LOGGING_LEVEL` if that is set. Accessor tracing is logged at
    `TRACE`, below `DEBUG`, so it must be requested explicitly."""
    global _configured

    with _configure_lock:
        if not _configured:
            _configure_root(logging.getLogger(ROOT_LOGGER_NAME))
            _configured = True
    return logging.getLogger(name)
