"""Configures application-wide logging."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

_HANDLER_TAG = "_qrbench_handler"


def get_app_data_dir() -> Path:
    """Returns the application data directory."""
    app_home = os.getenv("QRBENCH_HOME")
    if app_home:
        return Path(app_home)
    return Path.home() / ".qrbench"


def setup_logging(debug: bool = False):
    """Sets up logging to a rotating file in the app data dir and to stderr.

    The console only shows warnings and errors unless ``debug`` is set, so the
    report written to stdout stays clean.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(formatter)
    setattr(console, _HANDLER_TAG, True)

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console)

    log_dir = get_app_data_dir() / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_dir / "qrbench.log", maxBytes=10*1024*1024, backupCount=5
        )
    except OSError as e:
        logging.getLogger(__name__).warning("File logging disabled, cannot use %s: %s", log_dir, e)
    else:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        root_logger.addHandler(handler)

    # Keep third-party decoders quiet even in debug mode
    logging.getLogger("PIL").setLevel(logging.INFO)
