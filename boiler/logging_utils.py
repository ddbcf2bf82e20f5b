"""Logging setup shared by the web app and the build_assets script.

Locally, records go to stderr prefixed with the level and the source file
relative to the checkout. On Cloud Run they go to Google Cloud Logging.
"""

import logging
import os

import google.cloud.logging  # type: ignore[import]

# Directory containing the boiler package
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

LOCAL_LOG_FORMAT = "%(levelname)s:%(relativepath)s:%(lineno)d: %(message)s"


class RelativePathFilter(logging.Filter):
    """Sets record.relativepath, used by LOCAL_LOG_FORMAT."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.relativepath = os.path.relpath(
                os.path.normpath(record.pathname), PROJECT_ROOT
            )
        except ValueError:
            # Path on another drive
            record.relativepath = record.pathname
        return True


def _configure_local_handler(root_logger: logging.Logger) -> None:
    """Replace the root handlers with a single stderr handler."""
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOCAL_LOG_FORMAT))
    # Records from named loggers skip the root logger's filters
    handler.addFilter(RelativePathFilter())
    root_logger.addHandler(handler)


def setup_logging(level: int = logging.INFO) -> None:
    """Route log records for the current environment.

    Cloud Run sets K_SERVICE. When it is present, records are sent to Google
    Cloud Logging. Otherwise a local stream handler is installed.

    Args:
        level: Minimum level recorded by the root logger
    """
    root_logger = logging.getLogger()
    if not any(isinstance(f, RelativePathFilter) for f in root_logger.filters):
        root_logger.addFilter(RelativePathFilter())
    root_logger.setLevel(level)

    if "K_SERVICE" in os.environ:
        client = google.cloud.logging.Client()  # type: ignore[no-untyped-call]
        client.setup_logging(log_level=level)  # type: ignore[no-untyped-call]
        logging.info(f"Logging to Google Cloud Logging for {os.environ['K_SERVICE']}")
    else:
        _configure_local_handler(root_logger)
        logging.debug("Logging to stderr")
