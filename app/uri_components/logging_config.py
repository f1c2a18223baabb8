"""
Logging helpers shared by the uri component modules.

Every module logs through ``logging.getLogger(__name__)``, so records land
under the ``uri_components`` logger. The library installs no output handler;
applications configure handlers and formatters for that logger themselves.
Context travels on each record as an ``extra_fields`` dict.
"""

import logging

LIBRARY_LOGGER = "uri_components"

# Keeps "No handlers could be found" style fallbacks quiet for applications
# that never configure logging.
logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())


def log_with_context(
    logger: logging.Logger, level: int, message: str, **kwargs
) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (e.g., logging.DEBUG)
        message: Log message
        **kwargs: Fields stored on the record as ``extra_fields``
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": kwargs})
