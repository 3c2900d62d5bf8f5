"""Logging utilities for the LetterStream client.

The library only hands out named loggers; the level, handlers and format
belong to the application that embeds it, typically configured through
``logging.basicConfig()`` at its entry point.

Example:
    Typical usage in a module::

        from letterstream.logger import get_logger

        logger = get_logger("LetterQueue")
        logger.info("Queue drained")
"""

import logging


def get_logger(name: str = "LetterStream") -> logging.Logger:
    """Retrieve a logger from the ``letterstream`` hierarchy.

    Args:
        name: Component name appended to the ``letterstream`` namespace.
            Defaults to "LetterStream".

    Returns:
        A ``logging.Logger`` named ``letterstream.<name>``.
    """
    return logging.getLogger(f"letterstream.{name}")
