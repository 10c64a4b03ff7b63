"""
Logger lookup shared by the store, repositories and CLI.

Every chainstore component asks get_logger() for its logger, so one
set_logger() call redirects connection state changes, classified Redis
failures and retry warnings to an application logger. Without one,
standard logging under the "chainstore" namespace is used and stays
silent until the application configures handlers.

Usage:
    # Use default logger
    from chainstore.core.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Message")

    # Set custom logger (e.g., structlog, loguru)
    from chainstore.core.logger import set_logger
    import structlog
    set_logger(structlog.get_logger())
"""

import logging
from typing import Any

# Global logger instance - defaults to standard logging
_custom_logger: Any = None


def set_logger(logger: Any) -> None:
    """
    Set a custom logger for all chainstore components.

    Args:
        logger: A logger instance (e.g., structlog logger, loguru logger)
                Must support debug/info/warning/error/exception methods
                and accept an ``extra`` keyword argument.

    Pass ``None`` to go back to standard logging.
    """
    global _custom_logger
    _custom_logger = logger


def get_logger(name: str = "chainstore") -> Any:
    """
    Get a logger instance.

    If a custom logger was set via set_logger(), returns that.
    Otherwise, returns a standard Python logger with the given name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        A logger instance
    """
    if _custom_logger is not None:
        return _custom_logger

    logger = logging.getLogger(name)

    # Ensure we have at least a NullHandler to avoid "No handler found" warnings
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
