"""Shared infrastructure: logging and environment access."""

from .env import EnvManager
from .logger import get_logger, set_logger

__all__ = [
    "EnvManager",
    "get_logger",
    "set_logger",
]
