"""Utility module for common functions."""

from .file_handler import FileHandler
from .logger import get_logger, setup_logger

__all__ = ["FileHandler", "get_logger", "setup_logger"]
