"""Utility modules for the Isolation Kernel clustering pipeline."""

from .session import SessionManager
from .logger import setup_logger, close_logger
from .config import load_config

__all__ = ['SessionManager', 'setup_logger', 'close_logger', 'load_config']
