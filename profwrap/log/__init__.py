"""
Logging module for the application.
This module provides the console logging setup shared by the supervisor and the wrapped service.
"""

from .setup import MainFormatter, setup_logging

__all__ = ["MainFormatter", "setup_logging"]
