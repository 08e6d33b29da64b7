"""
Local package for the profwrap supervisor.

This package provides the startup configuration, the supervisor itself and
the script entry points for the child processes it spawns.
"""

from .config import SessionConfig, load_session_config

__all__ = ["SessionConfig", "load_session_config"]
