"""
profwrap: runs a long-lived service, optionally after a time-boxed CPU profile.
"""

__version__ = "0.1.0"
