"""
The Supervisor package.
Runs the wrapped service, optionally after one time-boxed profiling session.

This package contains the profiling session state machine and its helper
modules, which together run one profiled child for a bounded window and
turn the artifact it leaves behind into a report.
"""
from .errors import NotFoundError, ProfwrapError, SpawnError
from .session import ProfileSession
from .startup import run_supervisor

__all__ = ['NotFoundError', 'ProfileSession', 'ProfwrapError', 'SpawnError', 'run_supervisor']
