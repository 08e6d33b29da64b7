from typing import Sequence


class ProfwrapError(Exception):
    """Base class for errors raised during a profiling session."""


class SpawnError(ProfwrapError):
    """An external command could not be launched at all."""

    def __init__(self, name: str, args: Sequence[str], cause: OSError):
        self.name = name
        self.args_list = list(args)
        self.cause = cause
        super().__init__(f"Could not start '{name}' ({' '.join(self.args_list)}): {cause}")


class NotFoundError(ProfwrapError, FileNotFoundError):
    """No profile artifact matched the expected pattern."""

    def __init__(self, pattern: str, directory):
        self.pattern = pattern
        self.directory = directory
        super().__init__(f"No file matching '{pattern}' in '{directory}'")
