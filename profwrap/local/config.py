import os
import time
import logging
from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Tuple

import profwrap.settings as default_settings
from profwrap.local.supervisor.process_utils import get_process_args

log = logging.getLogger(__name__)


class SessionConfig(NamedTuple):
    """
    Immutable profiling configuration, derived once at startup.

    When `enabled` is False no other field is consulted.
    """
    enabled: bool
    duration_ms: int = 0
    artifact_glob: str = default_settings.PROFILE_ARTIFACT_GLOB
    artifact_name: str = ""
    working_dir: Path = Path(".")
    profile_command: Tuple[str, ...] = ()
    report_command: Tuple[str, ...] = ()
    kill_grace_seconds: float = default_settings.PROFILE_KILL_GRACE_SECONDS
    keep_artifacts: bool = default_settings.PROFILE_KEEP_ARTIFACTS


def parse_duration(raw: Optional[str]) -> Optional[int]:
    """
    Parses the profiling duration from its environment value.

    :param raw: The raw environment value, possibly None or empty.
    :return: The duration in whole milliseconds, or None if profiling should stay off.
    """
    if raw is None or not raw.strip():
        return None
    try:
        duration = int(float(raw.strip()))
    except (ValueError, OverflowError):
        log.warning(f"Ignoring {default_settings.PROFILE_TIME_ENV_VAR}={raw!r}: not a number of milliseconds.")
        return None
    if duration < 0:
        log.warning(f"Ignoring {default_settings.PROFILE_TIME_ENV_VAR}={raw!r}: duration cannot be negative.")
        return None
    return duration


def make_artifact_name() -> str:
    """Returns a fresh artifact filename matching PROFILE_ARTIFACT_GLOB."""
    return f"{default_settings.PROFILE_ARTIFACT_PREFIX}-{os.getpid()}-{int(time.time() * 1000)}.prof"


def load_session_config(environ: Optional[Mapping[str, str]] = None, working_dir: Optional[Path] = None) -> SessionConfig:
    """
    Builds the SessionConfig from an environment mapping.

    This is the only place the profiling toggle is read. Everything below the
    entrypoint receives the resulting value as a parameter.

    :param environ: The environment to read from. Defaults to os.environ.
    :param working_dir: Directory the profiler writes into. Defaults to the CWD.
    :return SessionConfig: The configuration for this process lifetime.
    """
    environ = os.environ if environ is None else environ
    duration = parse_duration(environ.get(default_settings.PROFILE_TIME_ENV_VAR))
    if duration is None:
        return SessionConfig(enabled=False)

    artifact_name = make_artifact_name()
    return SessionConfig(
        enabled=True,
        duration_ms=duration,
        artifact_name=artifact_name,
        working_dir=Path(working_dir or Path.cwd()),
        profile_command=tuple(get_process_args("profiled_service", artifact_name=artifact_name)),
        report_command=tuple(get_process_args("post_processor")),
    )
