import logging
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from . import artifacts, process_utils
from .errors import NotFoundError, SpawnError
from .shutdown import TimedTerminator

if TYPE_CHECKING:
    from profwrap.local.config import SessionConfig

log = logging.getLogger(__name__)
report_log = logging.getLogger("proc.profile_report")

#* --- Session States ---
IDLE = "idle"
SPAWNING = "spawning"
PROFILING = "profiling"
TERMINATING = "terminating"
LOCATING = "locating"
POST_PROCESSING = "post_processing"
REPORTING = "reporting"
DONE = "done"
FAILED = "failed"

TERMINAL_STATES = (DONE, FAILED)

Spawner = Callable[..., Awaitable[process_utils.ChildProcess]]


class ProfileSession:
    """
    Runs one profile -> terminate -> locate -> report cycle.

    Errors inside the session never escape `run()`: they are logged as
    warnings and the session ends in FAILED with no report.
    """

    def __init__(self, config: "SessionConfig", spawn: Optional[Spawner] = None) -> None:
        self.config = config
        self.spawn = spawn or process_utils.spawn_process
        self.state = IDLE
        self.history: List[str] = [IDLE]
        self.artifact: Optional[Path] = None
        self.report: Optional[str] = None
        self.profiled_result: Optional[process_utils.ProcessResult] = None
        self.terminator: Optional[TimedTerminator] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def _transition(self, state: str) -> None:
        log.debug(f"Profile session: {self.state} -> {state}")
        self.state = state
        self.history.append(state)

    def _fail(self, message: str) -> None:
        log.warning(message)
        self._transition(FAILED)

    async def run(self) -> Optional[str]:
        """
        Drives the session to DONE or FAILED.

        :return: The captured report, or None if the session failed.
        """
        if self.state != IDLE:
            raise RuntimeError(f"Profile session already ran (state: {self.state}).")

        if not await self._profile():
            return None

        self._transition(LOCATING)
        log.info("Finding latest profile...")
        try:
            self.artifact = artifacts.find_latest_artifact(self.config.artifact_glob, self.config.working_dir)
        except NotFoundError as e:
            self._fail(f"Error processing profile: {e}")
            return None
        except OSError as e:
            self._fail(f"Error processing profile: could not scan '{self.config.working_dir}': {e}")
            return None

        report = await self._post_process(self.artifact)
        if report is None:
            return None

        self._transition(REPORTING)
        self.report = report
        emit_report(report)
        if not self.config.keep_artifacts:
            artifacts.remove_artifact(self.artifact)

        self._transition(DONE)
        return report

    async def _profile(self) -> bool:
        """Runs the profiled child until its completion notification arrives."""
        self._transition(SPAWNING)
        try:
            child = await self.spawn(
                "profiled_service",
                self.config.profile_command,
                process_utils.FORWARD,
                cwd=self.config.working_dir,
            )
        except SpawnError as e:
            self._fail(f"Error starting profiled service: {e}")
            return False

        self._transition(PROFILING)
        self.terminator = TimedTerminator(child, self.config.duration_ms, self.config.kill_grace_seconds)
        self.terminator.arm()
        try:
            # The session advances on the child's exit, not on the timer.
            self.profiled_result = await child.wait()
        finally:
            self.terminator.cancel()

        self._transition(TERMINATING)
        log.info(
            f"Profiled service exited (code: {self.profiled_result.returncode}, "
            f"signal: {self.profiled_result.signal})."
        )
        return True

    async def _post_process(self, artifact: Path) -> Optional[str]:
        self._transition(POST_PROCESSING)
        log.info(f"Processing profile... {artifact}")
        try:
            processor = await self.spawn(
                "post_processor",
                [*self.config.report_command, str(artifact)],
                process_utils.ACCUMULATE,
                cwd=self.config.working_dir,
            )
        except SpawnError as e:
            self._fail(f"Error processing profile: {e}")
            return None

        result = await processor.wait()
        if result.returncode != 0:
            log.debug(f"Post-processor exited with code {result.returncode}; reporting its output as-is.")
        return result.output or ""


def emit_report(report: str) -> None:
    """Logs the captured report between start and end banners."""
    log.info("=" * 20 + " Profile Output Start " + "=" * 20)
    report_log.info(report.rstrip("\n"))
    log.info("=" * 20 + " Profile Output End " + "=" * 20)
