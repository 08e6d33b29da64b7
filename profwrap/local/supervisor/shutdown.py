import asyncio
import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .process_utils import ChildProcess

log = logging.getLogger(__name__)


class TimedTerminator:
    """
    Requests graceful termination of a child once a duration has elapsed.

    The terminator only issues the request. The child's own completion
    notification (`ChildProcess.wait()`) is what tells the caller it is gone.
    If `kill_grace_seconds` is positive and the child is still alive that long
    after the interrupt, it is killed.
    """

    def __init__(self, child: "ChildProcess", duration_ms: int, kill_grace_seconds: float = 0) -> None:
        self.child = child
        self.duration_ms = max(int(duration_ms), 0)
        self.kill_grace_seconds = kill_grace_seconds
        self.fired = False
        self.escalated = False
        self._handle: Optional[asyncio.TimerHandle] = None
        self._kill_handle: Optional[asyncio.TimerHandle] = None

    def arm(self) -> None:
        """Schedules the interrupt. A zero duration fires on the next loop iteration."""
        if self._handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.duration_ms / 1000, self._fire)
        log.debug(f"Termination of '{self.child.name}' scheduled in {self.duration_ms} ms.")

    def cancel(self) -> None:
        """Drops any pending timers."""
        for handle in (self._handle, self._kill_handle):
            if handle is not None:
                handle.cancel()

    def _fire(self) -> None:
        self.fired = True
        if not self.child.is_running:
            log.debug(f"'{self.child.name}' already exited, nothing to terminate.")
            return

        log.info(f"Profiling window elapsed. Interrupting {self.child.name} (PID {self.child.pid}).")
        if not self.child.interrupt():
            return

        if self.kill_grace_seconds and self.kill_grace_seconds > 0:
            loop = asyncio.get_running_loop()
            self._kill_handle = loop.call_later(self.kill_grace_seconds, self._escalate)

    def _escalate(self) -> None:
        if not self.child.is_running:
            return
        log.warning(
            f"{self.child.name} (PID {self.child.pid}) did not stop within "
            f"{self.kill_grace_seconds}s of the interrupt. Killing it."
        )
        self.escalated = self.child.kill()
