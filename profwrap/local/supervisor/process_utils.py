import os
import sys
import codecs
import psutil
import signal
import asyncio
import logging
import subprocess
from collections import namedtuple
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import profwrap.settings as default_settings
from .errors import SpawnError

log = logging.getLogger(__name__)

#* --- Output Policies ---
FORWARD = "forward"          # stream to the supervisor's own stdout/stderr
ACCUMULATE = "accumulate"    # buffer stdout into ProcessResult.output

CHUNK_SIZE = 64 * 1024

ProcessResult = namedtuple('ProcessResult', ['returncode', 'signal', 'output'])

Sink = Callable[[str], None]


#* --- Sinks ---
def _stream_writer(stream_name: str) -> Sink:
    """
    Returns a sink writing to sys.stdout or sys.stderr.

    The stream is looked up on every write so redirected streams are honoured.
    """
    def write(text: str) -> None:
        stream = getattr(sys, stream_name)
        stream.write(text)
        stream.flush()
    return write


#* --- Process Creation ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns platform-specific creation flags so the child can receive a console interrupt."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {}


def get_interrupt_signal() -> int:
    """Returns the platform's graceful interrupt signal."""
    return signal.CTRL_BREAK_EVENT if sys.platform == "win32" else signal.SIGINT


def get_child_environment(extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Returns the environment for child processes, with Python output unbuffered."""
    env = dict(os.environ)
    env["PYTHONUNBUFFERED"] = "1"
    if extra:
        env.update(extra)
    return env


def get_process_args(process_name: str, artifact_name: Optional[str] = None) -> List[str]:
    """
    Returns the command-line arguments for a specific child process.

    'service' is the normal way to run the wrapped service; 'profiled_service'
    is the same command with the interpreter's profiler in front of it.
    'post_processor' is completed with the artifact path by the caller.

    :param process_name: The logical name of the process.
    :param artifact_name: Output file for the profiler. Required for 'profiled_service'.
    :return list: The command arguments.
    :raises ValueError: If the process name is unknown.
    """
    python = default_settings.PYTHON_EXECUTABLE
    service_args = ["-m", default_settings.SERVICE_MODULE]

    if process_name == "service":
        return [python, *service_args]
    if process_name == "profiled_service":
        if not artifact_name:
            raise ValueError("An artifact name is required to profile the service.")
        return [python, "-m", "cProfile", "-o", artifact_name, *service_args]
    if process_name == "post_processor":
        return [python, "-m", default_settings.REPORT_MODULE]

    raise ValueError(f"Unknown process name '{process_name}'. No arguments defined.")


class ChildProcess:
    """
    Handle for one spawned external command.

    Output is pumped concurrently by asyncio tasks. `wait()` resolves exactly
    once, after the process has exited and both pipes have been drained.
    """

    def __init__(self, name: str, args: Sequence[str], process: asyncio.subprocess.Process, policy: str,
                 stdout_sink: Optional[Sink] = None, stderr_sink: Optional[Sink] = None) -> None:
        self.name = name
        self.args = list(args)
        self.process = process
        self.pid = process.pid
        self.policy = policy
        self._chunks: List[bytes] = []

        if policy == ACCUMULATE:
            stdout_task = self._collect(process.stdout)
        else:
            stdout_task = self._forward(process.stdout, stdout_sink or _stream_writer("stdout"))
        stderr_task = self._forward(process.stderr, stderr_sink or _stream_writer("stderr"))

        loop = asyncio.get_running_loop()
        self._pumps = [loop.create_task(stdout_task), loop.create_task(stderr_task)]
        self._closed = loop.create_task(self._wait_closed())

    def __repr__(self) -> str:
        return f"<ChildProcess {self.name} pid={self.pid} running={self.is_running}>"

    @property
    def is_running(self) -> bool:
        return self.process.returncode is None

    @property
    def result(self) -> Optional[ProcessResult]:
        """The final result, or None while the child is still alive or its pipes are open."""
        if not self._closed.done() or self._closed.cancelled():
            return None
        return self._closed.result()

    async def _collect(self, stream: asyncio.StreamReader) -> None:
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                break
            self._chunks.append(chunk)

    async def _forward(self, stream: asyncio.StreamReader, sink: Sink) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                sink(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            sink(tail)

    async def _wait_closed(self) -> ProcessResult:
        returncode = await self.process.wait()
        for outcome in await asyncio.gather(*self._pumps, return_exceptions=True):
            if isinstance(outcome, Exception):
                log.warning(f"Output pump for '{self.name}' failed: {outcome}")

        exit_signal = None
        if returncode < 0:
            try:
                exit_signal = signal.Signals(-returncode).name
            except ValueError:
                exit_signal = str(-returncode)

        output = b"".join(self._chunks).decode("utf-8", errors="replace") if self.policy == ACCUMULATE else None
        log.debug(f"Process '{self.name}' (PID {self.pid}) closed with code {returncode}, signal {exit_signal}.")
        return ProcessResult(returncode, exit_signal, output)

    async def wait(self) -> ProcessResult:
        """Suspends until the child has terminated and returns its result."""
        return await asyncio.shield(self._closed)

    def send_signal(self, sig: int) -> bool:
        """
        Sends a signal to the child if it is still running.

        :return: True if the signal was delivered, False if the child was already gone.
        """
        if not self.is_running:
            return False
        try:
            psutil.Process(self.pid).send_signal(sig)
            return True
        except psutil.NoSuchProcess:
            log.debug(f"Process '{self.name}' (PID {self.pid}) no longer exists, skipping signal {sig}.")
            return False

    def interrupt(self) -> bool:
        """Requests graceful termination (SIGINT, or CTRL_BREAK on Windows)."""
        return self.send_signal(get_interrupt_signal())

    def kill(self) -> bool:
        """Forcefully kills the child."""
        if not self.is_running:
            return False
        try:
            psutil.Process(self.pid).kill()
            return True
        except psutil.NoSuchProcess:
            log.debug(f"Process '{self.name}' (PID {self.pid}) no longer exists, skipping kill.")
            return False


async def spawn_process(name: str, args: Sequence[str], policy: str = FORWARD,
                        cwd: Optional[Union[str, os.PathLike]] = None,
                        env: Optional[Mapping[str, str]] = None,
                        stdout_sink: Optional[Sink] = None,
                        stderr_sink: Optional[Sink] = None) -> ChildProcess:
    """
    Launches an external command without waiting for it.

    A non-zero exit status is not an error here; it is reported through
    `ChildProcess.wait()` for the caller to interpret.

    :param name: Logical name of the process, used in logs.
    :param args: The full argument vector, command first.
    :param policy: FORWARD or ACCUMULATE.
    :param cwd: Working directory for the child.
    :param env: Environment for the child. Defaults to get_child_environment().
    :return ChildProcess: A handle whose wait() resolves when the child terminates.
    :raises SpawnError: If the command cannot be launched.
    """
    if policy not in (FORWARD, ACCUMULATE):
        raise ValueError(f"Unknown output policy '{policy}'.")
    if not args:
        raise ValueError(f"No command given for process '{name}'.")

    log.info(f"Starting process: {name}...")
    log.debug(f"Command for '{name}': {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else get_child_environment(),
            **_get_popen_creation_flags(),
        )
    except OSError as e:
        raise SpawnError(name, args, e) from e

    log.info(f"{name.capitalize()} started with PID: {process.pid}")
    return ChildProcess(name, args, process, policy, stdout_sink=stdout_sink, stderr_sink=stderr_sink)
