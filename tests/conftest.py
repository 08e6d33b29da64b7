"""Root pytest configuration and shared fixtures."""

import asyncio
import os
import sys
from pathlib import Path

import pytest

from profwrap.local.config import SessionConfig
from profwrap.local.supervisor.errors import SpawnError
from profwrap.local.supervisor.process_utils import ProcessResult

# Keep a developer's .env from changing defaults under test.
os.environ.pop("DEBUG_PROFILE_TIME", None)

PYTHON = sys.executable


def python_command(source: str):
    """Returns an argument vector running `source` with the current interpreter."""
    return (PYTHON, "-c", source)


class FakeChild:
    """In-memory stand-in for ChildProcess that records what happens to it."""

    def __init__(self, name, events, exit_on_interrupt=True):
        self.name = name
        self.pid = 4242
        self.events = events
        self.exit_on_interrupt = exit_on_interrupt
        self.interrupts = 0
        self.kills = 0
        self._done = asyncio.get_running_loop().create_future()

    @property
    def is_running(self):
        return not self._done.done()

    def finish(self, result):
        if not self._done.done():
            self.events.append(("closed", self.name))
            self._done.set_result(result)

    def interrupt(self):
        self.interrupts += 1
        self.events.append(("interrupt", self.name))
        if self.exit_on_interrupt:
            self.finish(ProcessResult(-2, "SIGINT", None))
        return True

    def kill(self):
        self.kills += 1
        self.events.append(("kill", self.name))
        self.finish(ProcessResult(-9, "SIGKILL", None))
        return True

    async def wait(self):
        return await asyncio.shield(self._done)


class FakeSpawner:
    """Spawner double: the profiled child runs until interrupted, the post-processor answers at once."""

    def __init__(self, report="REPORT-OK", fail_on=(), exit_on_interrupt=True):
        self.report = report
        self.fail_on = set(fail_on)
        self.exit_on_interrupt = exit_on_interrupt
        self.events = []
        self.calls = []
        self.children = {}

    async def __call__(self, name, args, policy, cwd=None, **kwargs):
        self.events.append(("spawn", name))
        self.calls.append((name, list(args), policy, cwd))
        if name in self.fail_on:
            raise SpawnError(name, args, FileNotFoundError(2, "No such file or directory"))

        child = FakeChild(name, self.events, exit_on_interrupt=self.exit_on_interrupt)
        self.children[name] = child
        if name == "post_processor":
            child.finish(ProcessResult(0, None, self.report))
        return child


@pytest.fixture
def fake_spawner():
    return FakeSpawner()


@pytest.fixture
def session_config(tmp_path: Path) -> SessionConfig:
    return SessionConfig(
        enabled=True,
        duration_ms=10,
        artifact_glob="isolate-*",
        artifact_name="isolate-1.log",
        working_dir=tmp_path,
        profile_command=("profiled-service",),
        report_command=("post-processor",),
        kill_grace_seconds=0,
        keep_artifacts=True,
    )


def write_artifact(directory: Path, name: str, mtime: float, content: str = "trace") -> Path:
    path = directory / name
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path
