"""Tests for profwrap/local/supervisor/process_utils.py."""

import asyncio
import sys

import pytest

import profwrap.settings as default_settings
from profwrap.local.supervisor import process_utils
from profwrap.local.supervisor.errors import SpawnError
from profwrap.local.supervisor.process_utils import ACCUMULATE, FORWARD, get_process_args, spawn_process

from conftest import python_command

CHUNKED_WRITER = (
    "import sys, time\n"
    "for chunk in ('AB', 'CD', 'EF'):\n"
    "    sys.stdout.write(chunk)\n"
    "    sys.stdout.flush()\n"
    "    time.sleep(0.05)\n"
)


class TestSpawnProcess:
    """Tests for spawn_process and ChildProcess."""

    @pytest.mark.asyncio
    async def test_accumulates_chunks_in_arrival_order(self, tmp_path):
        """Chunks 'AB', 'CD', 'EF' become the single string 'ABCDEF'."""
        child = await spawn_process("post_processor", python_command(CHUNKED_WRITER), ACCUMULATE, cwd=tmp_path)

        result = await child.wait()

        assert result.output == "ABCDEF"
        assert result.returncode == 0
        assert result.signal is None
        assert not child.is_running

    @pytest.mark.asyncio
    async def test_forwards_stdout_and_stderr_to_sinks(self, tmp_path):
        out, err = [], []
        source = "import sys; print('to-out'); print('to-err', file=sys.stderr)"
        child = await spawn_process(
            "echo", python_command(source), FORWARD, cwd=tmp_path,
            stdout_sink=out.append, stderr_sink=err.append,
        )

        result = await child.wait()

        assert "".join(out).strip() == "to-out"
        assert "".join(err).strip() == "to-err"
        assert result.output is None

    @pytest.mark.asyncio
    async def test_forward_defaults_to_supervisor_streams(self, tmp_path, capsys):
        child = await spawn_process("echo", python_command("print('inherited')"), FORWARD, cwd=tmp_path)
        await child.wait()

        assert "inherited" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_accumulate_still_forwards_stderr(self, tmp_path):
        err = []
        source = "import sys; sys.stdout.write('report'); sys.stderr.write('warning')"
        child = await spawn_process("post_processor", python_command(source), ACCUMULATE, cwd=tmp_path, stderr_sink=err.append)

        result = await child.wait()

        assert result.output == "report"
        assert "".join(err) == "warning"

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_reported_not_raised(self, tmp_path):
        child = await spawn_process("failing", python_command("import sys; sys.exit(3)"), ACCUMULATE, cwd=tmp_path)

        result = await child.wait()

        assert result.returncode == 3
        assert result.output == ""

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    async def test_signal_exit_is_reported(self, tmp_path):
        source = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"
        child = await spawn_process("signalled", python_command(source), FORWARD, cwd=tmp_path)

        result = await child.wait()

        assert result.returncode < 0
        assert result.signal == "SIGTERM"

    @pytest.mark.asyncio
    async def test_wait_resolves_once_for_every_waiter(self, tmp_path):
        child = await spawn_process("echo", python_command("print('x')"), ACCUMULATE, cwd=tmp_path)

        first, second = await asyncio.gather(child.wait(), child.wait())

        assert first is second
        assert child.result is first

    @pytest.mark.asyncio
    async def test_missing_binary_raises_spawn_error(self, tmp_path):
        with pytest.raises(SpawnError) as excinfo:
            await spawn_process("post_processor", [str(tmp_path / "no-such-binary")], ACCUMULATE)

        assert excinfo.value.name == "post_processor"
        assert isinstance(excinfo.value.cause, OSError)

    @pytest.mark.asyncio
    async def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="Unknown output policy"):
            await spawn_process("x", python_command("pass"), "tee")

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    async def test_interrupt_stops_child(self, tmp_path):
        source = "import sys, time\nprint('up', flush=True)\nwhile True: time.sleep(0.05)"
        out = []
        child = await spawn_process("loop", python_command(source), FORWARD, cwd=tmp_path, stdout_sink=out.append, stderr_sink=lambda _: None)
        await asyncio.sleep(0.3)

        assert child.interrupt() is True
        result = await asyncio.wait_for(child.wait(), timeout=10)

        assert result.returncode != 0
        assert child.interrupt() is False
        assert child.kill() is False


class TestGetProcessArgs:
    """Tests for get_process_args."""

    def test_profiled_service_wraps_service_command_with_cprofile(self):
        service = get_process_args("service")
        profiled = get_process_args("profiled_service", artifact_name="isolate-1.prof")

        assert profiled[:5] == [default_settings.PYTHON_EXECUTABLE, "-m", "cProfile", "-o", "isolate-1.prof"]
        assert profiled[5:] == service[1:]

    def test_profiled_service_requires_artifact_name(self):
        with pytest.raises(ValueError, match="artifact name"):
            get_process_args("profiled_service")

    def test_post_processor_runs_report_module(self):
        assert get_process_args("post_processor")[-1] == default_settings.REPORT_MODULE

    def test_unknown_process_name(self):
        with pytest.raises(ValueError, match="Unknown process name"):
            get_process_args("nginx")


class TestChildEnvironment:
    """Tests for get_child_environment."""

    def test_python_output_is_unbuffered(self):
        env = process_utils.get_child_environment({"EXTRA": "1"})

        assert env["PYTHONUNBUFFERED"] == "1"
        assert env["EXTRA"] == "1"
