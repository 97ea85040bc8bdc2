"""Tests for install script execution."""

import asyncio
import os
import re
import stat

import pytest

from provisioner.core.composer import ScriptComposer
from provisioner.core.executor import STREAM_LIMIT, ScriptExecutor
from provisioner.errors import ProcessError, ScriptPersistenceError

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}   ")

BASE_ENV = {"PATH": os.environ.get("PATH", "/usr/bin:/bin")}


@pytest.fixture
def executor(tmp_path, sink):
    return ScriptExecutor(script_dir=tmp_path / "scripts", sink=sink, kill_grace_seconds=1.0)


def scripts_left(tmp_path):
    return list((tmp_path / "scripts").glob("install_script_*.sh"))


class TestWriteScript:

    def test_owner_executable(self, executor, make_tool):
        path = executor.write_script(["set -ex", "echo hi"], make_tool())
        assert path.read_text() == ScriptComposer.render(["set -ex", "echo hi"])
        assert stat.S_IMODE(path.stat().st_mode) == 0o700

    def test_unique_names(self, executor, make_tool):
        first = executor.write_script(["true"], make_tool())
        second = executor.write_script(["true"], make_tool())
        assert first != second

    def test_unwritable_dir(self, tmp_path, make_tool):
        blocker = tmp_path / "file"
        blocker.write_text("")
        executor = ScriptExecutor(script_dir=blocker / "scripts")
        with pytest.raises(ScriptPersistenceError, match="write script file error"):
            executor.write_script(["true"], make_tool())


class TestRun:

    async def test_streams_timestamped_stdout(self, executor, sink, tmp_path, make_tool):
        code = await executor.run(["set -ex", "echo hello"], tmp_path, BASE_ENV, make_tool())
        assert code == 0
        assert any(line.endswith("hello") for line in sink.lines)
        assert all(TIMESTAMP.match(line) for line in sink.lines)

    async def test_stderr_captured(self, executor, sink, tmp_path, make_tool):
        await executor.run(["echo oops >&2"], tmp_path, BASE_ENV, make_tool())
        assert any(line.endswith("oops") for line in sink.lines)

    async def test_command_echo_from_header(self, executor, sink, tmp_path, make_tool):
        # set -x traces each command on stderr
        await executor.run(["set -ex", "echo traced"], tmp_path, BASE_ENV, make_tool())
        assert any(line.endswith("+ echo traced") for line in sink.lines)

    async def test_line_order_within_stream(self, executor, sink, tmp_path, make_tool):
        await executor.run(["for i in $(seq 1 200); do echo line-$i; done"], tmp_path, BASE_ENV, make_tool())
        numbers = [int(line.rsplit("-", 1)[1]) for line in sink.lines if "line-" in line]
        assert numbers == list(range(1, 201))

    async def test_all_output_drained_before_return(self, executor, sink, tmp_path, make_tool):
        await executor.run(["echo last-line"], tmp_path, BASE_ENV, make_tool())
        assert sink.lines[-1].endswith("last-line")

    async def test_line_longer_than_stream_limit(self, executor, sink, tmp_path, make_tool):
        size = 2 * STREAM_LIMIT
        code = await executor.run(
            [f"head -c {size} /dev/zero | tr '\\0' a", "echo", "echo done"],
            tmp_path, BASE_ENV, make_tool(),
        )
        assert code == 0
        assert sum(line.count("a") for line in sink.lines) == size
        assert sink.lines[-1].endswith("done")

    async def test_sink_failure_stops_script(self, tmp_path, make_tool):
        def broken_sink(line):
            raise RuntimeError("sink closed")

        executor = ScriptExecutor(script_dir=tmp_path / "scripts", sink=broken_sink, kill_grace_seconds=1.0)
        with pytest.raises(RuntimeError, match="sink closed"):
            await executor.run(["echo first", "exec sleep 30"], tmp_path, BASE_ENV, make_tool())
        assert scripts_left(tmp_path) == []

    async def test_env_and_workdir(self, executor, sink, tmp_path, make_tool):
        workdir = tmp_path / "ws"
        workdir.mkdir()
        env = {**BASE_ENV, "GREETING": "bonjour"}
        await executor.run(['echo "$GREETING"', "pwd"], workdir, env, make_tool())
        assert any(line.endswith("bonjour") for line in sink.lines)
        assert any(line.endswith(str(workdir)) for line in sink.lines)

    async def test_non_zero_exit(self, executor, tmp_path, make_tool):
        with pytest.raises(ProcessError) as exc_info:
            await executor.run(["set -ex", "exit 3"], tmp_path, BASE_ENV, make_tool(name="maven"))
        assert exc_info.value.exit_code == 3
        assert "maven" in str(exc_info.value)

    async def test_header_stops_on_first_failure(self, executor, sink, tmp_path, make_tool):
        with pytest.raises(ProcessError):
            await executor.run(["set -ex", "false", "echo unreachable"], tmp_path, BASE_ENV, make_tool())
        assert not any(line.endswith("   unreachable") for line in sink.lines)

    async def test_spawn_failure(self, tmp_path, sink, make_tool):
        executor = ScriptExecutor(script_dir=tmp_path / "scripts", shell=str(tmp_path / "no-such-shell"), sink=sink)
        with pytest.raises(ProcessError, match="spawn"):
            await executor.run(["true"], tmp_path, BASE_ENV, make_tool())
        assert scripts_left(tmp_path) == []


class TestScriptCleanup:

    async def test_removed_after_success(self, executor, tmp_path, make_tool):
        await executor.run(["true"], tmp_path, BASE_ENV, make_tool())
        assert scripts_left(tmp_path) == []

    async def test_removed_after_failure(self, executor, tmp_path, make_tool):
        with pytest.raises(ProcessError):
            await executor.run(["exit 1"], tmp_path, BASE_ENV, make_tool())
        assert scripts_left(tmp_path) == []

    async def test_kept_when_configured(self, tmp_path, sink, make_tool):
        executor = ScriptExecutor(script_dir=tmp_path / "scripts", sink=sink, keep_scripts=True)
        await executor.run(["true"], tmp_path, BASE_ENV, make_tool())
        assert len(scripts_left(tmp_path)) == 1


class TestTimeoutAndCancellation:

    async def test_timeout_terminates_script(self, tmp_path, sink, make_tool):
        executor = ScriptExecutor(script_dir=tmp_path / "scripts", sink=sink,
                                  timeout=0.5, kill_grace_seconds=1.0)
        with pytest.raises(ProcessError, match="timed out"):
            await executor.run(["exec sleep 30"], tmp_path, BASE_ENV, make_tool())
        assert scripts_left(tmp_path) == []

    async def test_cancellation_terminates_script(self, executor, tmp_path, make_tool):
        task = asyncio.create_task(executor.run(["exec sleep 30"], tmp_path, BASE_ENV, make_tool()))
        await asyncio.sleep(0.5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert scripts_left(tmp_path) == []
