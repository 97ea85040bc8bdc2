"""
Script executor: materializes an install script and runs it under a shell,
streaming its output line by line.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ProcessError, ScriptPersistenceError
from ..models.tool import ToolSpec
from ..utils.logging import OutputSink, LoggingOutputSink, timestamp_line
from .composer import ScriptComposer

# StreamReader buffer limit; longer lines are forwarded in chunks of this size.
STREAM_LIMIT = 1024 * 1024


class ScriptExecutor:
    """Writes install scripts to disk and runs them as subprocesses."""

    def __init__(self,
                 script_dir: Path,
                 shell: str = "/bin/bash",
                 sink: Optional[OutputSink] = None,
                 timeout: Optional[float] = None,
                 kill_grace_seconds: float = 5.0,
                 keep_scripts: bool = False):
        """
        Initialize the executor.

        Args:
            script_dir: Directory generated scripts are written to
            shell: Interpreter the script is run with
            sink: Receives every timestamped output line
            timeout: Optional per-script timeout in seconds
            kill_grace_seconds: Wait after terminate before killing
            keep_scripts: Leave generated scripts on disk after the run
        """
        self.logger = logging.getLogger(__name__)
        self.script_dir = Path(script_dir)
        self.shell = shell
        self.sink = sink or LoggingOutputSink()
        self.timeout = timeout
        self.kill_grace_seconds = kill_grace_seconds
        self.keep_scripts = keep_scripts

    def write_script(self, lines: List[str], tool: ToolSpec) -> Path:
        """Write the script with a unique name and owner-only exec permissions."""
        script_path = self.script_dir / f"install_script_{uuid.uuid4().hex}.sh"
        try:
            self.script_dir.mkdir(parents=True, exist_ok=True)
            script_path.write_text(ScriptComposer.render(lines))
            script_path.chmod(0o700)
        except OSError as e:
            raise ScriptPersistenceError(tool.name, tool.version, f"write script file error: {e}") from e
        return script_path

    async def run(self, lines: List[str], workdir: Path, env: Dict[str, str], tool: ToolSpec) -> int:
        """
        Run the tool's install script to completion.

        Returns only after the subprocess has exited and both output streams
        have been drained.

        Raises:
            ScriptPersistenceError: the script could not be written
            ProcessError: spawn failure, timeout or non-zero exit
        """
        script_path = self.write_script(lines, tool)
        try:
            exit_code = await self._execute(script_path, workdir, env, tool)
        finally:
            if not self.keep_scripts:
                script_path.unlink(missing_ok=True)

        if exit_code != 0:
            raise ProcessError(
                tool.name, tool.version,
                f"install script exited with code {exit_code}",
                exit_code=exit_code,
            )
        return exit_code

    async def _execute(self, script_path: Path, workdir: Path, env: Dict[str, str], tool: ToolSpec) -> int:
        try:
            process = await asyncio.create_subprocess_exec(
                self.shell, str(script_path),
                cwd=str(workdir),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise ProcessError(tool.name, tool.version, f"spawn {self.shell} failed: {e}") from e

        try:
            await asyncio.wait_for(self._communicate(process), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._terminate(process)
            raise ProcessError(
                tool.name, tool.version,
                f"install script timed out after {self.timeout} seconds",
            )
        except BaseException:
            await self._terminate(process)
            raise

        return process.returncode

    async def _communicate(self, process: asyncio.subprocess.Process) -> None:
        tasks = [
            asyncio.ensure_future(self._drain(process.stdout)),
            asyncio.ensure_future(self._drain(process.stderr)),
            asyncio.ensure_future(process.wait()),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _drain(self, stream: asyncio.StreamReader) -> None:
        while True:
            try:
                raw = await stream.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                if e.partial:
                    self._emit(e.partial)
                return
            except asyncio.LimitOverrunError:
                # No newline within the buffer limit, e.g. \r-only progress bars.
                raw = await stream.read(STREAM_LIMIT)
            self._emit(raw)

    def _emit(self, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        self.sink(timestamp_line(line))

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
            except asyncio.TimeoutError:
                self.logger.warning(f"Process {process.pid} ignored SIGTERM, killing")
                process.kill()
                await process.wait()
        except ProcessLookupError:
            pass
