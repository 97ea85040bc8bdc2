"""
Install orchestrator: installs the declared tools one after another and stops
at the first failure.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..errors import ToolError, ToolInstallError
from ..models.installation import InstallationResult, RunSummary
from ..models.tool import InstallSpec, ToolSpec, ToolStatus
from .artifact_resolver import ArtifactResolver
from .composer import ScriptComposer
from .environment import build_environment, to_process_env
from .executor import ScriptExecutor
from ..integrations.http_downloader import HttpDownloader
from ..integrations.s3_store import S3CacheStore
from ..utils.logging import OutputSink

if TYPE_CHECKING:
    from config.settings import Settings


class ToolInstallationOrchestrator:
    """Sequences artifact resolution, script composition and execution per tool."""

    def __init__(self,
                 resolver: ArtifactResolver,
                 composer: ScriptComposer,
                 executor: ScriptExecutor,
                 workspace: Path,
                 home: str,
                 base_envs: Sequence[str] = (),
                 secret_envs: Sequence[str] = ()):
        """
        Initialize the orchestrator.

        Args:
            resolver: Artifact resolver bound to the run's cache storage
            composer: Script composer
            executor: Script executor
            workspace: Working directory for every install script
            home: Value substituted for the home placeholder in tool envs
            base_envs: KEY=VALUE assignments passed to every script
            secret_envs: KEY=VALUE secrets passed after the base envs
        """
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver
        self.composer = composer
        self.executor = executor
        self.workspace = Path(workspace)
        self.home = home
        self.base_envs = list(base_envs)
        self.secret_envs = list(secret_envs)

    async def run(self, spec: InstallSpec, deadline: Optional[float] = None) -> RunSummary:
        """
        Install every tool in declaration order.

        Args:
            spec: Parsed install spec
            deadline: Optional timeout in seconds for the whole step; expiry
                cancels whichever network call or script is in flight

        Returns:
            Summary with one result per declared tool

        Raises:
            ToolInstallError: the first tool that failed, with the partial summary
            asyncio.TimeoutError: the deadline expired
        """
        if deadline is None:
            return await self._run(spec)
        return await asyncio.wait_for(self._run(spec), timeout=deadline)

    async def _run(self, spec: InstallSpec) -> RunSummary:
        start = time.monotonic()
        self.logger.info("Installing tools.")

        results: List[InstallationResult] = [
            InstallationResult(
                tool_id=tool.tool_id,
                tool_name=tool.name,
                tool_version=tool.version,
                index=i,
            )
            for i, tool in enumerate(spec.installs)
        ]
        summary = RunSummary(results=results)
        results = summary.results

        try:
            for i, tool in enumerate(spec.installs):
                self.logger.info(f"Installing {tool.name} {tool.version}.")
                result = results[i]
                result.start()
                try:
                    await self._install_tool(tool, result)
                except ToolError as e:
                    result.complete(ToolStatus.FAILED, str(e))
                    if getattr(e, "exit_code", None) is not None:
                        result.exit_code = e.exit_code
                    for skipped in results[i + 1:]:
                        skipped.status = ToolStatus.SKIPPED
                    summary.failed_tool = tool.tool_id
                    self._finish(summary, start)
                    self.logger.error(f"Install {tool.tool_id} failed: {e}")
                    raise ToolInstallError(i, tool.name, tool.version, e, summary) from e
                result.complete(ToolStatus.SUCCEEDED)
                result.exit_code = 0
            self._finish(summary, start)
            return summary
        finally:
            self.logger.info(f"Install tools ended. Duration: {time.monotonic() - start:.2f} seconds.")

    async def _install_tool(self, tool: ToolSpec, result: InstallationResult) -> None:
        try:
            resolution = await self.resolver.resolve(tool)
            result.artifact_source = resolution.source
            result.artifact_path = resolution.local_path or None
            try:
                lines = self.composer.compose(tool, resolution.local_path)
                envs = build_environment(self.base_envs, self.secret_envs, tool.envs, self.home)
                await self.executor.run(lines, self.workspace, to_process_env(envs), tool)
            finally:
                self.resolver.cleanup(resolution)
        except ToolError:
            raise
        except Exception as e:
            raise ToolError(tool.name, tool.version, f"unexpected error: {e}") from e

    @staticmethod
    def _finish(summary: RunSummary, start: float) -> None:
        summary.duration_seconds = time.monotonic() - start
        summary.tally()


def create_orchestrator(settings: "Settings",
                        spec: InstallSpec,
                        base_envs: Sequence[str] = (),
                        secret_envs: Sequence[str] = (),
                        sink: Optional[OutputSink] = None,
                        store_factory=S3CacheStore,
                        downloader=None) -> ToolInstallationOrchestrator:
    """Wire the default collaborators from settings."""
    resolver = ArtifactResolver(
        storage=spec.storage,
        downloader=downloader or HttpDownloader(timeout=settings.artifacts.download_timeout),
        store_factory=store_factory,
        temp_dir=settings.artifacts.temp_dir,
        cache_path_root=settings.artifacts.cache_path_root,
        keep_artifacts=settings.artifacts.keep_artifacts,
    )
    executor = ScriptExecutor(
        script_dir=settings.execution.script_dir,
        shell=settings.execution.shell,
        sink=sink,
        timeout=settings.execution.script_timeout,
        kill_grace_seconds=settings.execution.kill_grace_seconds,
        keep_scripts=settings.execution.keep_scripts,
    )
    return ToolInstallationOrchestrator(
        resolver=resolver,
        composer=ScriptComposer(),
        executor=executor,
        workspace=settings.workspace,
        home=settings.resolved_home(),
        base_envs=base_envs,
        secret_envs=secret_envs,
    )


async def install_tools(spec: InstallSpec,
                        settings: "Settings",
                        base_envs: Sequence[str] = (),
                        secret_envs: Sequence[str] = (),
                        sink: Optional[OutputSink] = None) -> RunSummary:
    """Run the tool install step with default collaborators."""
    spec = spec.with_storage_defaults(settings.storage.to_storage_config())
    orchestrator = create_orchestrator(settings, spec, base_envs, secret_envs, sink)
    return await orchestrator.run(spec, deadline=settings.step_timeout)
