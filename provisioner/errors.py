"""
Error hierarchy for the tool provisioner.

Fatal errors carry enough context (tool name, version, URL) to identify which
tool and which resource failed. Collaborator errors (cache store, download,
quality server) are raised by the integrations and translated by the core.
"""

from typing import Optional


class ProvisionerError(Exception):
    """Base class for all provisioner errors."""


class SpecError(ProvisionerError):
    """Malformed declarative install input."""


class ToolError(ProvisionerError):
    """A fatal failure while installing a single tool."""

    def __init__(self, tool_name: str, tool_version: str, message: str):
        self.tool_name = tool_name
        self.tool_version = tool_version
        super().__init__(f"{tool_name} {tool_version}: {message}")


class ArtifactError(ToolError):
    """Neither the cache nor the origin produced the artifact."""

    def __init__(self, tool_name: str, tool_version: str, url: str, reason: str):
        self.url = url
        super().__init__(tool_name, tool_version, f"download package {url} error: {reason}")


class ScriptPersistenceError(ToolError):
    """The install script could not be written to disk."""


class ProcessError(ToolError):
    """The install script failed to spawn or exited non-zero."""

    def __init__(self, tool_name: str, tool_version: str, message: str,
                 exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(tool_name, tool_version, message)


class ToolInstallError(ProvisionerError):
    """Raised by the orchestrator when the tool at ``index`` failed."""

    def __init__(self, index: int, tool_name: str, tool_version: str,
                 cause: Exception, summary=None):
        self.index = index
        self.tool_name = tool_name
        self.tool_version = tool_version
        self.cause = cause
        self.summary = summary
        super().__init__(f"install tool #{index} {tool_name} {tool_version} failed: {cause}")


class CacheStoreError(ProvisionerError):
    """Cache store could not be built or an object operation failed."""


class DownloadError(ProvisionerError):
    """Origin download failed."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{url}: {message}")


class SonarError(ProvisionerError):
    """Code-quality server request failed."""
