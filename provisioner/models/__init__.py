"""
Data models for the tool provisioner.
"""

from .tool import (
    InstallSpec,
    ProxyConfig,
    StorageConfig,
    ToolSpec,
    ToolStatus,
    cache_subfolder,
    object_key,
)
from .installation import ArtifactResolution, ArtifactSource, InstallationResult, RunSummary

__all__ = [
    "InstallSpec",
    "ProxyConfig",
    "StorageConfig",
    "ToolSpec",
    "ToolStatus",
    "cache_subfolder",
    "object_key",
    "ArtifactResolution",
    "ArtifactSource",
    "InstallationResult",
    "RunSummary",
]
