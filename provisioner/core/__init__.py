"""
Core modules for the tool provisioner.
"""

from .orchestrator import ToolInstallationOrchestrator, create_orchestrator, install_tools
from .artifact_resolver import ArtifactResolver
from .composer import ScriptComposer, ARTIFACT_PLACEHOLDER
from .environment import build_environment, normalize_envs, HOME_PLACEHOLDER
from .executor import ScriptExecutor

__all__ = [
    "ToolInstallationOrchestrator",
    "create_orchestrator",
    "install_tools",
    "ArtifactResolver",
    "ScriptComposer",
    "ARTIFACT_PLACEHOLDER",
    "build_environment",
    "normalize_envs",
    "HOME_PLACEHOLDER",
    "ScriptExecutor",
]
