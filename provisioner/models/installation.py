"""
Installation and artifact resolution result models.
"""

from enum import Enum
from typing import Optional, List
from datetime import datetime
from pathlib import Path
from pydantic import BaseModel, Field

from .tool import ToolStatus


class ArtifactSource(str, Enum):
    """Where a tool's artifact came from."""
    NONE = "none"
    CACHE = "cache"
    ORIGIN = "origin"


class ArtifactResolution(BaseModel):
    """Outcome of resolving a tool's artifact."""
    path: Optional[Path] = Field(None, description="Local artifact path, None when nothing was downloaded")
    source: ArtifactSource = Field(default=ArtifactSource.NONE)
    cache_key: Optional[str] = Field(None, description="Object key in the cache bucket")
    backfilled: bool = Field(default=False, description="Artifact was uploaded to the cache after an origin download")

    @property
    def local_path(self) -> str:
        """Value substituted for the artifact placeholder."""
        return str(self.path) if self.path else ""


class InstallationResult(BaseModel):
    """Installation result for a single tool."""
    tool_id: str = Field(..., description="Tool identifier")
    tool_name: str = Field(..., description="Tool name")
    tool_version: str = Field(..., description="Tool version")
    index: int = Field(..., description="Position in the install list")
    status: ToolStatus = Field(default=ToolStatus.PENDING)

    artifact_path: Optional[str] = None
    artifact_source: ArtifactSource = Field(default=ArtifactSource.NONE)
    exit_code: Optional[int] = None
    error: Optional[str] = None

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def start(self) -> None:
        self.status = ToolStatus.INSTALLING
        self.started_at = datetime.utcnow()

    def complete(self, status: ToolStatus, error: Optional[str] = None) -> None:
        """Mark installation as complete."""
        self.status = status
        self.completed_at = datetime.utcnow()
        if error:
            self.error = error
        if self.started_at:
            self.duration_seconds = (self.completed_at - self.started_at).total_seconds()


class RunSummary(BaseModel):
    """Aggregate outcome of one install step."""
    total_tools: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    duration_seconds: float = 0.0
    failed_tool: Optional[str] = None
    results: List[InstallationResult] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    def tally(self) -> None:
        self.total_tools = len(self.results)
        self.succeeded = sum(1 for r in self.results if r.status == ToolStatus.SUCCEEDED)
        self.failed = sum(1 for r in self.results if r.status == ToolStatus.FAILED)
        self.skipped = sum(1 for r in self.results if r.status == ToolStatus.SKIPPED)
