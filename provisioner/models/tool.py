"""
Tool-related data models.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Optional, List, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import SpecError


class ToolStatus(str, Enum):
    """Status of a single tool within an install run."""
    PENDING = "pending"
    INSTALLING = "installing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class ProxyConfig(BaseModel):
    """Shell lines wrapped around a tool's commands to toggle a proxy."""
    model_config = ConfigDict(populate_by_name=True)

    enable_script: str = Field(..., alias="EnableScript", description="Line that turns the proxy on")
    disable_script: str = Field("", alias="DisableScript", description="Line that turns the proxy off")


class ToolSpec(BaseModel):
    """Specification for a tool to be installed."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "node",
                "version": "18.0.0",
                "download": "https://nodejs.org/dist/v18.0.0/node-v18.0.0-linux-x64.tar.gz",
                "envs": ["NODE_HOME=$HOME/node"],
                "scripts": ["mkdir -p $NODE_HOME", "tar -C $NODE_HOME -xzf $FILEPATH --strip-components=1"],
            }
        },
    )

    name: str = Field(..., alias="Name", description="Tool name")
    version: str = Field(..., alias="Version", description="Tool version to install")
    download: str = Field("", alias="Download", description="Origin URL of the install artifact")
    envs: List[str] = Field(default_factory=list, alias="Envs", description="KEY=VALUE candidates")
    scripts: List[str] = Field(default_factory=list, alias="Scripts", description="Command templates")
    proxy: Optional[ProxyConfig] = Field(None, alias="Proxy", description="Proxy toggle around the commands")

    @field_validator('version', mode="before")
    def coerce_version(cls, v):
        # Unquoted YAML versions such as 1.21 arrive as floats; quote 1.10 in the install file.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def tool_id(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def artifact_filename(self) -> str:
        """Last path segment of the download URL."""
        return self.download.split("/")[-1]


class StorageConfig(BaseModel):
    """Connection details for the S3-compatible artifact cache."""
    model_config = ConfigDict(populate_by_name=True)

    endpoint: str = Field("", alias="Endpoint")
    ak: str = Field("", alias="Ak", description="Access key")
    sk: str = Field("", alias="Sk", description="Secret key")
    region: str = Field("", alias="Region")
    bucket: str = Field("", alias="Bucket")
    insecure: bool = Field(False, alias="Insecure", description="Use plain HTTP")
    provider: str = Field("", alias="Provider", description="Storage provider identifier")
    subfolder: str = Field("", alias="Subfolder", description="Cache root inside the bucket")

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.bucket)


class InstallSpec(BaseModel):
    """Ordered list of tools plus the cache storage they share."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    installs: List[ToolSpec] = Field(default_factory=list, alias="Installs")
    storage: StorageConfig = Field(default_factory=StorageConfig, alias="S3Storage")

    @classmethod
    def from_mapping(cls, data: Any) -> "InstallSpec":
        """Validate already-decoded input, raising SpecError when malformed."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SpecError(f"install spec must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SpecError(f"invalid install spec: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> "InstallSpec":
        """Load an install spec from a YAML or JSON file."""
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as e:
            raise SpecError(f"cannot read install spec {path}: {e}") from e

        try:
            if path.suffix == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SpecError(f"cannot parse install spec {path}: {e}") from e

        return cls.from_mapping(data)

    def with_storage_defaults(self, defaults: StorageConfig) -> "InstallSpec":
        """Fill storage from defaults when the spec declares none."""
        if self.storage.is_configured:
            return self
        return self.model_copy(update={"storage": defaults})


def cache_subfolder(root: str, name: str, version: str) -> str:
    """Per-tool cache folder, e.g. ``tools/node-v18.0.0``."""
    return f"{root}/{name}-v{version}"


def object_key(filename: str, subfolder: str) -> str:
    """Object key for a cached artifact; keys never start with a slash."""
    if subfolder:
        return f"{subfolder.rstrip('/')}/{filename}".lstrip("/")
    return filename.lstrip("/")
