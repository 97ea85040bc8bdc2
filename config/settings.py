"""
Configuration settings for the tool provisioner.
"""

import tempfile
from typing import Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from provisioner.models.tool import StorageConfig


class StorageSettings(BaseModel):
    """Default cache storage, used when the install spec declares none."""
    endpoint: str = Field(default="", description="S3-compatible endpoint host[:port]")
    ak: str = Field(default="", description="Access key")
    sk: str = Field(default="", description="Secret key")
    region: str = Field(default="", description="Bucket region")
    bucket: str = Field(default="", description="Cache bucket")
    insecure: bool = Field(default=False, description="Talk to the endpoint over plain HTTP")
    provider: str = Field(default="", description="Storage provider identifier")
    subfolder: str = Field(default="", description="Cache root inside the bucket")

    def to_storage_config(self) -> StorageConfig:
        return StorageConfig(**self.model_dump())


class ExecutionSettings(BaseModel):
    """Install script execution configuration."""
    shell: str = Field(default="/bin/bash", description="Interpreter for install scripts")
    script_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()),
                             description="Directory for generated scripts")
    script_timeout: Optional[float] = Field(None, description="Per-script timeout in seconds")
    kill_grace_seconds: float = Field(default=5.0, description="Wait after SIGTERM before SIGKILL")
    keep_scripts: bool = Field(default=False, description="Keep generated scripts after they run")

    @field_validator('script_timeout')
    def validate_timeout_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("script_timeout must be positive")
        return v


class ArtifactSettings(BaseModel):
    """Artifact download and cache configuration."""
    temp_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()),
                           description="Where artifacts are downloaded")
    cache_path_root: str = Field(default="tools", description="Cache root when the storage has no subfolder")
    keep_artifacts: bool = Field(default=True, description="Keep downloaded artifacts after install")
    download_timeout: float = Field(default=300.0, description="Origin download timeout in seconds")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    file_path: Optional[Path] = Field(default=None, description="Optional log file")
    max_file_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(default=5, description="Number of log backups to keep")


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_prefix="PROVISIONER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Component configs
    storage: StorageSettings = Field(default_factory=StorageSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    artifacts: ArtifactSettings = Field(default_factory=ArtifactSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Operational settings
    workspace: Path = Field(default_factory=Path.cwd, description="Working directory for install scripts")
    home: Optional[Path] = Field(None, description="Value substituted for $HOME in tool envs")
    step_timeout: Optional[float] = Field(None, description="Deadline for the whole install step in seconds")

    def resolved_home(self) -> str:
        return str(self.home) if self.home else str(Path.home())
