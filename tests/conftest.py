"""Shared test fixtures for the tool provisioner."""

from pathlib import Path
from typing import List, Optional

import pytest

from config.settings import Settings
from provisioner.errors import CacheStoreError, DownloadError
from provisioner.models.tool import StorageConfig, ToolSpec


class FakeCacheStore:
    """In-memory cache store recording every call."""

    def __init__(self, objects: Optional[dict] = None, fail_store: bool = False):
        self.objects = dict(objects or {})
        self.fail_store = fail_store
        self.fetches: List[tuple] = []
        self.stores: List[tuple] = []

    async def fetch(self, bucket: str, key: str, local_path: Path) -> None:
        self.fetches.append((bucket, key, local_path))
        if (bucket, key) not in self.objects:
            raise CacheStoreError(f"NoSuchKey: {key}")
        Path(local_path).write_bytes(self.objects[(bucket, key)])

    async def store(self, bucket: str, local_path: Path, key: str) -> None:
        self.stores.append((bucket, local_path, key))
        if self.fail_store:
            raise CacheStoreError("AccessDenied")
        self.objects[(bucket, key)] = Path(local_path).read_bytes()


class FakeDownloader:
    """Origin downloader that writes fixed content or fails."""

    def __init__(self, content: bytes = b"artifact", fail: bool = False):
        self.content = content
        self.fail = fail
        self.calls: List[tuple] = []

    async def fetch(self, url: str, local_path: Path) -> None:
        self.calls.append((url, local_path))
        if self.fail:
            raise DownloadError(url, "connection refused")
        Path(local_path).write_bytes(self.content)


class RecordingSink:
    """Output sink collecting lines in arrival order."""

    def __init__(self):
        self.lines: List[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)


def unreachable_store(storage: StorageConfig):
    raise CacheStoreError(f"cannot reach {storage.endpoint}")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def storage() -> StorageConfig:
    return StorageConfig(
        endpoint="minio.local:9000",
        ak="ak",
        sk="sk",
        region="us-east-1",
        bucket="tools-cache",
        provider="minio",
        subfolder="cache",
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return Settings(
        workspace=workspace,
        home=tmp_path / "home",
        execution={"script_dir": tmp_path / "scripts", "kill_grace_seconds": 1.0},
        artifacts={"temp_dir": tmp_path / "artifacts"},
    )


@pytest.fixture
def make_tool():
    """Factory fixture for ToolSpec with sensible defaults."""

    def _make(**overrides) -> ToolSpec:
        defaults = {
            "name": "node",
            "version": "18.0.0",
            "download": "",
            "envs": [],
            "scripts": ["echo hi"],
        }
        defaults.update(overrides)
        return ToolSpec(**defaults)

    return _make
