"""
Artifact resolution: obtain a tool's install artifact from the cache store,
falling back to the origin URL and backfilling the cache afterwards.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..errors import ArtifactError
from ..models.installation import ArtifactResolution, ArtifactSource
from ..models.tool import StorageConfig, ToolSpec, cache_subfolder, object_key


class CacheStore(Protocol):
    async def fetch(self, bucket: str, key: str, local_path: Path) -> None: ...

    async def store(self, bucket: str, local_path: Path, key: str) -> None: ...


class Downloader(Protocol):
    async def fetch(self, url: str, local_path: Path) -> None: ...


CacheStoreFactory = Callable[[StorageConfig], CacheStore]


class ArtifactResolver:
    """Resolves install artifacts through a two-tier cache/origin lookup."""

    def __init__(self,
                 storage: StorageConfig,
                 downloader: Downloader,
                 store_factory: CacheStoreFactory,
                 temp_dir: Path,
                 cache_path_root: str = "tools",
                 keep_artifacts: bool = True):
        """
        Initialize the resolver.

        Args:
            storage: Cache storage shared by every tool in the run
            downloader: Origin downloader
            store_factory: Builds a cache store client from ``storage``;
                may raise when the store is unusable
            temp_dir: Directory artifacts are downloaded into
            cache_path_root: Cache root used when ``storage.subfolder`` is empty
            keep_artifacts: Leave downloaded files in place after install
        """
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.downloader = downloader
        self.store_factory = store_factory
        self.temp_dir = Path(temp_dir)
        self.cache_path_root = cache_path_root
        self.keep_artifacts = keep_artifacts

    def cache_key(self, tool: ToolSpec) -> str:
        root = self.storage.subfolder or self.cache_path_root
        return object_key(tool.artifact_filename, cache_subfolder(root, tool.name, tool.version))

    async def resolve(self, tool: ToolSpec) -> ArtifactResolution:
        """
        Produce a local file holding the tool's artifact.

        Cache construction and cache fetch failures are not distinguished:
        both fall through to a single origin download. Only a failed origin
        download is fatal.

        Raises:
            ArtifactError: when the temp dir cannot be created or the origin download fails
        """
        if not tool.download:
            return ArtifactResolution()

        key = self.cache_key(tool)
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactError(tool.name, tool.version, tool.download, f"create {self.temp_dir} failed: {e}") from e
        local_path = self.temp_dir / tool.artifact_filename

        store = self._build_store()
        if store is not None:
            try:
                await store.fetch(self.storage.bucket, key, local_path)
                self.logger.info(f"Package loaded from cache: {key}")
                return ArtifactResolution(path=local_path, source=ArtifactSource.CACHE, cache_key=key)
            except Exception as e:
                self.logger.info(f"Cache miss for {key}: {e}")

        try:
            await self.downloader.fetch(tool.download, local_path)
        except Exception as e:
            raise ArtifactError(tool.name, tool.version, tool.download, str(e)) from e
        self.logger.info(f"Package loaded from url: {tool.download}")

        backfilled = False
        if store is not None:
            try:
                await store.store(self.storage.bucket, local_path, key)
                backfilled = True
            except Exception as e:
                self.logger.warning(f"Cache backfill for {key} failed: {e}")

        return ArtifactResolution(
            path=local_path,
            source=ArtifactSource.ORIGIN,
            cache_key=key,
            backfilled=backfilled,
        )

    def cleanup(self, resolution: ArtifactResolution) -> None:
        """Remove a downloaded artifact unless artifacts are kept."""
        if self.keep_artifacts or resolution.path is None:
            return
        try:
            resolution.path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Could not remove artifact {resolution.path}: {e}")

    def _build_store(self) -> Optional[CacheStore]:
        try:
            return self.store_factory(self.storage)
        except Exception as e:
            self.logger.info(f"Cache store unavailable, downloading from origin: {e}")
            return None
