"""
Origin downloads over HTTP(S).
"""

import logging
import os
from pathlib import Path
from typing import Optional

import httpx

from ..errors import DownloadError


class HttpDownloader:
    """Streams a URL to a local file."""

    def __init__(self, timeout: float = 300.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = logging.getLogger(__name__)
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str, local_path: Path) -> None:
        """
        Download ``url`` into ``local_path``.

        The body is written to a ``.part`` sibling and renamed once complete,
        so a failed download never leaves a truncated artifact behind.
        """
        local_path = Path(local_path)
        part_path = local_path.with_name(local_path.name + ".part")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code >= 400:
                        raise DownloadError(url, f"unexpected status {response.status_code}")
                    with open(part_path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            f.write(chunk)
            os.replace(part_path, local_path)
        except httpx.HTTPError as e:
            raise DownloadError(url, str(e) or type(e).__name__) from e
        except OSError as e:
            raise DownloadError(url, f"write {local_path} failed: {e}") from e
        finally:
            if part_path.exists():
                part_path.unlink()

        self.logger.debug(f"Downloaded {url} to {local_path}")
