"""
Integration modules for external services.
"""

from .s3_store import S3CacheStore
from .http_downloader import HttpDownloader
from .sonar import SonarClient

__all__ = ["S3CacheStore", "HttpDownloader", "SonarClient"]
