"""
Downloads a release archive and unpacks it into the artifact store.
"""

import asyncio
import logging
from typing import Callable, Optional

from ollama_runtime.api.client import ReleaseIndexClient
from ollama_runtime.archive.downloader import ArchiveDownloader, ResponseReader
from ollama_runtime.archive.extractor import extract_tgz, extract_zip
from ollama_runtime.exceptions import UnsupportedContentTypeError
from ollama_runtime.models.config import RuntimeConfig
from ollama_runtime.models.release import AssetMetadata, PlatformConfig
from ollama_runtime.storage.artifact_store import ArtifactStore

log = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

ZIP_CONTENT_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})
TGZ_CONTENT_TYPES = frozenset(
    {
        "application/x-gtar",
        "application/x-tar",
        "application/x-gzip",
        "application/tar",
        "application/gzip",
        "application/x-tgz",
    }
)


def archive_format(content_type: str) -> str:
    """
    Classifies a release asset content type as 'zip' or 'tgz'.

    Raises:
        UnsupportedContentTypeError: The type belongs to neither family.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in ZIP_CONTENT_TYPES:
        return "zip"
    if media_type in TGZ_CONTENT_TYPES:
        return "tgz"
    raise UnsupportedContentTypeError(content_type)


class _TransferProgress:
    """Turns byte counts into (percent, message) progress reports."""

    def __init__(self, progress: ProgressCallback, metadata: AssetMetadata):
        self._progress = progress
        self._total = metadata.size
        self._message = f"Downloading {metadata.file_name}"
        self._received = 0

    def __call__(self, size: int) -> None:
        self._received += size
        if self._total > 0:
            # 100% is reserved for the end of extraction
            percent = min(99.0, self._received * 100.0 / self._total)
        else:
            percent = 0.0
        self._progress(round(percent, 1), self._message)


class Installer:
    """Materializes one version of Ollama for one platform on disk."""

    def __init__(
        self,
        index_client: ReleaseIndexClient,
        store: ArtifactStore,
        downloader: ArchiveDownloader,
        config: RuntimeConfig,
    ):
        self.index_client = index_client
        self.store = store
        self.downloader = downloader
        self.config = config

    async def install(
        self,
        version: str,
        platform: PlatformConfig,
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Resolves, downloads and extracts a version.

        Args:
            version: 'latest' or a concrete tag.
            platform: Platform whose archive to install.
            progress: Receives (percent, message) pairs as the install advances.

        Returns:
            The concrete version tag that was installed.
        """
        report = progress or (lambda percent, message: None)

        report(0, "Resolving release metadata")
        metadata = await self.index_client.fetch_release(version, platform)
        target_dir = self.store.bin_directory(metadata.version, platform)

        report(0, f"Creating directory {target_dir}")
        await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)

        archive_kind = archive_format(metadata.content_type)

        log.info(
            f"Downloading Ollama {metadata.version} ({platform}) into {target_dir}"
        )
        report(0, f"Downloading {metadata.file_name}")
        on_bytes = _TransferProgress(report, metadata)

        async with self.downloader.stream(metadata.download_url) as response:
            if archive_kind == "zip":
                archive_path = target_dir / metadata.file_name
                await self.downloader.download_to_file(
                    response, archive_path, on_bytes
                )
                report(99, f"Extracting {metadata.file_name}")
                await asyncio.to_thread(
                    extract_zip,
                    archive_path,
                    target_dir,
                    self.config.delete_archive,
                )
            else:
                reader = ResponseReader(
                    response.content, asyncio.get_running_loop(), on_bytes
                )
                await asyncio.to_thread(extract_tgz, reader, target_dir)

        report(100, "Extracted")
        log.info(f"Installed Ollama {metadata.version} ({platform})")
        return metadata.version
