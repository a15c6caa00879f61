"""
The public facade: "give me a running Ollama of version V".
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional, Protocol

from ollama_runtime.api.client import ReleaseIndexClient
from ollama_runtime.archive.downloader import ArchiveDownloader
from ollama_runtime.exceptions import StartupTimeoutError
from ollama_runtime.models.config import RuntimeConfig
from ollama_runtime.models.release import LATEST, AssetMetadata, PlatformConfig
from ollama_runtime.storage.artifact_store import ArtifactStore
from ollama_runtime.utils import platform as platform_utils

from .health import HealthProbe
from .installer import Installer, ProgressCallback
from .server import LogCallback, OllamaServer

log = logging.getLogger(__name__)


class Probe(Protocol):
    async def is_running(self) -> bool: ...

    async def server_version(self) -> Optional[str]: ...


class OllamaRuntime:
    """
    Downloads, caches and serves Ollama versions under one storage directory.

    Holds at most one active `OllamaServer`. Whether a server is up is judged
    by probing the health URL, so another Ollama already bound to that port
    is indistinguishable from ours.
    """

    def __init__(self, config: RuntimeConfig, probe: Optional[Probe] = None):
        self.config = config
        self.store = ArtifactStore(config.base_path, config.directory)
        self.index_client = ReleaseIndexClient(config)
        self.downloader = ArchiveDownloader(config.request_timeout)
        self.installer = Installer(
            self.index_client, self.store, self.downloader, config
        )
        self.probe: Probe = probe or HealthProbe(config.health_url)
        self._server: Optional[OllamaServer] = None

    async def __aenter__(self) -> "OllamaRuntime":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Closes HTTP sessions. A running server is left running."""
        await self.index_client.close()
        await self.downloader.close()

    # Platform and naming

    def current_platform(self) -> PlatformConfig:
        return platform_utils.resolve_current_platform()

    def asset_name(self, platform: PlatformConfig) -> str:
        return platform_utils.asset_name(platform, self.config.asset_prefix)

    def executable_name(self, platform: PlatformConfig) -> str:
        return platform_utils.executable_name(platform)

    # Release index and storage

    async def get_metadata(
        self, version: str = LATEST, platform: Optional[PlatformConfig] = None
    ) -> AssetMetadata:
        """Fetches release asset metadata for a version ('latest' by default)."""
        platform = platform or self.current_platform()
        return await self.index_client.fetch_release(version, platform)

    async def download(
        self,
        version: str = LATEST,
        platform: Optional[PlatformConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Installs a version and returns its concrete tag."""
        platform = platform or self.current_platform()
        return await self.installer.install(version, platform, progress)

    def is_downloaded(
        self, version: str, platform: Optional[PlatformConfig] = None
    ) -> bool:
        return self.store.is_installed(version, platform or self.current_platform())

    def downloaded_versions(
        self, platform: Optional[PlatformConfig] = None
    ) -> List[str]:
        return self.store.list_installed(platform or self.current_platform())

    def get_bin_path(
        self, version: str, platform: Optional[PlatformConfig] = None
    ) -> Path:
        return self.store.bin_directory(version, platform or self.current_platform())

    def get_executable_path(
        self, version: str, platform: Optional[PlatformConfig] = None
    ) -> Path:
        return self.store.executable_path(
            version, platform or self.current_platform()
        )

    def remove(self, version: str, platform: Optional[PlatformConfig] = None) -> bool:
        return self.store.remove(version, platform or self.current_platform())

    # Serving

    def get_server(self) -> Optional[OllamaServer]:
        """The server started by the last `serve()` call, if any."""
        return self._server

    async def is_running(self) -> bool:
        """Probes the health URL once; errors count as not running."""
        return await self.probe.is_running()

    async def server_version(self) -> Optional[str]:
        """Version reported by whichever server answers the health URL."""
        return await self.probe.server_version()

    async def serve(
        self,
        version: str = LATEST,
        server_log: Optional[LogCallback] = None,
        download_log: Optional[ProgressCallback] = None,
    ) -> OllamaServer:
        """
        Makes sure `version` is installed, starts it and waits for readiness.

        Raises:
            StartupTimeoutError: The server did not answer within
                `startup_timeout`. The process is left running and remains
                reachable through `get_server()`.
        """
        platform = self.current_platform()
        if version == LATEST:
            version = (await self.get_metadata(LATEST, platform)).version

        if not self.store.is_installed(version, platform):
            log.info(f"Ollama {version} ({platform}) is not installed, downloading")
            await self.installer.install(version, platform, download_log)

        if self._server is not None:
            log.debug("Stopping previously started server before serving again")
            await self._server.stop()

        server = OllamaServer(
            self.store.bin_directory(version, platform),
            self.executable_name(platform),
            log=server_log,
            stop_timeout=self.config.stop_timeout,
        )
        self._server = server
        await server.start()

        await self._wait_until_ready(server)
        log.info(f"Ollama {version} is running at {self.config.health_url}")
        return server

    async def _wait_until_ready(self, server: OllamaServer) -> None:
        """Polls the probe every `poll_interval` until `startup_timeout` elapses."""
        deadline = time.monotonic() + self.config.startup_timeout
        while True:
            await asyncio.sleep(self.config.poll_interval)
            # A probe may overrun the deadline by at most one poll interval
            budget = max(deadline - time.monotonic(), self.config.poll_interval)
            try:
                ready = await asyncio.wait_for(self.probe.is_running(), timeout=budget)
            except asyncio.TimeoutError:
                log.debug(f"Health probe gave no answer within {budget:.2f}s")
                ready = False
            if ready:
                server.mark_running()
                return
            if time.monotonic() >= deadline:
                raise StartupTimeoutError(self.config.startup_timeout)

    async def stop(self) -> None:
        """Stops the active server, if any. Safe to call repeatedly."""
        if self._server is not None:
            await self._server.stop()
