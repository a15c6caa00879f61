"""
Async client for the GitHub releases API that resolves an Ollama version and
platform to a downloadable release asset.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from ollama_runtime import __version__
from ollama_runtime.exceptions import (
    AssetNotFoundError,
    IndexUnavailableError,
    InvalidVersionError,
)
from ollama_runtime.models.config import RuntimeConfig
from ollama_runtime.models.release import (
    LATEST,
    AssetMetadata,
    PlatformConfig,
    is_concrete_version,
)
from ollama_runtime.utils.platform import asset_name

log = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


class ReleaseIndexClient:
    """
    Async client for the release index.

    Every lookup is a single GET; failures are reported, never retried.
    """

    def __init__(self, config: RuntimeConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "ReleaseIndexClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": f"ollama-runtime/{__version__}",
            }
            if self.config.github_token:
                headers["Authorization"] = f"Bearer {self.config.github_token}"
            self._session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(
                    total=self.config.request_timeout, connect=15
                ),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def release_url(self, version: str) -> str:
        """Builds the index URL for 'latest' or a concrete tag."""
        if version == LATEST:
            path = "latest"
        elif is_concrete_version(version):
            path = f"tags/{version}"
        else:
            raise InvalidVersionError(
                f"Version must be 'latest' or a tag like 'v0.11.0', got: {version!r}"
            )
        return f"{self.config.api_base_url}/repos/{self.config.repository}/releases/{path}"

    async def fetch_release_data(self, version: str) -> Dict[str, Any]:
        """Fetches the raw release record for 'latest' or a concrete tag."""
        url = self.release_url(version)
        await self._initialize_session()

        start_time = time.monotonic()
        try:
            async with self._session.get(url) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"GET {url} -> {r.status} in {duration_ms:.0f}ms")

                if r.status >= 400:
                    body = await r.text()
                    raise IndexUnavailableError(
                        f"GitHub request failed: {body}", status=r.status, body=body
                    )
                return await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.debug(f"Release lookup for {version} failed: {e}")
            raise IndexUnavailableError(f"GitHub request failed: {e}") from e

    async def fetch_release(
        self, version: str, platform: PlatformConfig
    ) -> AssetMetadata:
        """
        Resolves a version request to the release asset for a platform.

        Raises:
            InvalidVersionError: The request is not 'latest' or a 'vX.Y.Z' tag.
            IndexUnavailableError: The index could not be reached or returned an error.
            AssetNotFoundError: The release has no archive for this platform.
        """
        release = await self.fetch_release_data(version)
        if not isinstance(release, dict) or not isinstance(
            release.get("assets") or [], list
        ):
            raise IndexUnavailableError(
                f"GitHub returned a malformed release record for {version}"
            )
        tag = release.get("tag_name") or version
        wanted = asset_name(platform, self.config.asset_prefix)

        assets = release.get("assets") or []
        asset = next(
            (a for a in assets if isinstance(a, dict) and a.get("name") == wanted),
            None,
        )
        if asset is None:
            raise AssetNotFoundError(str(platform), tag)

        log.debug(f"Resolved {version} for {platform} to {tag} ({wanted})")
        try:
            return AssetMetadata(
                digest=asset.get("digest"),
                size=asset.get("size", 0),
                file_name=asset["name"],
                content_type=asset.get("content_type", ""),
                version=tag,
                download_count=asset.get("download_count", 0),
                download_url=asset["browser_download_url"],
                release_url=release.get("html_url", ""),
                release_notes=release.get("body") or "",
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise IndexUnavailableError(
                f"GitHub returned a malformed release record for {tag}: {e}"
            ) from e
