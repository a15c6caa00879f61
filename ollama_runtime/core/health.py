"""
HTTP readiness probe for a local Ollama server.

The probe only knows that *something* answering like Ollama holds the port;
it cannot tell whether that is the process we spawned. An unrelated Ollama
already listening there will read as running.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from ollama_runtime.models.config import DEFAULT_HEALTH_URL

log = logging.getLogger(__name__)

RUNNING_SIGNATURE = "Ollama is running"


class HealthProbe:
    """Checks the root endpoint of an Ollama server for its running banner."""

    def __init__(self, base_url: str = DEFAULT_HEALTH_URL, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def is_running(self) -> bool:
        """One probe. Any failure, including an undecodable body, counts as 'not running'."""
        try:
            async with (
                aiohttp.ClientSession(timeout=self.timeout) as session,
                session.get(self.base_url) as response,
            ):
                text = await response.text(errors="replace")
                return RUNNING_SIGNATURE in text
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            log.debug(f"Health probe of {self.base_url} failed: {e}")
            return False

    async def server_version(self) -> Optional[str]:
        """Returns the version reported by /api/version, or None if unreachable."""
        try:
            async with (
                aiohttp.ClientSession(timeout=self.timeout) as session,
                session.get(f"{self.base_url}/api/version") as response,
            ):
                response.raise_for_status()
                data = await response.json(content_type=None)
                return data.get("version") if isinstance(data, dict) else None
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            log.debug(f"Version lookup at {self.base_url} failed: {e}")
            return None
