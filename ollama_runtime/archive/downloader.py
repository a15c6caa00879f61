"""
Handles the low-level streaming of release archives over HTTP.
"""

import asyncio
import io
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

import aiofiles
import aiohttp

from ollama_runtime.exceptions import DownloadError

log = logging.getLogger(__name__)

ByteCallback = Callable[[int], None]


class ResponseReader(io.RawIOBase):
    """
    A blocking, read-only file object over an aiohttp response body.

    Meant to be consumed from a worker thread (e.g. by tarfile) while the
    response itself keeps being driven by the event loop, so the archive is
    decoded as it arrives instead of being buffered first.
    """

    def __init__(
        self,
        content: aiohttp.StreamReader,
        loop: asyncio.AbstractEventLoop,
        on_bytes: Optional[ByteCallback] = None,
    ):
        super().__init__()
        self._content = content
        self._loop = loop
        self._on_bytes = on_bytes

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        future = asyncio.run_coroutine_threadsafe(
            self._content.read(len(buffer)), self._loop
        )
        chunk = future.result()
        size = len(chunk)
        buffer[:size] = chunk
        if size and self._on_bytes:
            self._loop.call_soon_threadsafe(self._on_bytes, size)
        return size


class ArchiveDownloader:
    """Streams release archives; one attempt per request, no retries."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(self, request_timeout: float = 60.0):
        self.request_timeout = request_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        if self._session is None or self._session.closed:
            # Archives are already compressed; a transparent gunzip would
            # corrupt .tgz bodies served with Content-Encoding: gzip.
            self._session = aiohttp.ClientSession(
                auto_decompress=False,
                timeout=aiohttp.ClientTimeout(
                    total=None, sock_connect=15, sock_read=self.request_timeout
                ),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("Archive downloader session closed.")

    @asynccontextmanager
    async def stream(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        """
        Opens a download and yields the response with its body still unread.

        Raises:
            DownloadError: The request failed or returned a non-success status.
        """
        await self._initialize_session()
        try:
            async with self._session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    body = await response.text(errors="replace")
                    raise DownloadError(
                        f"Download of {url} failed with status {response.status}",
                        status=response.status,
                        body=body,
                    )
                yield response
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(f"Download of {url} failed: {e}") from e

    async def download_to_file(
        self,
        response: aiohttp.ClientResponse,
        destination_path: Path,
        on_bytes: Optional[ByteCallback] = None,
    ) -> int:
        """Writes a response body to disk chunk by chunk. Returns the byte count."""
        bytes_downloaded = 0
        async with aiofiles.open(destination_path, "wb") as f:
            async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                await f.write(chunk)
                bytes_downloaded += len(chunk)
                if on_bytes:
                    on_bytes(len(chunk))
            await f.flush()
        log.debug(f"Wrote {bytes_downloaded} bytes to '{destination_path}'")
        return bytes_downloaded
