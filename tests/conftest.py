"""Shared test fixtures for ollama-runtime."""

from __future__ import annotations

import io
import tarfile
import time
import zipfile
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from ollama_runtime.models.config import RuntimeConfig
from ollama_runtime.models.release import PlatformConfig
from ollama_runtime.storage.artifact_store import ArtifactStore

RELEASE_NOTES = "## Welcome OpenAI's gpt-oss models\n\nOllama partners with OpenAI."

SERVER_SCRIPT = """#!/bin/sh
echo "Listening on 127.0.0.1:11434 (version 0.11.0)"
exec sleep 30
"""


# Archive builders


def make_tgz(files: dict[str, bytes], modes: dict[str, int] | None = None) -> bytes:
    """Builds a gzipped tar in memory, adding entries in the given order."""
    modes = modes or {}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = modes.get(name, 0o644)
            info.mtime = int(time.time())
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_zip(files: dict[str, bytes], modes: dict[str, int] | None = None) -> bytes:
    """Builds a zip in memory; names ending in '/' become directory entries."""
    modes = modes or {}
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in files.items():
            info = zipfile.ZipInfo(name)
            info.create_system = 3
            mode = modes.get(name, 0o40755 if name.endswith("/") else 0o100644)
            info.external_attr = mode << 16
            archive.writestr(info, data)
    return buffer.getvalue()


# Fake GitHub


class FakeGitHub:
    """An aiohttp app standing in for the GitHub releases API and download host."""

    REPO_PATH = "/repos/ollama/ollama/releases"

    def __init__(self):
        self.base_url = ""
        self.latest_tag = "v0.11.0"
        self.assets: dict[str, dict[str, Any]] = {}
        self.index_status = 200
        self.index_error_body = '{"message": "Not Found"}'
        self.download_status = 200
        self.release_override: Any = None
        self.requests: list[tuple[str, dict[str, str]]] = []

    def add_asset(self, name: str, data: bytes, content_type: str) -> None:
        self.assets[name] = {"data": data, "content_type": content_type}

    def release_json(self, tag: str, origin: str) -> Any:
        if self.release_override is not None:
            return self.release_override
        return {
            "tag_name": tag,
            "html_url": f"https://github.com/ollama/ollama/releases/tag/{tag}",
            "body": RELEASE_NOTES,
            "assets": [
                {
                    "name": name,
                    "content_type": asset["content_type"],
                    "size": len(asset["data"]),
                    "digest": "sha256:88ac973d4aaa8fed68898be45ca16a4c0e80434d068afdc18b304863fe99d064",
                    "download_count": 115,
                    "browser_download_url": f"{origin}/download/{tag}/{name}",
                }
                for name, asset in self.assets.items()
            ],
        }

    def _record(self, request: web.Request) -> None:
        self.requests.append((request.path, dict(request.headers)))

    async def handle_latest(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.index_status != 200:
            return web.Response(status=self.index_status, text=self.index_error_body)
        origin = str(request.url.origin())
        return web.json_response(self.release_json(self.latest_tag, origin))

    async def handle_tag(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.index_status != 200:
            return web.Response(status=self.index_status, text=self.index_error_body)
        origin = str(request.url.origin())
        return web.json_response(
            self.release_json(request.match_info["tag"], origin)
        )

    async def handle_download(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.download_status != 200:
            return web.Response(status=self.download_status, text="gone")
        asset = self.assets.get(request.match_info["name"])
        if asset is None:
            return web.Response(status=404, text="Not Found")
        return web.Response(body=asset["data"], content_type=asset["content_type"])

    @property
    def download_requests(self) -> list[str]:
        return [path for path, _ in self.requests if path.startswith("/download/")]


@pytest_asyncio.fixture
async def github():
    """Provide a running fake GitHub with no assets registered yet."""
    fake = FakeGitHub()
    app = web.Application()
    app.router.add_get(f"{FakeGitHub.REPO_PATH}/latest", fake.handle_latest)
    app.router.add_get(f"{FakeGitHub.REPO_PATH}/tags/{{tag}}", fake.handle_tag)
    app.router.add_get("/download/{tag}/{name}", fake.handle_download)

    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


# Platforms, config and store


@pytest.fixture
def darwin_arm64() -> PlatformConfig:
    return PlatformConfig(os="darwin", arch="arm64")


@pytest.fixture
def linux_amd64() -> PlatformConfig:
    return PlatformConfig(os="linux", arch="amd64")


@pytest.fixture
def windows_amd64() -> PlatformConfig:
    return PlatformConfig(os="windows", arch="amd64")


@pytest.fixture
def linux_host(monkeypatch: pytest.MonkeyPatch) -> PlatformConfig:
    """Make the running machine look like linux/amd64."""
    monkeypatch.setattr("ollama_runtime.utils.platform._platform.system", lambda: "Linux")
    monkeypatch.setattr(
        "ollama_runtime.utils.platform._platform.machine", lambda: "x86_64"
    )
    return PlatformConfig(os="linux", arch="amd64")


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    """Provide a config with fast polling and storage in a temp directory."""
    return RuntimeConfig(
        base_path=tmp_path / "userData",
        api_base_url="http://127.0.0.1:9",
        health_url="http://127.0.0.1:9",
        poll_interval=0.05,
        startup_timeout=0.5,
        stop_timeout=1.0,
    )


@pytest.fixture
def github_config(config: RuntimeConfig, github: FakeGitHub) -> RuntimeConfig:
    """Provide a config pointing the release index at the fake GitHub."""
    return config.model_copy(update={"api_base_url": github.base_url})


@pytest.fixture
def store(config: RuntimeConfig) -> ArtifactStore:
    return ArtifactStore(config.base_path, config.directory)


def install_fake_server(store: ArtifactStore, version: str, platform: PlatformConfig) -> Path:
    """Places a shell script where the Ollama executable is expected."""
    executable = store.executable_path(version, platform)
    executable.parent.mkdir(parents=True, exist_ok=True)
    executable.write_text(SERVER_SCRIPT)
    executable.chmod(0o755)
    return executable
