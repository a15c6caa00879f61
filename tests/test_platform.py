"""Tests for platform resolution and asset/executable naming."""

from __future__ import annotations

import pytest

from ollama_runtime.exceptions import (
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from ollama_runtime.models.release import PlatformConfig
from ollama_runtime.utils.platform import (
    asset_name,
    executable_name,
    resolve_current_platform,
)

ALL_PLATFORMS = [
    PlatformConfig(os=os_name, arch=arch)
    for os_name in ("windows", "darwin", "linux")
    for arch in ("arm64", "amd64")
]


class TestResolveCurrentPlatform:
    @pytest.mark.parametrize(
        ("system", "machine", "expected"),
        [
            ("Darwin", "arm64", ("darwin", "arm64")),
            ("Windows", "AMD64", ("windows", "amd64")),
            ("win32", "x64", ("windows", "amd64")),
            ("Linux", "x86_64", ("linux", "amd64")),
            ("Linux", "aarch64", ("linux", "arm64")),
        ],
    )
    def test_maps_native_identifiers(self, system, machine, expected):
        platform = resolve_current_platform(system, machine)
        assert (platform.os, platform.arch) == expected

    def test_unsupported_platform(self):
        with pytest.raises(UnsupportedPlatformError, match="Unsupported platform: freebsd"):
            resolve_current_platform("freebsd", "x86_64")

    def test_unsupported_architecture(self):
        with pytest.raises(
            UnsupportedArchitectureError, match="Unsupported architecture: ia32"
        ):
            resolve_current_platform("Darwin", "ia32")

    def test_platform_checked_before_architecture(self):
        with pytest.raises(UnsupportedPlatformError):
            resolve_current_platform("sunos", "sparc")

    def test_defaults_to_running_machine(self, monkeypatch):
        monkeypatch.setattr(
            "ollama_runtime.utils.platform._platform.system", lambda: "Darwin"
        )
        monkeypatch.setattr(
            "ollama_runtime.utils.platform._platform.machine", lambda: "arm64"
        )
        assert resolve_current_platform() == PlatformConfig(os="darwin", arch="arm64")


class TestAssetName:
    def test_windows(self, windows_amd64):
        assert asset_name(windows_amd64) == "ollama-windows-amd64.zip"

    def test_darwin_is_arch_independent(self):
        assert asset_name(PlatformConfig(os="darwin", arch="arm64")) == "ollama-darwin.tgz"
        assert asset_name(PlatformConfig(os="darwin", arch="amd64")) == "ollama-darwin.tgz"

    def test_linux(self, linux_amd64):
        assert asset_name(linux_amd64) == "ollama-linux-amd64.tgz"
        assert asset_name(PlatformConfig(os="linux", arch="arm64")) == "ollama-linux-arm64.tgz"

    def test_custom_prefix(self, windows_amd64):
        assert asset_name(windows_amd64, prefix="mybuild") == "mybuild-windows-amd64.zip"

    @pytest.mark.parametrize("platform", ALL_PLATFORMS, ids=str)
    def test_total_and_deterministic(self, platform):
        first = asset_name(platform)
        assert first == asset_name(PlatformConfig(os=platform.os, arch=platform.arch))
        assert first.endswith((".zip", ".tgz"))


class TestExecutableName:
    def test_per_os(self, windows_amd64, darwin_arm64, linux_amd64):
        assert executable_name(windows_amd64) == "ollama.exe"
        assert executable_name(darwin_arm64) == "ollama"
        assert executable_name(linux_amd64) == "bin/ollama"
