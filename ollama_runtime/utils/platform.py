"""
Maps the host machine onto the supported Ollama platforms and names the
release assets and executables that belong to each of them.
"""

import platform as _platform

from ollama_runtime.exceptions import (
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from ollama_runtime.models.release import PlatformConfig

_OS_ALIASES = {
    "windows": "windows",
    "win32": "windows",
    "darwin": "darwin",
    "linux": "linux",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def resolve_current_platform(
    system: str | None = None, machine: str | None = None
) -> PlatformConfig:
    """
    Resolves the (os, arch) pair of the running machine.

    Args:
        system: OS identifier to map instead of `platform.system()`.
        machine: CPU identifier to map instead of `platform.machine()`.

    Raises:
        UnsupportedPlatformError: The OS is not Windows, macOS or Linux.
        UnsupportedArchitectureError: The CPU is not arm64 or amd64.
    """
    system = system if system is not None else _platform.system()
    machine = machine if machine is not None else _platform.machine()

    os_name = _OS_ALIASES.get(system.lower())
    if os_name is None:
        raise UnsupportedPlatformError(f"Unsupported platform: {system}")

    arch = _ARCH_ALIASES.get(machine.lower())
    if arch is None:
        raise UnsupportedArchitectureError(f"Unsupported architecture: {machine}")

    return PlatformConfig(os=os_name, arch=arch)


def asset_name(platform: PlatformConfig, prefix: str = "ollama") -> str:
    """
    Name of the release archive for a platform, e.g. 'ollama-windows-amd64.zip'.
    macOS ships a single universal archive.
    """
    if platform.os == "windows":
        return f"{prefix}-windows-{platform.arch}.zip"
    if platform.os == "darwin":
        return f"{prefix}-darwin.tgz"
    return f"{prefix}-linux-{platform.arch}.tgz"


def executable_name(platform: PlatformConfig) -> str:
    """Path of the server executable relative to the install directory."""
    if platform.os == "windows":
        return "ollama.exe"
    if platform.os == "darwin":
        return "ollama"
    return "bin/ollama"
