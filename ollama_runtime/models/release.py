"""
Pydantic models for platforms and release assets, plus version tag helpers.
"""

import re
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

LATEST = "latest"

# v<major>.<minor>.<patch> with an optional pre-release suffix (v0.12.0-rc1)
_VERSION_REGEX = re.compile(
    r"^v(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)(?:-(?P<pre>[0-9A-Za-z.]+))?$"
)

OsName = Literal["windows", "darwin", "linux"]
ArchName = Literal["arm64", "amd64"]


def is_concrete_version(version: str) -> bool:
    """Returns True if the version is a concrete release tag like 'v0.11.0'."""
    return bool(_VERSION_REGEX.fullmatch(version or ""))


def version_sort_key(version: str) -> Tuple:
    """
    Sort key ordering tags numerically; a pre-release sorts before its final
    release and anything unparseable sorts first, by name.
    """
    match = _VERSION_REGEX.fullmatch(version)
    if not match:
        return (0, (), 0, version)
    numbers = tuple(int(match.group(k)) for k in ("major", "minor", "patch"))
    pre = match.group("pre")
    return (1, numbers, 0 if pre else 1, pre or "")


class PlatformConfig(BaseModel):
    """An (os, arch) pair selecting which release asset applies."""

    model_config = ConfigDict(frozen=True)

    os: OsName
    arch: ArchName

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


class AssetMetadata(BaseModel):
    """Everything known about one downloadable release archive."""

    model_config = ConfigDict(frozen=True)

    digest: Optional[str]  # GitHub omits this on older assets
    size: int
    file_name: str
    content_type: str
    version: str
    download_count: int
    download_url: str
    release_url: str
    release_notes: str = ""
