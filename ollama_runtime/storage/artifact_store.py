"""
Owns the on-disk layout of installed Ollama versions:

    <base_path>/<directory>/<version>/<os>/<arch>/
"""

import logging
import shutil
from pathlib import Path
from typing import List

from ollama_runtime.exceptions import InvalidVersionError
from ollama_runtime.models.config import DEFAULT_DIRECTORY
from ollama_runtime.models.release import (
    PlatformConfig,
    is_concrete_version,
    version_sort_key,
)
from ollama_runtime.utils.platform import executable_name

log = logging.getLogger(__name__)


class ArtifactStore:
    """Computes install paths and answers which versions are present on disk."""

    def __init__(self, base_path: Path, directory: str = DEFAULT_DIRECTORY):
        self.base_path = Path(base_path)
        self.directory = directory

    @property
    def versions_root(self) -> Path:
        return self.base_path / self.directory

    def bin_directory(self, version: str, platform: PlatformConfig) -> Path:
        """
        Returns the install directory for a concrete version and platform.

        Raises:
            InvalidVersionError: If the version is 'latest' or not a 'vX.Y.Z' tag.
        """
        if not is_concrete_version(version):
            raise InvalidVersionError(
                f"Install paths need a concrete version tag, got: {version!r}"
            )
        return self.versions_root / version / platform.os / platform.arch

    def executable_path(self, version: str, platform: PlatformConfig) -> Path:
        return self.bin_directory(version, platform) / executable_name(platform)

    def is_installed(self, version: str, platform: PlatformConfig) -> bool:
        """Checks whether the server executable for this version is on disk."""
        if not is_concrete_version(version):
            return False
        try:
            return self.executable_path(version, platform).is_file()
        except OSError as e:
            log.debug(f"Could not check install of {version} ({platform}): {e}")
            return False

    def list_installed(self, platform: PlatformConfig) -> List[str]:
        """Lists installed versions for a platform, oldest first."""
        try:
            children = [p.name for p in self.versions_root.iterdir() if p.is_dir()]
        except (FileNotFoundError, NotADirectoryError):
            return []

        installed = [v for v in children if self.is_installed(v, platform)]
        return sorted(installed, key=version_sort_key)

    def remove(self, version: str, platform: PlatformConfig) -> bool:
        """
        Deletes the install directory of one version and platform.
        Returns False if there was nothing to delete.
        """
        target = self.bin_directory(version, platform)
        if not target.exists():
            return False
        shutil.rmtree(target)
        log.info(f"Removed Ollama {version} ({platform}) from {target}")
        return True
