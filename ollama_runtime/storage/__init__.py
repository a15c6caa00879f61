"""
Storage Layer.

This package handles all data persistence: the on-disk layout of installed
Ollama versions and the configuration file.
"""

from .artifact_store import ArtifactStore
from .config_manager import ConfigManager

__all__ = ["ArtifactStore", "ConfigManager"]
