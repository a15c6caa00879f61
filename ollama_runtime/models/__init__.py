"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application, such as configuration and release metadata.
"""

from .config import RuntimeConfig
from .release import (
    LATEST,
    AssetMetadata,
    PlatformConfig,
    is_concrete_version,
    version_sort_key,
)

__all__ = [
    "LATEST",
    "AssetMetadata",
    "PlatformConfig",
    "RuntimeConfig",
    "is_concrete_version",
    "version_sort_key",
]
