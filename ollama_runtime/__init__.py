"""
ollama-runtime: download, cache and supervise a local Ollama server.
"""

__version__ = "0.3.0"

from .core.runtime import OllamaRuntime
from .core.server import OllamaServer, ServerState
from .models import AssetMetadata, PlatformConfig, RuntimeConfig

__all__ = [
    "AssetMetadata",
    "OllamaRuntime",
    "OllamaServer",
    "PlatformConfig",
    "RuntimeConfig",
    "ServerState",
    "__version__",
]
