"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class OllamaRuntimeError(Exception):
    """Base exception for all application-specific errors."""


class UnsupportedPlatformError(OllamaRuntimeError):
    """Raised when the host operating system has no Ollama build."""


class UnsupportedArchitectureError(OllamaRuntimeError):
    """Raised when the host CPU architecture has no Ollama build."""


class InvalidVersionError(OllamaRuntimeError):
    """Raised when a version is neither 'latest' nor a concrete 'vX.Y.Z' tag."""


class IndexUnavailableError(OllamaRuntimeError):
    """
    Raised when the release index cannot be reached or answers with an error.
    Carries the upstream status and response body when there was one.
    """

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AssetNotFoundError(OllamaRuntimeError):
    """Raised when a release has no archive for the requested platform."""

    def __init__(self, platform: str, version: str):
        super().__init__(f"{platform} is not supported by Ollama {version}")
        self.platform = platform
        self.version = version


class DownloadError(OllamaRuntimeError):
    """Raised when the release archive itself cannot be fetched."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class UnsupportedContentTypeError(OllamaRuntimeError):
    """Raised when a release asset uses a packaging format we cannot unpack."""

    def __init__(self, content_type: str):
        super().__init__(f"The Ollama asset type {content_type} is not supported")
        self.content_type = content_type


class ExtractionError(OllamaRuntimeError):
    """
    Raised when an archive is malformed or an entry cannot be read or written.
    Files extracted before the failure are left on disk.
    """


class StartupTimeoutError(OllamaRuntimeError):
    """Raised when a spawned server never answers the health probe in time."""

    def __init__(self, timeout: float):
        super().__init__(f"Ollama server failed to start in {timeout:g}s")
        self.timeout = timeout


class ServerStateError(OllamaRuntimeError):
    """Raised when a server handle is started twice or restarted after stop."""


class ConfigurationError(OllamaRuntimeError):
    """Raised for issues related to configuration loading or validation."""
