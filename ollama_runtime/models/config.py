"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

DEFAULT_DIRECTORY = "electron-ollama"
DEFAULT_REPOSITORY = "ollama/ollama"
DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_HEALTH_URL = "http://localhost:11434"


class RuntimeConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Storage
    base_path: Path
    directory: str = DEFAULT_DIRECTORY
    delete_archive: bool = True

    # Release index
    repository: str = DEFAULT_REPOSITORY
    api_base_url: str = DEFAULT_API_BASE_URL
    asset_prefix: str = "ollama"
    github_token: str = ""
    request_timeout: float = 60.0

    # Server supervision
    health_url: str = DEFAULT_HEALTH_URL
    poll_interval: float = 0.1
    startup_timeout: float = 5.0
    stop_timeout: float = 5.0

    @field_validator("base_path")
    @classmethod
    def expand_base_path(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, v: str) -> str:
        """The storage directory must be a single, plain path component."""
        if not v:
            raise ValueError("Storage directory cannot be empty.")
        if v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError(
                f"Storage directory must be a single folder name, got: {v!r}"
            )
        return v

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        parts = v.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Repository must look like '<org>/<repo>', got: {v!r}")
        return v

    @field_validator("api_base_url", "health_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://, got: {v!r}")
        return v.rstrip("/")

    @field_validator("poll_interval", "stop_timeout", "request_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Intervals and timeouts must be greater than zero.")
        return v

    @model_validator(mode="after")
    def validate_startup_budget(self) -> "RuntimeConfig":
        """Checks that at least one health probe fits in the startup budget."""
        if self.startup_timeout < self.poll_interval:
            raise ValueError(
                "startup_timeout must be at least as long as poll_interval."
            )
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
