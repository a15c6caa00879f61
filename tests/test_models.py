"""Tests for release models and version helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ollama_runtime.models.release import (
    AssetMetadata,
    PlatformConfig,
    is_concrete_version,
    version_sort_key,
)


class TestVersions:
    @pytest.mark.parametrize("tag", ["v0.11.0", "v1.2.3", "v0.12.0-rc1", "v10.0.15"])
    def test_concrete(self, tag):
        assert is_concrete_version(tag)

    @pytest.mark.parametrize(
        "tag", ["latest", "0.11.0", "v0.11", "v0.11.0/../x", "", "v0.11.0-"]
    )
    def test_not_concrete(self, tag):
        assert not is_concrete_version(tag)

    def test_sort_is_numeric(self):
        tags = ["v0.11.10", "v0.9.0", "v0.11.2", "v0.11.2-rc1", "v0.11.0"]
        assert sorted(tags, key=version_sort_key) == [
            "v0.9.0",
            "v0.11.0",
            "v0.11.2-rc1",
            "v0.11.2",
            "v0.11.10",
        ]


class TestPlatformConfig:
    def test_structural_equality(self):
        assert PlatformConfig(os="linux", arch="arm64") == PlatformConfig(
            os="linux", arch="arm64"
        )
        assert PlatformConfig(os="linux", arch="arm64") != PlatformConfig(
            os="linux", arch="amd64"
        )

    def test_hashable(self):
        seen = {PlatformConfig(os="darwin", arch="arm64"), PlatformConfig(os="darwin", arch="arm64")}
        assert len(seen) == 1

    def test_immutable(self, linux_amd64):
        with pytest.raises(ValidationError):
            linux_amd64.os = "windows"

    def test_rejects_unknown_values(self):
        with pytest.raises(ValidationError):
            PlatformConfig(os="freebsd", arch="amd64")
        with pytest.raises(ValidationError):
            PlatformConfig(os="linux", arch="x86")

    def test_str(self, darwin_arm64):
        assert str(darwin_arm64) == "darwin-arm64"


class TestAssetMetadata:
    def test_digest_may_be_missing(self):
        metadata = AssetMetadata(
            digest=None,
            size=1,
            file_name="ollama-darwin.tgz",
            content_type="application/gzip",
            version="v0.5.0",
            download_count=0,
            download_url="https://example.invalid/ollama-darwin.tgz",
            release_url="https://example.invalid/v0.5.0",
        )
        assert metadata.digest is None
        assert metadata.release_notes == ""
