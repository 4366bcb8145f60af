"""Unit tests for tag type detection."""

from __future__ import annotations

import pytest

from rollback.deploy.detector import classify_tag, resolve_kind
from rollback.models.history import MechanismKind


class TestClassifyTag:
    """Tests for classify_tag rule order."""

    @pytest.mark.parametrize(
        "tag",
        [
            "registry.io/app:v2",
            "ghcr.io/org/service:1.4.0",
            "localhost:5000/app:latest",
            "myapp:v2.0",
            "nginx:1.25-alpine",
            "my_app:build.42",
        ],
    )
    def test_docker_tags(self, tag: str) -> None:
        """Image references classify as docker."""
        assert classify_tag(tag) == MechanismKind.DOCKER

    @pytest.mark.parametrize(
        "tag",
        ["abc1234", "deadbeefcafe", "0123456789abcdef0123456789abcdef01234567"],
    )
    def test_git_hashes(self, tag: str) -> None:
        """7-40 lowercase hex characters classify as git."""
        assert classify_tag(tag) == MechanismKind.GIT

    @pytest.mark.parametrize("tag", ["v1.2", "2.0", "v1.0.0", "v3.1-rc1", "10.4.2"])
    def test_git_versions(self, tag: str) -> None:
        """Version-style tags classify as git."""
        assert classify_tag(tag) == MechanismKind.GIT

    @pytest.mark.parametrize("tag", ["pm2:app@1.0", "pm2:api-server@2024.1", "pm2:a b"])
    def test_pm2_prefix(self, tag: str) -> None:
        """pm2: prefixed tags that match no earlier rule classify as pm2."""
        assert classify_tag(tag) == MechanismKind.PM2

    def test_bare_pm2_name_is_docker(self) -> None:
        """pm2:app matches the image:tag rule before the pm2 rule."""
        assert classify_tag("pm2:app") == MechanismKind.DOCKER

    def test_pm2_prefix_with_slash_is_docker(self) -> None:
        """Image path rule runs before the pm2 rule."""
        assert classify_tag("pm2:org/app") == MechanismKind.DOCKER

    @pytest.mark.parametrize(
        "tag",
        [
            "release-candidate",
            "latest",
            "ABC1234",  # uppercase hex is not a commit hash
            "abc123",  # too short
            "0123456789abcdef0123456789abcdef012345678",  # 41 chars
            "v1",
            "build 42",
        ],
    )
    def test_custom_fallback(self, tag: str) -> None:
        """Anything else classifies as custom."""
        assert classify_tag(tag) == MechanismKind.CUSTOM

    def test_version_with_colon_is_docker(self) -> None:
        """image:tag rule runs before the version rule."""
        assert classify_tag("v1.2:beta") == MechanismKind.DOCKER

    def test_hex_with_colon_is_docker(self) -> None:
        """image:tag rule runs before the commit hash rule."""
        assert classify_tag("abc1234:latest") == MechanismKind.DOCKER

    def test_colon_with_extra_separator_is_not_short_docker(self) -> None:
        """Short image form allows exactly one colon and no other separators."""
        assert classify_tag("a:b:c") == MechanismKind.CUSTOM
        assert classify_tag("app:v1@sha") == MechanismKind.CUSTOM

    def test_trailing_newline_is_not_a_hash(self) -> None:
        """Anchors match the whole tag, not up to a trailing newline."""
        assert classify_tag("abc1234\n") == MechanismKind.CUSTOM


class TestResolveKind:
    """Tests for explicit type overrides."""

    def test_override_bypasses_detection(self) -> None:
        """An override is used verbatim."""
        assert resolve_kind("myapp:v2.0", "custom") == MechanismKind.CUSTOM
        assert resolve_kind("anything", MechanismKind.PM2) == MechanismKind.PM2

    def test_no_override_detects(self) -> None:
        """Without an override the tag is classified."""
        assert resolve_kind("v1.0.0") == MechanismKind.GIT

    def test_invalid_override_raises(self) -> None:
        """Overrides outside the closed set are rejected."""
        with pytest.raises(ValueError):
            resolve_kind("v1.0.0", "kubernetes")
