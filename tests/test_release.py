"""
Tests for the release index fetch and artifact resolution.
"""

import pytest

from mihomo_installer.core.errors import (
    DeadlineExceeded,
    NoMatchingAssetError,
    ReleaseIndexError,
)
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.release import (
    fetch_release_index,
    parse_release,
    release_api_url,
    resolve_artifact,
)
from tests.conftest import release_payload

LATEST = "https://api.github.com/repos/MetaCubeX/mihomo/releases/latest"


class TestReleaseApiUrl:
    def test_latest(self):
        assert release_api_url() == LATEST

    def test_tag_gets_v_prefix(self):
        assert release_api_url(version="1.19.0").endswith("/releases/tags/v1.19.0")

    def test_tag_kept(self):
        assert release_api_url(version="v1.18.5").endswith("/releases/tags/v1.18.5")


class TestParseRelease:
    def test_skips_assets_without_url(self):
        index = parse_release({"tag_name": "v1", "assets": [{"name": "x"}, "junk"]})
        assert index.assets == []

    def test_rejects_non_mapping(self):
        with pytest.raises(ReleaseIndexError):
            parse_release(["not", "a", "release"])


class TestFetchReleaseIndex:
    def test_fetch(self, fake_http):
        fake_http.add(LATEST, release_payload(["mihomo-linux-amd64-v1-v1.19.0.gz"]))
        index = fetch_release_index()
        assert index.tag == "v1.19.0"
        assert index.names == ["mihomo-linux-amd64-v1-v1.19.0.gz"]
        assert fake_http.timeouts == [10]

    def test_http_error_is_fatal(self, fake_http):
        fake_http.add(LATEST, b"rate limited", status=403)
        with pytest.raises(ReleaseIndexError, match="403"):
            fetch_release_index()

    def test_network_error_is_fatal(self, fake_http):
        with pytest.raises(ReleaseIndexError, match="Failed to fetch"):
            fetch_release_index()

    def test_invalid_json(self, fake_http):
        fake_http.add(LATEST, b"<html>")
        with pytest.raises(ReleaseIndexError, match="Invalid JSON"):
            fetch_release_index()

    def test_empty_asset_list(self, fake_http):
        fake_http.add(LATEST, release_payload([]))
        with pytest.raises(ReleaseIndexError, match="No assets"):
            fetch_release_index()

    def test_fetched_fresh_each_time(self, fake_http):
        fake_http.add(LATEST, release_payload(["mihomo-linux-amd64-v1-v1.19.0.gz"]))
        fetch_release_index()
        fetch_release_index()
        assert len(fake_http.requests) == 2

    def test_expired_deadline(self, fake_http):
        fake_http.add(LATEST, release_payload(["mihomo-linux-amd64-v1-v1.19.0.gz"]))
        with pytest.raises(DeadlineExceeded):
            fetch_release_index(deadline=Deadline(1, clock=iter([0, 5, 5, 5]).__next__))
        assert fake_http.requests == []


class TestResolveArtifact:
    NAMES = [
        "mihomo-linux-amd64-v1-v1.19.0.gz",
        "mihomo-linux-amd64-v3-v1.19.0.gz",
    ]

    def test_v3_host(self, fake_http, env_v3):
        fake_http.add(LATEST, release_payload(self.NAMES))
        artifact = resolve_artifact(env_v3)
        assert artifact.asset.name == "mihomo-linux-amd64-v3-v1.19.0.gz"

    def test_missing_tier_fails(self, fake_http, env_v3):
        fake_http.add(LATEST, release_payload(self.NAMES))
        with pytest.raises(NoMatchingAssetError, match="mihomo-linux-amd64-v2"):
            resolve_artifact(env_v3.with_tier("v2"))

    def test_missing_tier_with_fallback(self, fake_http, env_v3):
        fake_http.add(LATEST, release_payload(self.NAMES))
        artifact = resolve_artifact(env_v3.with_tier("v2"), tier_fallback=True)
        assert artifact.tier == "v1"
