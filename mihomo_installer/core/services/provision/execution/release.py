"""
L4 Execution — Release index fetch and artifact resolution.

Queries the GitHub releases API fresh on every run (no cache) and
hands the index to the pure selection logic in ``domain.asset_matching``.
"""

from __future__ import annotations

import logging

from mihomo_installer.core.errors import ReleaseIndexError
from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.release import ReleaseAsset, ReleaseIndex, SelectedArtifact
from mihomo_installer.core.services.provision.data.constants import (
    CONNECT_TIMEOUT,
    INDEX_TIMEOUT,
    RELEASE_API,
    RELEASE_REPO,
)
from mihomo_installer.core.services.provision.domain.asset_matching import (
    select_asset,
    select_asset_with_fallback,
)
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.http import HTTPFetchError, fetch_json

logger = logging.getLogger(__name__)


def release_api_url(repo: str = RELEASE_REPO, version: str = "latest") -> str:
    """API URL for ``latest`` or a specific tag (``v`` prefix added)."""
    if version == "latest":
        ref = "latest"
    else:
        tag = version if version.startswith("v") else f"v{version}"
        ref = f"tags/{tag}"
    return RELEASE_API.format(repo=repo, ref=ref)


def parse_release(data: object) -> ReleaseIndex:
    """Build a ReleaseIndex from the API's JSON payload."""
    if not isinstance(data, dict):
        raise ReleaseIndexError(f"Unexpected release payload: {type(data).__name__}")
    assets: list[ReleaseAsset] = []
    for raw in data.get("assets") or []:
        url = raw.get("browser_download_url") if isinstance(raw, dict) else None
        if not url:
            continue
        assets.append(ReleaseAsset(
            download_url=url,
            name=raw.get("name", ""),
            size_bytes=raw.get("size", 0) or 0,
        ))
    return ReleaseIndex(tag=data.get("tag_name", ""), assets=assets)


def fetch_release_index(
    repo: str = RELEASE_REPO,
    version: str = "latest",
    *,
    deadline: Deadline | None = None,
) -> ReleaseIndex:
    """Fetch the asset list of one release.

    Raises:
        ReleaseIndexError: On network failure, bad payload or no assets.
    """
    url = release_api_url(repo, version)
    logger.info("Fetching %s release info from GitHub API...", version)
    try:
        data = fetch_json(
            url,
            connect_timeout=CONNECT_TIMEOUT,
            total_timeout=INDEX_TIMEOUT,
            deadline=deadline or Deadline.unbounded(),
        )
    except HTTPFetchError as e:
        raise ReleaseIndexError(f"Failed to fetch release info: {e}") from e

    index = parse_release(data)
    if not index.assets:
        raise ReleaseIndexError(f"No assets found for {repo} {index.tag or version}")
    logger.debug("Release %s lists %d assets", index.tag, len(index.assets))
    return index


def resolve_artifact(
    env: EnvironmentDescriptor,
    *,
    repo: str = RELEASE_REPO,
    version: str = "latest",
    tier_fallback: bool = False,
    deadline: Deadline | None = None,
) -> SelectedArtifact:
    """Fetch the index and pick the asset for ``env``.

    Raises:
        ReleaseIndexError: If the index cannot be fetched.
        NoMatchingAssetError: If no asset matches (after fallback, if on).
    """
    index = fetch_release_index(repo, version, deadline=deadline)
    if tier_fallback:
        artifact = select_asset_with_fallback(index, env)
    else:
        artifact = select_asset(index, env)
    logger.info("Selected %s (%s)", artifact.asset.name, artifact.tag or version)
    return artifact
