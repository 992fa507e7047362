"""
L1 Domain — Release asset selection (pure).

Builds the asset name pattern for a host and picks exactly one
asset from a release index.
"""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase

from mihomo_installer.core.errors import NoMatchingAssetError
from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.release import ReleaseAsset, ReleaseIndex, SelectedArtifact
from mihomo_installer.core.services.provision.data.constants import (
    ASSET_EXTENSION,
    ASSET_PLATFORM,
    ASSET_PREFIX,
    MICROARCH_TIERS,
)

logger = logging.getLogger(__name__)


def asset_pattern(env: EnvironmentDescriptor, *, prefix: str = ASSET_PREFIX) -> str:
    """Glob for this host, e.g. ``mihomo-linux-amd64-v3*.gz``."""
    return (
        f"{prefix}-{ASSET_PLATFORM}-{env.architecture}-{env.microarch_tier}"
        f"*{ASSET_EXTENSION}"
    )


def _tie_break_key(asset: ReleaseAsset) -> tuple[int, str]:
    # Shortest name first: the plain build over -go120 style variants.
    return (len(asset.name), asset.name)


def matching_assets(index: ReleaseIndex, pattern: str) -> list[ReleaseAsset]:
    """All assets whose name matches ``pattern``, best candidate first."""
    found = [a for a in index.assets if fnmatchcase(a.name, pattern)]
    return sorted(found, key=_tie_break_key)


def select_asset(index: ReleaseIndex, env: EnvironmentDescriptor) -> SelectedArtifact:
    """Pick the one asset built for this host's arch and tier.

    Several matches are resolved by shortest name, then lexicographic
    order, regardless of how the API listed them.

    Raises:
        NoMatchingAssetError: Naming the exact pattern tried.
    """
    pattern = asset_pattern(env)
    found = matching_assets(index, pattern)
    if not found:
        raise NoMatchingAssetError(pattern, index.names, tag=index.tag)

    chosen = found[0]
    if len(found) > 1:
        logger.info(
            "%d assets match %s; picked %s (others: %s)",
            len(found), pattern, chosen.name, ", ".join(a.name for a in found[1:]),
        )
    return SelectedArtifact(
        asset=chosen,
        pattern=pattern,
        tier=env.microarch_tier,
        tag=index.tag,
        candidates=len(found),
    )


def fallback_tiers(tier: str) -> list[str]:
    """Tiers to try in order: ``tier`` then every lower one."""
    if tier not in MICROARCH_TIERS:
        return [tier]
    return list(MICROARCH_TIERS[MICROARCH_TIERS.index(tier):])


def select_asset_with_fallback(
    index: ReleaseIndex,
    env: EnvironmentDescriptor,
) -> SelectedArtifact:
    """Like ``select_asset`` but degrades v3 → v2 → v1 on a miss.

    Raises:
        NoMatchingAssetError: For the host's own tier when no tier matched.
    """
    misses: list[NoMatchingAssetError] = []
    for tier in fallback_tiers(env.microarch_tier):
        try:
            return select_asset(index, env.with_tier(tier))
        except NoMatchingAssetError as e:
            misses.append(e)
            logger.warning("No asset for %s, trying a lower tier", e.pattern)
    raise misses[0]
