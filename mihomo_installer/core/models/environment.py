"""
Environment descriptor — what the host can run.

Computed once by the capability prober and handed to every later
stage by value. Frozen: no stage may change what was detected.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

MicroarchTier = Literal["v1", "v2", "v3"]
PackageManager = Literal["dnf", "yum", "apt", "none"]
InitSystem = Literal["systemd", "openrc", "initd", "unknown"]


class EnvironmentDescriptor(BaseModel):
    """Immutable snapshot of host capabilities."""

    model_config = ConfigDict(frozen=True)

    architecture: str                       # normalised, e.g. "amd64"
    microarch_tier: MicroarchTier = "v1"
    package_manager: PackageManager = "none"
    init_system: InitSystem = "unknown"
    tier_source: str = "default"            # loader | cpuinfo | override | default

    def with_tier(self, tier: MicroarchTier) -> EnvironmentDescriptor:
        """Return a copy pinned to another tier (used by tier fallback)."""
        return self.model_copy(update={"microarch_tier": tier})
