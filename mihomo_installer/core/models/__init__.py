"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from mihomo_installer.core.models import EnvironmentDescriptor, InstallPaths
"""

from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.paths import InstallPaths
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.models.release import (
    ReleaseAsset,
    ReleaseIndex,
    SelectedArtifact,
)
from mihomo_installer.core.models.report import InstallReport

__all__ = [
    "EnvironmentDescriptor",
    "InstallPaths",
    "InstallReport",
    "ReleaseAsset",
    "ReleaseIndex",
    "SelectedArtifact",
    "StageReceipt",
]
