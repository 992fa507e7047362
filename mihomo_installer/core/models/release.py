"""
Release models — the upstream release index and the chosen asset.
"""

from __future__ import annotations

from posixpath import basename
from urllib.parse import urlparse

from pydantic import BaseModel, Field, model_validator


class ReleaseAsset(BaseModel):
    """One downloadable file of a release."""

    download_url: str
    name: str = ""
    size_bytes: int = 0

    @model_validator(mode="after")
    def _name_from_url(self) -> ReleaseAsset:
        if not self.name:
            self.name = basename(urlparse(self.download_url).path)
        return self


class ReleaseIndex(BaseModel):
    """Assets of one release, in the order the API listed them."""

    tag: str = ""
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [a.name for a in self.assets]


class SelectedArtifact(BaseModel):
    """The single asset picked for this host."""

    asset: ReleaseAsset
    pattern: str
    tier: str
    tag: str = ""
    candidates: int = 1             # how many assets matched the pattern
