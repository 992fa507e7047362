"""
Installer settings — the caller-supplied parameters of one run.

Values come from CLI options, the environment, or a YAML settings
file; ``loader.load_settings`` merges them. This module only holds
the schema and its validation rules.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from mihomo_installer.core.services.provision.data.constants import (
    DEFAULT_CONTROLLER,
    DEFAULT_MIXED_PORT,
    DEFAULT_RUN_BUDGET,
    RELEASE_REPO,
)

_CONTROLLER_RE = re.compile(r"^(\[[0-9a-fA-F:]+\]|[A-Za-z0-9.\-]*):(\d{1,5})$")


class InstallSettings(BaseModel):
    """Validated installer parameters."""

    sub_url: str | None = None
    secret: str | None = None
    mixed_port: int = Field(default=DEFAULT_MIXED_PORT, ge=1, le=65535)
    controller: str = DEFAULT_CONTROLLER
    install_ui: bool = False
    force_config: bool = False

    release_repo: str = RELEASE_REPO
    release: str = "latest"                 # "latest" or a tag
    cpu_level: Literal["v1", "v2", "v3"] | None = None
    tier_fallback: bool = False
    sha256: str | None = None

    skip_deps: bool = False
    skip_service: bool = False
    run_budget: float = Field(default=DEFAULT_RUN_BUDGET, gt=0)

    @field_validator("sub_url")
    @classmethod
    def _check_sub_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"subscription URL must be http(s): {v}")
        if any(c.isspace() for c in v):
            raise ValueError("subscription URL must not contain whitespace")
        return v

    @field_validator("secret")
    @classmethod
    def _check_secret(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        if any(c.isspace() for c in v):
            raise ValueError("secret must not contain whitespace")
        if not v.isprintable():
            raise ValueError("secret must not contain control characters")
        return v

    @field_validator("controller")
    @classmethod
    def _check_controller(cls, v: str) -> str:
        m = _CONTROLLER_RE.match(v.strip())
        if not m or not 0 < int(m.group(2)) <= 65535:
            raise ValueError(f"controller must be host:port, got {v!r}")
        return v.strip()

    @field_validator("sha256")
    @classmethod
    def _check_sha256(cls, v: str | None) -> str | None:
        if not v:
            return None
        v = v.strip().lower()
        if v.startswith("sha256:"):
            v = v.split(":", 1)[1]
        if not re.fullmatch(r"[0-9a-f]{64}", v):
            raise ValueError("sha256 must be 64 hex characters")
        return v

    @property
    def checksum(self) -> str | None:
        """Checksum in ``algo:hex`` form, or None."""
        return f"sha256:{self.sha256}" if self.sha256 else None
