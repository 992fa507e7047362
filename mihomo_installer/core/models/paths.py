"""
Canonical install paths.

Every file the installer owns lives at one fixed location. The
defaults are the real host paths; ``InstallPaths.under(root)`` moves
the whole set below another directory for staging and tests.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class InstallPaths(BaseModel):
    """Filesystem contract of the installer."""

    root: Path = Path("/")
    binary: Path = Path("/usr/local/bin/mihomo")
    config_dir: Path = Path("/etc/mihomo")
    unit_file: Path = Path("/etc/systemd/system/mihomo.service")

    @classmethod
    def under(cls, root: Path | str) -> InstallPaths:
        """Re-root every canonical path below ``root``."""
        base = Path(root)
        if base == Path("/"):
            return cls()
        defaults = cls()
        return cls(
            root=base,
            binary=base / defaults.binary.relative_to("/"),
            config_dir=base / defaults.config_dir.relative_to("/"),
            unit_file=base / defaults.unit_file.relative_to("/"),
        )

    @property
    def is_system(self) -> bool:
        """True when installing onto the live host (root is ``/``)."""
        return self.root == Path("/")

    @property
    def config_file(self) -> Path:
        return self.config_dir / "config.yaml"

    @property
    def providers_dir(self) -> Path:
        return self.config_dir / "proxy_providers"

    @property
    def ui_dir(self) -> Path:
        return self.config_dir / "ui"

    def runtime_path(self, path: Path) -> Path:
        """Where ``path`` lives as seen by the running service.

        Files written below a staging root are referenced by their
        final host location in config.yaml and the unit file.
        """
        if self.is_system:
            return path
        return Path("/") / path.relative_to(self.root)
