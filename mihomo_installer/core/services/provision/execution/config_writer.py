"""
L4 Execution — config.yaml materialization.

Idempotent by default: an existing config is left alone unless the
caller forces a rewrite, in which case the old file is backed up
first. The file holds the API secret and is written mode 0600.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from mihomo_installer.core.config.settings import InstallSettings
from mihomo_installer.core.models.paths import InstallPaths
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.services.provision.data.constants import PLACEHOLDER_SUB_URL
from mihomo_installer.core.services.provision.domain.config_render import (
    ConfigParams,
    generate_secret,
    render_config,
    set_external_ui,
)
from mihomo_installer.core.services.provision.execution.backup import backup_file

logger = logging.getLogger(__name__)

CONFIG_MODE = 0o600


@dataclass
class ConfigOutcome:
    """What ``materialize_config`` did."""

    receipt: StageReceipt
    written: bool = False
    secret: str | None = None       # only when this run wrote the file
    backup: Path | None = None


def write_private(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` so it is never readable beyond the owner.

    The file is created 0600; an existing file is chmod-ed back to
    0600 before its content is replaced.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_MODE)
    try:
        os.fchmod(fd, CONFIG_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fd = -1
            f.write(text)
    finally:
        if fd != -1:
            os.close(fd)


def build_params(settings: InstallSettings, paths: InstallPaths) -> ConfigParams:
    """Resolve template parameters, generating what the caller left out."""
    secret = settings.secret or generate_secret()
    sub_url = settings.sub_url
    if not sub_url:
        sub_url = PLACEHOLDER_SUB_URL
        logger.warning("SUB_URL not provided. Writing placeholder URL into config.")
    ui_path = str(paths.runtime_path(paths.ui_dir)) if settings.install_ui else None
    return ConfigParams(
        mixed_port=settings.mixed_port,
        controller=settings.controller,
        secret=secret,
        sub_url=sub_url,
        ui_path=ui_path,
    )


def materialize_config(settings: InstallSettings, paths: InstallPaths) -> ConfigOutcome:
    """Write config.yaml unless one exists and ``force_config`` is off.

    Returns:
        ConfigOutcome with a ``skipped`` receipt when left untouched.
    """
    cfg = paths.config_file
    paths.providers_dir.mkdir(parents=True, exist_ok=True)

    if cfg.exists() and not settings.force_config:
        msg = f"Config exists: {cfg} (skip). Set FORCE_CONFIG=1 to overwrite."
        logger.info(msg)
        return ConfigOutcome(receipt=StageReceipt.skip("write_config", msg))

    backup = backup_file(cfg)
    params = build_params(settings, paths)
    write_private(cfg, render_config(params))

    logger.info("Wrote config: %s", cfg)
    logger.info("API secret => %s", params.secret)
    return ConfigOutcome(
        receipt=StageReceipt.success(
            "write_config",
            output=str(cfg),
            metadata={
                "backup": str(backup) if backup else None,
                "secret_generated": not settings.secret,
                "ui": params.ui_path is not None,
            },
        ),
        written=True,
        secret=params.secret,
        backup=backup,
    )


def ensure_ui_reference(paths: InstallPaths) -> bool:
    """Point ``external-ui`` at the UI directory.

    Returns:
        True if the file changed.

    Raises:
        FileNotFoundError: If there is no config to edit.
    """
    cfg = paths.config_file
    text = cfg.read_text(encoding="utf-8")
    new_text, changed = set_external_ui(text, str(paths.runtime_path(paths.ui_dir)))
    if changed:
        logger.info("Adding external-ui to config...")
        write_private(cfg, new_text)
    return changed
