"""
L4 Execution — metacubexd web UI.

Shallow-clones the prebuilt UI into the config directory and points
``external-ui`` at it. Every failure here is soft: the proxy works
without a dashboard.
"""

from __future__ import annotations

import logging
import shutil

from mihomo_installer.core.models.paths import InstallPaths
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.services.provision.data.constants import (
    CLONE_TIMEOUT,
    SERVICE_NAME,
    UI_BRANCH,
    UI_REPO_URL,
)
from mihomo_installer.core.services.provision.domain.config_render import ConfigRenderError
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.config_writer import (
    ensure_ui_reference,
)
from mihomo_installer.core.services.provision.execution.service import restart_service
from mihomo_installer.core.services.provision.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)


def clone_ui(paths: InstallPaths, *, deadline: Deadline | None = None) -> StageReceipt:
    """Replace the UI directory with a fresh shallow clone."""
    if not shutil.which("git"):
        logger.warning("git not found; UI install skipped.")
        return StageReceipt.skip("install_ui", "git not found")

    deadline = deadline or Deadline.unbounded()
    ui_dir = paths.ui_dir
    logger.info("Installing metacubexd (%s) to %s ...", UI_BRANCH, ui_dir)

    shutil.rmtree(ui_dir, ignore_errors=True)
    ui_dir.parent.mkdir(parents=True, exist_ok=True)
    cmd = ["git", "clone", "--depth", "1", "-b", UI_BRANCH, UI_REPO_URL, str(ui_dir)]
    result = _run_subprocess(
        cmd,
        timeout=deadline.timeout(CLONE_TIMEOUT, what="git clone"),
        env_overrides={"GIT_TERMINAL_PROMPT": "0"},
    )
    if not result["ok"]:
        logger.warning(
            "UI clone failed (network/proxy). You can retry later with proxy-enabled git. %s",
            (result.get("stderr") or result.get("error", "")).strip(),
        )
        shutil.rmtree(ui_dir, ignore_errors=True)
        return StageReceipt.failure("install_ui", error=result.get("error", "clone failed"),
                                    metadata={"stderr": result.get("stderr", "")})

    logger.info("UI installed at %s", ui_dir)
    return StageReceipt.success("install_ui", output=str(ui_dir))


def install_ui(
    paths: InstallPaths,
    *,
    deadline: Deadline | None = None,
    restart: bool = True,
    service: str = SERVICE_NAME,
) -> StageReceipt:
    """Clone the UI, wire it into config.yaml, optionally restart.

    ``restart=False`` leaves the restart to a later stage (the install
    pipeline restarts the service when registering it).
    """
    receipt = clone_ui(paths, deadline=deadline)
    if not receipt.ok:
        return receipt

    try:
        changed = ensure_ui_reference(paths)
    except (OSError, ConfigRenderError) as e:
        logger.warning("Cannot add external-ui to %s: %s", paths.config_file, e)
        return StageReceipt.failure("install_ui", error=f"config not updated: {e}",
                                    metadata={"ui_dir": str(paths.ui_dir)})

    receipt.metadata["config_changed"] = changed
    if restart:
        receipt.metadata["restarted"] = restart_service(service).ok
    return receipt
