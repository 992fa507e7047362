"""
L4 Execution — systemd unit registration.

Writes the unit file (backing up the old one), reloads systemd,
enables and restarts the service. Reload/enable failures are fatal;
the closing status query is informational only.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mihomo_installer.core.models.paths import InstallPaths
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.services.provision.data.config_template import UNIT_TEMPLATE
from mihomo_installer.core.services.provision.data.constants import (
    SERVICE_NAME,
    SYSTEMCTL_TIMEOUT,
)
from mihomo_installer.core.services.provision.detection.service_status import (
    get_service_status,
)
from mihomo_installer.core.services.provision.execution.backup import backup_file
from mihomo_installer.core.services.provision.execution.subprocess_runner import (
    _require_ok,
    _run_subprocess,
)

logger = logging.getLogger(__name__)


def render_unit(paths: InstallPaths) -> str:
    """Unit file text pointing at the canonical binary and config dir."""
    return UNIT_TEMPLATE.format(
        binary=paths.runtime_path(paths.binary),
        config_dir=paths.runtime_path(paths.config_dir),
    )


def write_unit(paths: InstallPaths) -> Path | None:
    """Write the unit file. Returns the backup of the previous one, if any."""
    unit = paths.unit_file
    backup = backup_file(unit)
    unit.parent.mkdir(parents=True, exist_ok=True)
    unit.write_text(render_unit(paths), encoding="utf-8")
    unit.chmod(0o644)
    logger.debug("Wrote unit file %s", unit)
    return backup


def _systemctl(*args: str) -> dict:
    cmd = ["systemctl", *args]
    return _require_ok(cmd, _run_subprocess(cmd, timeout=SYSTEMCTL_TIMEOUT))


def restart_service(service: str = SERVICE_NAME) -> StageReceipt:
    """Restart the unit; failure is reported, never raised."""
    cmd = ["systemctl", "restart", service]
    result = _run_subprocess(cmd, timeout=SYSTEMCTL_TIMEOUT)
    if result["ok"]:
        logger.info("%s restarted.", service)
        return StageReceipt.success("restart_service", output=service)
    logger.warning("systemctl restart %s failed: %s", service,
                   result.get("stderr") or result.get("error"))
    return StageReceipt.failure("restart_service", error=result.get("error", "restart failed"))


def service_status_receipt(service: str = SERVICE_NAME) -> StageReceipt:
    """Best-effort status display for the end of the run."""
    status = get_service_status(service)
    if not status["ok"]:
        logger.warning("Cannot query status of %s: %s", service, status.get("error", ""))
        return StageReceipt.failure("service_status", error=status.get("error") or "status unavailable",
                                    metadata=status)
    line = f"{service}: {status['state']} ({status['sub_state']})"
    if status["active"]:
        logger.info(line)
        return StageReceipt.success("service_status", output=line, metadata=status)
    logger.warning(line)
    return StageReceipt.failure("service_status", error=line, metadata=status)


def register_service(paths: InstallPaths, service: str = SERVICE_NAME) -> StageReceipt:
    """Install the unit and bring the service to running.

    Safe to re-run: ``enable --now`` is a no-op on an enabled, running
    unit, and the restart picks up a changed config or unit file.

    Raises:
        CommandError: If daemon-reload, enable or restart fails.
    """
    backup = write_unit(paths)
    _systemctl("daemon-reload")
    _systemctl("enable", "--now", service)
    _systemctl("restart", service)
    logger.info("systemd service enabled: %s", service)
    return StageReceipt.success(
        "register_service",
        output=str(paths.unit_file),
        metadata={"backup": str(backup) if backup else None},
    )
