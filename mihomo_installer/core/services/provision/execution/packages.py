"""
L4 Execution — System package prerequisites.

Installs CA certificates (and git when the web UI is wanted) through
whichever package manager the prober found.
"""

from __future__ import annotations

import logging

from mihomo_installer.core.errors import MissingPackageManagerError
from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.services.provision.data.constants import (
    BASE_PACKAGES,
    PACKAGE_TIMEOUT,
    UI_PACKAGES,
)
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.subprocess_runner import (
    _require_ok,
    _run_subprocess,
)

logger = logging.getLogger(__name__)


def package_commands(manager: str, packages: list[str]) -> list[list[str]]:
    """Commands that install ``packages`` with ``manager``.

    Raises:
        MissingPackageManagerError: For ``none`` or an unknown manager.
    """
    if manager in ("dnf", "yum"):
        return [[manager, "-y", "install", *packages]]
    if manager == "apt":
        return [
            ["apt-get", "update", "-y"],
            ["apt-get", "install", "-y", *packages],
        ]
    raise MissingPackageManagerError("No supported package manager found (dnf/yum/apt-get).")


def install_dependencies(
    env: EnvironmentDescriptor,
    *,
    with_ui: bool = False,
    deadline: Deadline | None = None,
) -> StageReceipt:
    """Install prerequisite packages. Any failure is fatal.

    Raises:
        MissingPackageManagerError: If the host has no package manager.
        CommandError: If the package manager fails.
    """
    packages = list(BASE_PACKAGES) + (list(UI_PACKAGES) if with_ui else [])
    commands = package_commands(env.package_manager, packages)
    deadline = deadline or Deadline.unbounded()

    logger.info("Installing packages with %s: %s", env.package_manager, " ".join(packages))
    for cmd in commands:
        timeout = deadline.timeout(PACKAGE_TIMEOUT, what=cmd[0])
        env_overrides = {"DEBIAN_FRONTEND": "noninteractive"} if cmd[0] == "apt-get" else None
        _require_ok(cmd, _run_subprocess(cmd, timeout=timeout, env_overrides=env_overrides))

    return StageReceipt.success(
        "install_deps",
        output=" ".join(packages),
        metadata={"package_manager": env.package_manager},
    )
