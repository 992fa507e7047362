"""
L5 Orchestration — Top-level install coordinator.

Runs the stages in order:

    probe → deps → resolve → install binary → config → UI → service

Each stage takes the previous stages' values as arguments. A fatal
stage raises ``ProvisionError`` and stops the run with nothing rolled
back; soft failures are recorded on the report and the run goes on.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable

from mihomo_installer.core.config.settings import InstallSettings
from mihomo_installer.core.errors import (
    NoMatchingAssetError,
    PermissionDeniedError,
    ProvisionError,
)
from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.paths import InstallPaths
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.models.report import InstallReport
from mihomo_installer.core.services.provision.data.constants import RELEASES_PAGE
from mihomo_installer.core.services.provision.detection.host import probe_environment
from mihomo_installer.core.services.provision.domain.config_render import ConfigRenderError
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.config_writer import (
    materialize_config,
)
from mihomo_installer.core.services.provision.execution.download import (
    install_binary,
    smoke_test,
)
from mihomo_installer.core.services.provision.execution.packages import install_dependencies
from mihomo_installer.core.services.provision.execution.release import resolve_artifact
from mihomo_installer.core.services.provision.execution.service import (
    register_service,
    service_status_receipt,
)
from mihomo_installer.core.services.provision.execution.ui import install_ui

logger = logging.getLogger(__name__)


def require_root(paths: InstallPaths) -> None:
    """Installing onto the live host needs root.

    Raises:
        PermissionDeniedError: When not root and ``paths`` is the host.
    """
    if paths.is_system and os.geteuid() != 0:
        raise PermissionDeniedError("Please run as root (use sudo).")


def _timed(stage: Callable[[], StageReceipt]) -> StageReceipt:
    start = time.monotonic()
    receipt = stage()
    receipt.duration_ms = int((time.monotonic() - start) * 1000)
    return receipt


def run_install(
    settings: InstallSettings,
    paths: InstallPaths | None = None,
    *,
    env: EnvironmentDescriptor | None = None,
) -> InstallReport:
    """Provision mihomo end to end.

    Args:
        settings: Validated installer settings.
        paths: Canonical paths (default: the live host).
        env: Pre-probed environment; probed here when omitted.

    Returns:
        InstallReport. ``report.error`` is set when a fatal stage
        stopped the run; the receipts up to that point are kept.
    """
    paths = paths or InstallPaths()
    report = InstallReport(mixed_port=settings.mixed_port, controller=settings.controller)
    deadline = Deadline(settings.run_budget)

    try:
        require_root(paths)

        if env is None:
            env = probe_environment(cpu_level=settings.cpu_level)
        report.environment = env
        report.add(StageReceipt.success(
            "probe",
            output=f"{env.architecture}-{env.microarch_tier}",
            metadata=env.model_dump(),
        ))

        if settings.skip_deps:
            report.add(StageReceipt.skip("install_deps", "skipped by request"))
        else:
            report.add(_timed(lambda: install_dependencies(
                env, with_ui=settings.install_ui, deadline=deadline,
            )))

        artifact = resolve_artifact(
            env,
            repo=settings.release_repo,
            version=settings.release,
            tier_fallback=settings.tier_fallback,
            deadline=deadline,
        )
        report.artifact = artifact
        report.add(StageReceipt.success(
            "resolve",
            output=artifact.asset.name,
            metadata={"pattern": artifact.pattern, "tag": artifact.tag,
                      "candidates": artifact.candidates},
        ))

        report.add(_timed(lambda: install_binary(
            artifact, paths.binary, deadline=deadline, checksum=settings.checksum,
        )))
        report.add(_timed(lambda: smoke_test(paths.binary)))

        outcome = materialize_config(settings, paths)
        report.add(outcome.receipt)
        report.secret = outcome.secret

        if settings.install_ui:
            ui_receipt = report.add(_timed(lambda: install_ui(
                paths, deadline=deadline, restart=False,
            )))
            report.ui_installed = ui_receipt.ok

        if settings.skip_service:
            report.add(StageReceipt.skip("register_service", "skipped by request"))
        elif env.init_system != "systemd":
            logger.warning("Init system is %s, not systemd; service not registered.",
                           env.init_system)
            report.add(StageReceipt.skip("register_service",
                                         f"init system {env.init_system}"))
        else:
            report.add(_timed(lambda: register_service(paths)))
            report.add(service_status_receipt())

    except NoMatchingAssetError as e:
        report.error = str(e)
        logger.error("Cannot find asset for %s", e.pattern)
        logger.error("    Try checking releases manually: %s", RELEASES_PAGE)
        return report
    except ProvisionError as e:
        report.error = str(e)
        logger.error("%s", e)
        return report
    except OSError as e:
        report.error = f"Filesystem error: {e}"
        logger.error("%s", report.error)
        return report
    except ConfigRenderError as e:
        report.error = f"Cannot render config: {e}"
        logger.error("%s", report.error)
        return report

    for receipt in report.soft_failures:
        logger.debug("Soft failure in %s: %s", receipt.stage, receipt.error)
    return report


def summary_lines(report: InstallReport) -> list[str]:
    """Closing hints: proxy address, API, how to test, UI tunnel."""
    port = report.mixed_port
    lines = [
        "==================== DONE ====================",
        f"Proxy:  http+socks mixed => 127.0.0.1:{port}",
        f"API:    {report.controller}",
    ]
    if report.secret:
        lines.append(f"Secret: {report.secret}")
    lines += [
        "",
        "Test proxy:",
        f"  curl -x {report.proxy_url} -s https://ifconfig.me ; echo",
    ]
    if report.ui_installed:
        api_port = report.controller.rsplit(":", 1)[-1]
        lines += [
            "",
            "Web UI (recommended via SSH tunnel, on your local PC):",
            f"  ssh -L {api_port}:127.0.0.1:{api_port} root@<server_ip>",
            f"  then open: http://127.0.0.1:{api_port}/ui/",
        ]
    lines.append("==============================================")
    return lines
