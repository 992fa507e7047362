"""
L3 Detection — Host capability probes.

Architecture, CPU microarchitecture tier, package manager and init
system, folded into one EnvironmentDescriptor by ``probe_environment``.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path

from mihomo_installer.core.errors import UnsupportedPlatformError
from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.services.provision.data.constants import (
    _IARCH_MAP,
    DYNAMIC_LOADER,
    MICROARCH_TIERS,
    PACKAGE_MANAGERS,
    SUPPORTED_ARCH,
    TIER_CPU_FLAGS,
)

logger = logging.getLogger(__name__)


# ── Architecture ──────────────────────────────────────────────

def detect_architecture(machine: str | None = None) -> str:
    """Normalised architecture name (``x86_64`` → ``amd64``)."""
    raw = machine if machine is not None else platform.machine()
    return _IARCH_MAP.get(raw, raw.lower())


# ── Microarchitecture tier ────────────────────────────────────

def _loader_help(loader: str) -> str:
    """Output of ``<ld.so> --help``, or "" when unavailable."""
    if not os.access(loader, os.X_OK):
        return ""
    try:
        r = subprocess.run(
            [loader, "--help"],
            capture_output=True, text=True, timeout=5,
        )
        return r.stdout
    except (OSError, subprocess.TimeoutExpired):
        return ""


def tier_from_loader_help(text: str) -> str | None:
    """Highest tier glibc's loader reports as supported.

    Looks for lines like ``x86-64-v3 (supported, searched)``.
    """
    for tier in MICROARCH_TIERS:
        if tier == "v1":
            continue
        if f"x86-64-{tier} (supported" in text:
            return tier
    return None


def _read_cpu_flags(cpuinfo: Path = Path("/proc/cpuinfo")) -> set[str]:
    try:
        with open(cpuinfo) as f:
            for line in f:
                if line.startswith("flags"):
                    return set(line.split(":", 1)[1].split())
    except (OSError, IndexError):
        pass
    return set()


def tier_from_cpu_flags(flags: set[str]) -> str | None:
    """Highest tier whose required /proc/cpuinfo flags are all present."""
    for tier in MICROARCH_TIERS:
        required = TIER_CPU_FLAGS.get(tier)
        if required and required <= flags:
            return tier
    return None


def detect_microarch_tier(
    loader: str = DYNAMIC_LOADER,
    cpuinfo: Path = Path("/proc/cpuinfo"),
) -> tuple[str, str]:
    """Detect the x86-64 microarchitecture level.

    The dynamic loader is asked first; /proc/cpuinfo flags are the
    fallback for hosts whose loader does not report levels.

    Returns:
        ``(tier, source)`` where source is ``loader``, ``cpuinfo`` or
        ``default`` (inconclusive, tier ``v1``).
    """
    tier = tier_from_loader_help(_loader_help(loader))
    if tier:
        return tier, "loader"
    tier = tier_from_cpu_flags(_read_cpu_flags(cpuinfo))
    if tier:
        return tier, "cpuinfo"
    return "v1", "default"


# ── Package manager / init system ─────────────────────────────

def detect_package_manager() -> str:
    """First of dnf, yum, apt-get found on PATH, else ``none``."""
    for cmd, name in PACKAGE_MANAGERS:
        if shutil.which(cmd):
            return name
    return "none"


def detect_init_system() -> str:
    """Detect the init system (systemd, openrc, initd, or unknown)."""
    if Path("/run/systemd/system").exists():
        return "systemd"
    if shutil.which("rc-service"):
        return "openrc"
    if Path("/etc/init.d").exists():
        return "initd"
    return "unknown"


# ── Descriptor ────────────────────────────────────────────────

def probe_environment(*, cpu_level: str | None = None) -> EnvironmentDescriptor:
    """Inspect the live host once and freeze the result.

    Args:
        cpu_level: Force a tier instead of detecting it.

    Raises:
        UnsupportedPlatformError: If the host is not x86_64.
    """
    arch = detect_architecture()
    if arch != SUPPORTED_ARCH:
        raise UnsupportedPlatformError(
            f"This installer targets x86_64. Detected: {platform.machine()}"
        )

    if cpu_level:
        tier, source = cpu_level, "override"
    else:
        tier, source = detect_microarch_tier()

    env = EnvironmentDescriptor(
        architecture=arch,
        microarch_tier=tier,
        package_manager=detect_package_manager(),
        init_system=detect_init_system(),
        tier_source=source,
    )
    logger.info("CPU level => %s (%s)", env.microarch_tier, env.tier_source)
    logger.debug("Environment: %s", env.model_dump())
    return env
