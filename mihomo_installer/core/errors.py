"""
Installer errors — the fatal failure classes.

Anything raised from here aborts the whole install. Soft failures
(UI clone, smoke test, status query) never raise: they come back as
a skipped or failed StageReceipt and a WARNING log line.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Fatal installer failure. The CLI prints it and exits 1."""


class PermissionDeniedError(ProvisionError):
    """The installer needs root for the canonical paths."""


class UnsupportedPlatformError(ProvisionError):
    """Host architecture is not the supported one (x86_64)."""


class MissingPackageManagerError(ProvisionError):
    """None of dnf / yum / apt-get is available."""


class ReleaseIndexError(ProvisionError):
    """The release index could not be fetched or was empty."""


class NoMatchingAssetError(ProvisionError):
    """No release asset matched the required name pattern."""

    def __init__(self, pattern: str, available: list[str] | None = None, tag: str = ""):
        self.pattern = pattern
        self.available = list(available or [])
        self.tag = tag
        where = f" in release {tag}" if tag else ""
        message = f"No matching asset for pattern '{pattern}'{where}"
        if self.available:
            message += f" (available: {', '.join(self.available[:10])})"
        super().__init__(message)


class DownloadError(ProvisionError):
    """Artifact download, decompression or verification failed."""


class DeadlineExceeded(ProvisionError):
    """The run-level wall-clock budget ran out."""


class CommandError(ProvisionError):
    """A required system command (systemctl, package manager) failed."""

    def __init__(self, cmd: list[str], error: str, stderr: str = ""):
        self.cmd = list(cmd)
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"{' '.join(cmd)}: {error}{detail}")
