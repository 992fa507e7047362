"""
L4 Execution — Fetch, unpack and place the core binary.

The artifact is downloaded and decompressed in a per-run scratch
directory, then moved onto the canonical path with ``os.replace`` so
the final path never holds a half-written binary.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import tempfile
import zlib
from pathlib import Path

from mihomo_installer.core.errors import DownloadError
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.models.release import SelectedArtifact
from mihomo_installer.core.services.provision.data.constants import (
    CONNECT_TIMEOUT,
    DOWNLOAD_TIMEOUT,
    SMOKE_TEST_TIMEOUT,
)
from mihomo_installer.core.services.provision.domain.deadline import Deadline
from mihomo_installer.core.services.provision.execution.http import (
    _verify_checksum,
    download_file,
)
from mihomo_installer.core.services.provision.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)

_ELF_MAGIC = b"\x7fELF"


def _decompress(archive: Path, dest: Path) -> int:
    """gunzip ``archive`` into ``dest``. Returns bytes written."""
    try:
        with gzip.open(archive, "rb") as src, open(dest, "wb") as out:
            shutil.copyfileobj(src, out)
    except (OSError, EOFError, zlib.error) as e:
        raise DownloadError(f"Cannot decompress {archive.name}: {e}") from e
    return dest.stat().st_size


def _check_executable(path: Path) -> None:
    """Reject empty files and anything that is not an ELF binary."""
    with open(path, "rb") as f:
        head = f.read(4)
    if not head:
        raise DownloadError("Decompressed binary is empty")
    if head != _ELF_MAGIC:
        raise DownloadError(f"Decompressed file is not an ELF binary (magic {head!r})")


def _place_atomically(src: Path, dest: Path) -> None:
    """Copy next to ``dest`` then rename over it.

    Only a same-directory rename is atomic; scratch may live on
    another filesystem.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    staging = dest.with_name(f".{dest.name}.new.{os.getpid()}")
    try:
        shutil.copy2(src, staging)
        os.chmod(staging, 0o755)
        os.replace(staging, dest)
    except OSError as e:
        raise DownloadError(f"Cannot install binary to {dest}: {e}") from e
    finally:
        staging.unlink(missing_ok=True)


def install_binary(
    artifact: SelectedArtifact,
    binary_path: Path,
    *,
    deadline: Deadline | None = None,
    checksum: str | None = None,
) -> StageReceipt:
    """Download ``artifact`` and install it at ``binary_path``.

    Scratch files are removed on success and on failure.

    Raises:
        DownloadError: On download, checksum, decompress or placement failure.
    """
    url = artifact.asset.download_url
    logger.info("Downloading: %s", url)

    with tempfile.TemporaryDirectory(prefix=f"mihomo_install.{os.getpid()}.") as tmp:
        scratch = Path(tmp)
        archive = scratch / "mihomo.gz"
        unpacked = scratch / "mihomo"

        size = download_file(
            url,
            archive,
            connect_timeout=CONNECT_TIMEOUT,
            total_timeout=DOWNLOAD_TIMEOUT,
            deadline=deadline or Deadline.unbounded(),
        )
        if size == 0:
            raise DownloadError(f"Downloaded file is empty: {url}")

        if checksum:
            if not _verify_checksum(archive, checksum):
                raise DownloadError(f"Checksum mismatch for {artifact.asset.name}")
            logger.info("Checksum verified (%s)", checksum.split(":", 1)[0])

        _decompress(archive, unpacked)
        _check_executable(unpacked)
        unpacked.chmod(0o755)
        _place_atomically(unpacked, binary_path)

    logger.info("mihomo installed to %s", binary_path)
    return StageReceipt.success(
        "install_binary",
        output=str(binary_path),
        metadata={
            "asset": artifact.asset.name,
            "tag": artifact.tag,
            "tier": artifact.tier,
            "download_bytes": size,
        },
    )


def smoke_test(binary_path: Path) -> StageReceipt:
    """Run ``<binary> -v``. Failure is reported, never raised."""
    result = _run_subprocess([str(binary_path), "-v"], timeout=SMOKE_TEST_TIMEOUT)
    if result["ok"]:
        version = result["stdout"].strip().splitlines()[0] if result["stdout"].strip() else ""
        logger.info("%s", version or "mihomo -v ok")
        return StageReceipt.success("smoke_test", output=version)

    detail = result.get("stderr") or result.get("error", "")
    logger.warning("mihomo -v failed: %s", detail)
    return StageReceipt.failure("smoke_test", error=result.get("error", "smoke test failed"),
                                metadata={"stderr": result.get("stderr", "")})
