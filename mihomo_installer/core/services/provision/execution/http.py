"""
L4 Execution — HTTP helpers (urllib).

Release index queries and artifact downloads. Every request has a
connect timeout and a total timeout, both capped by the run deadline.
"""

from __future__ import annotations

import hashlib
import http.client
import json
import logging
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from mihomo_installer.core.errors import DeadlineExceeded, DownloadError
from mihomo_installer.core.services.provision.data.constants import USER_AGENT
from mihomo_installer.core.services.provision.domain.deadline import Deadline

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


class HTTPFetchError(Exception):
    """Network failure, timeout or non-2xx status."""


def _request(url: str, accept: str | None = None) -> urllib.request.Request:
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return urllib.request.Request(url, headers=headers)


def fetch_json(
    url: str,
    *,
    connect_timeout: float,
    total_timeout: float,
    deadline: Deadline,
) -> Any:
    """GET ``url`` and decode a JSON body.

    Raises:
        HTTPFetchError: On any network, status or decode failure.
        DeadlineExceeded: If the run budget is gone.
    """
    body = _read_all(
        url,
        connect_timeout=connect_timeout,
        total_timeout=total_timeout,
        deadline=deadline,
        accept="application/vnd.github+json",
    )
    try:
        return json.loads(body)
    except ValueError as e:
        raise HTTPFetchError(f"Invalid JSON from {url}: {e}") from e


def _read_all(
    url: str,
    *,
    connect_timeout: float,
    total_timeout: float,
    deadline: Deadline,
    accept: str | None = None,
) -> bytes:
    chunks: list[bytes] = []
    for chunk in _stream(url, connect_timeout=connect_timeout,
                         total_timeout=total_timeout, deadline=deadline, accept=accept):
        chunks.append(chunk)
    return b"".join(chunks)


def _set_read_timeout(resp: Any, seconds: float) -> None:
    """Lower the socket timeout of an open response, when it has one."""
    sock = getattr(getattr(getattr(resp, "fp", None), "raw", None), "_sock", None)
    if sock is not None:
        sock.settimeout(max(seconds, 0.001))


def _stream(
    url: str,
    *,
    connect_timeout: float,
    total_timeout: float,
    deadline: Deadline,
    accept: str | None = None,
):
    """Yield body chunks until the body ends or the total timeout runs out.

    Each read waits at most the time left, so a trickling server cannot
    stretch the call past ``total_timeout``.
    """
    total = deadline.timeout(total_timeout, what=f"GET {url}")
    ends_at = time.monotonic() + total

    try:
        with urllib.request.urlopen(_request(url, accept),
                                    timeout=min(connect_timeout, total)) as resp:
            status = getattr(resp, "status", 200)
            if not 200 <= status < 300:
                raise HTTPFetchError(f"HTTP {status} from {url}")
            while True:
                left = ends_at - time.monotonic()
                if left <= 0:
                    deadline.check(f"GET {url}")
                    raise HTTPFetchError(f"Timed out after {total:.0f}s: {url}")
                _set_read_timeout(resp, min(connect_timeout, left))
                # read1: return as soon as any bytes arrive
                chunk = resp.read1(_CHUNK)
                if not chunk:
                    break
                yield chunk
    except HTTPFetchError:
        raise
    except urllib.error.HTTPError as e:
        raise HTTPFetchError(f"HTTP {e.code} from {url}") from e
    except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as e:
        raise HTTPFetchError(f"Request failed for {url}: {e}") from e


def download_file(
    url: str,
    dest: Path,
    *,
    connect_timeout: float,
    total_timeout: float,
    deadline: Deadline,
) -> int:
    """Stream ``url`` into ``dest``. Returns bytes written.

    Raises:
        DownloadError: On any fetch failure.
        DeadlineExceeded: If the run budget is gone.
    """
    written = 0
    try:
        with open(dest, "wb") as f:
            for chunk in _stream(url, connect_timeout=connect_timeout,
                                 total_timeout=total_timeout, deadline=deadline):
                f.write(chunk)
                written += len(chunk)
    except DeadlineExceeded:
        raise
    except HTTPFetchError as e:
        raise DownloadError(f"Download failed: {e}") from e
    logger.debug("Downloaded %d bytes from %s", written, url)
    return written


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex``."""
    algo, expected_hash = expected.split(":", 1)
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash.lower()
