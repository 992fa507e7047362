"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for install
operations. Logging, timeouts and error capture are centralised here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

from mihomo_installer.core.errors import CommandError

logger = logging.getLogger(__name__)


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: float = 120,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command, capturing output. Never raises.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired``.
        env_overrides: Extra env vars for the child.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running: %s (timeout=%.0fs)", " ".join(cmd), timeout)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout:.0f}s)"}
    except OSError as e:
        return {"ok": False, "error": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-2000:] if result.stdout else ""
    stderr = result.stderr[-2000:] if result.stderr else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "stderr": stderr, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }


def _require_ok(cmd: list[str], result: dict[str, Any]) -> dict[str, Any]:
    """Turn a failed run into a fatal CommandError."""
    if not result["ok"]:
        raise CommandError(cmd, result.get("error", "unknown error"), result.get("stderr", ""))
    return result
