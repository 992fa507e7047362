"""
Shared test fixtures: temp install roots, fake subprocesses, fake HTTP.

Nothing here touches the network, systemd or the real /etc.
"""

from __future__ import annotations

import gzip
import io
import json
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

import pytest

from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.paths import InstallPaths

FAKE_ELF = b"\x7fELF\x02\x01\x01" + b"\x00" * 57 + b"mihomo"

RUNNER_MODULES = (
    "mihomo_installer.core.services.provision.execution.packages",
    "mihomo_installer.core.services.provision.execution.service",
    "mihomo_installer.core.services.provision.execution.ui",
    "mihomo_installer.core.services.provision.execution.download",
)


def release_payload(names: list[str], tag: str = "v1.19.0") -> dict:
    """A GitHub ``releases/latest`` payload listing ``names``."""
    base = f"https://github.com/MetaCubeX/mihomo/releases/download/{tag}"
    return {
        "tag_name": tag,
        "assets": [
            {"name": n, "browser_download_url": f"{base}/{n}", "size": 1000}
            for n in names
        ],
    }


class FakeRunner:
    """Stands in for ``_run_subprocess``; records every command."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []
        self._results: list[tuple[tuple[str, ...], dict[str, Any]]] = []
        self.on_call: dict[tuple[str, ...], Any] = {}

    def set_result(self, prefix: tuple[str, ...], **result: Any) -> None:
        """Commands starting with ``prefix`` return ``result``."""
        self._results.insert(0, (prefix, result))

    def fail(self, prefix: tuple[str, ...], error: str = "Command failed (exit 1)",
             stderr: str = "boom") -> None:
        self.set_result(prefix, ok=False, error=error, stderr=stderr, stdout="")

    def __call__(self, cmd: list[str], **kwargs: Any) -> dict[str, Any]:
        self.calls.append(list(cmd))
        self.kwargs.append(kwargs)
        for prefix, hook in self.on_call.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                hook(cmd)
        for prefix, result in self._results:
            if tuple(cmd[: len(prefix)]) == prefix:
                return dict(result)
        return {"ok": True, "stdout": "", "stderr": "", "elapsed_ms": 1}

    def commands(self, program: str) -> list[list[str]]:
        return [c for c in self.calls if c and c[0] == program]


class FakeResponse(io.BytesIO):
    """Minimal urlopen() response."""

    def __init__(self, body: bytes, status: int = 200):
        super().__init__(body)
        self.status = status


class FakeHTTP:
    """Routes urlopen() by URL; unknown URLs raise URLError."""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[urllib.request.Request] = []
        self.timeouts: list[float] = []

    def add(self, url: str, body: bytes | dict | Exception, status: int = 200) -> None:
        if isinstance(body, dict):
            body = json.dumps(body).encode()
        self.routes[url] = (body, status)

    def __call__(self, req: urllib.request.Request, timeout: float | None = None):
        self.requests.append(req)
        self.timeouts.append(timeout)
        url = req.full_url if isinstance(req, urllib.request.Request) else req
        if url not in self.routes:
            raise urllib.error.URLError(f"no route for {url}")
        body, status = self.routes[url]
        if isinstance(body, Exception):
            raise body
        if status >= 400:
            raise urllib.error.HTTPError(url, status, "error", {}, None)
        return FakeResponse(body, status)


@pytest.fixture
def paths(tmp_path: Path) -> InstallPaths:
    """Canonical paths re-rooted into a temp directory."""
    root = tmp_path / "root"
    root.mkdir()
    return InstallPaths.under(root)


@pytest.fixture
def env_v3() -> EnvironmentDescriptor:
    return EnvironmentDescriptor(
        architecture="amd64",
        microarch_tier="v3",
        package_manager="dnf",
        init_system="systemd",
        tier_source="loader",
    )


@pytest.fixture
def fake_runner(monkeypatch) -> FakeRunner:
    """Replace ``_run_subprocess`` in every execution module."""
    runner = FakeRunner()
    for module in RUNNER_MODULES:
        monkeypatch.setattr(f"{module}._run_subprocess", runner)
    return runner


@pytest.fixture
def fake_http(monkeypatch) -> FakeHTTP:
    http = FakeHTTP()
    monkeypatch.setattr(urllib.request, "urlopen", http)
    return http


@pytest.fixture
def gz_binary() -> bytes:
    """gzip'd fake ELF binary, as a release asset would be."""
    return gzip.compress(FAKE_ELF)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove installer env vars so host settings do not leak into tests."""
    for var in ("SUB_URL", "SECRET", "MIXED_PORT", "CTRL_ADDR", "INSTALL_UI",
                "FORCE_CONFIG", "MIHOMO_VERSION", "MIHOMO_CPU_LEVEL",
                "TIER_FALLBACK", "RUN_BUDGET"):
        monkeypatch.delenv(var, raising=False)
