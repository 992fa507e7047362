"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Upstream release source for the core binary.
RELEASE_REPO = "MetaCubeX/mihomo"
RELEASE_API = "https://api.github.com/repos/{repo}/releases/{ref}"
RELEASES_PAGE = "https://github.com/MetaCubeX/mihomo/releases"
ASSET_PREFIX = "mihomo"
ASSET_PLATFORM = "linux"
ASSET_EXTENSION = ".gz"

# Static web UI bundle (gh-pages branch of metacubexd).
UI_REPO_URL = "https://github.com/MetaCubeX/metacubexd.git"
UI_BRANCH = "gh-pages"

SERVICE_NAME = "mihomo"
USER_AGENT = "mihomo-installer/1.0"

# Architecture name normalization (uname -m → release asset naming).
_IARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "AMD64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "i686": "i386",
    "i386": "i386",
}

SUPPORTED_ARCH = "amd64"

# Highest first. v1 is the baseline every x86_64 CPU runs.
MICROARCH_TIERS: tuple[str, ...] = ("v3", "v2", "v1")

# /proc/cpuinfo flags required per tier when the dynamic loader
# cannot tell us (musl hosts, old glibc).
TIER_CPU_FLAGS: dict[str, frozenset[str]] = {
    "v2": frozenset({"cx16", "lahf_lm", "popcnt", "sse4_1", "sse4_2", "ssse3"}),
    "v3": frozenset({
        "cx16", "lahf_lm", "popcnt", "sse4_1", "sse4_2", "ssse3",
        "avx", "avx2", "bmi1", "bmi2", "f16c", "fma", "abm", "movbe", "xsave",
    }),
}

DYNAMIC_LOADER = "/lib64/ld-linux-x86-64.so.2"

# Package manager probe order: (command on PATH, reported name).
PACKAGE_MANAGERS: tuple[tuple[str, str], ...] = (
    ("dnf", "dnf"),
    ("yum", "yum"),
    ("apt-get", "apt"),
)

BASE_PACKAGES: tuple[str, ...] = ("ca-certificates",)
UI_PACKAGES: tuple[str, ...] = ("git",)

# Timeouts (seconds).
CONNECT_TIMEOUT = 10
INDEX_TIMEOUT = 30
DOWNLOAD_TIMEOUT = 120
CLONE_TIMEOUT = 180
SMOKE_TEST_TIMEOUT = 10
SYSTEMCTL_TIMEOUT = 60
PACKAGE_TIMEOUT = 600
DEFAULT_RUN_BUDGET = 900

# Config defaults.
DEFAULT_MIXED_PORT = 7890
DEFAULT_CONTROLLER = "127.0.0.1:9090"
PLACEHOLDER_SUB_URL = "https://example.com/your-subscription-url"
SECRET_LENGTH = 24

# strftime format for .bak_<ts> siblings.
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
