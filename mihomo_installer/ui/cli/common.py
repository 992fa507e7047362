"""
Shared CLI plumbing — settings options and error exits.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import click

from mihomo_installer.core.config.loader import ConfigError, load_settings
from mihomo_installer.core.config.settings import InstallSettings
from mihomo_installer.core.models.paths import InstallPaths


def settings_options(func: Callable) -> Callable:
    """Attach the config-rendering options shared by ``install`` and ``config``."""
    options = [
        click.option("--sub-url", default=None, help="Subscription URL (env: SUB_URL)."),
        click.option("--secret", default=None, help="API secret; random if omitted (env: SECRET)."),
        click.option("--mixed-port", type=int, default=None,
                     help="Proxy port, default 7890 (env: MIXED_PORT)."),
        click.option("--controller", default=None,
                     help="Controller bind address, default 127.0.0.1:9090 (env: CTRL_ADDR)."),
        click.option("--ui/--no-ui", "install_ui", default=None,
                     help="Install the metacubexd web UI (env: INSTALL_UI)."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def release_options(func: Callable) -> Callable:
    """Attach the artifact-resolution options."""
    options = [
        click.option("--cpu-level", type=click.Choice(["v1", "v2", "v3"]), default=None,
                     help="Override the detected microarchitecture tier."),
        click.option("--release", default=None,
                     help="Release tag to install, default latest (env: MIHOMO_VERSION)."),
        click.option("--tier-fallback/--no-tier-fallback", default=None,
                     help="Fall back to lower tiers when no asset matches."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def paths_from_ctx(ctx: click.Context) -> InstallPaths:
    return InstallPaths.under(ctx.obj.get("root") or "/")


def settings_from_ctx(ctx: click.Context, **overrides: Any) -> InstallSettings:
    """Load settings, exiting 1 with a message when they are invalid."""
    settings_file: Path | None = ctx.obj.get("settings_file")
    try:
        return load_settings(overrides, settings_file=settings_file)
    except ConfigError as e:
        fail(str(e))


def fail(message: str, code: int = 1) -> NoReturn:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(code)
