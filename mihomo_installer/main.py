"""
mihomo installer — CLI entrypoint.

Usage:
    mihomo-installer --help
    sudo SUB_URL=https://... mihomo-installer install --ui
    mihomo-installer probe
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from mihomo_installer import __version__
from mihomo_installer.core.observability.logging_config import setup_logging
from mihomo_installer.ui.cli.common import (
    fail,
    paths_from_ctx,
    release_options,
    settings_from_ctx,
    settings_options,
)


@click.group()
@click.version_option(version=__version__, prog_name="mihomo-installer")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Install below this directory instead of / (staging).",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with installer settings.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: str | None,
    settings_file: str | None,
) -> None:
    """mihomo installer — provision the mihomo proxy core on this host."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["root"] = Path(root) if root else None
    ctx.obj["settings_file"] = Path(settings_file) if settings_file else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("MIHOMO_INSTALLER_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("MIHOMO_INSTALLER_LOG_FILE"),
        log_file_level=os.environ.get("MIHOMO_INSTALLER_LOG_FILE_LEVEL"),
    )


@cli.command()
@settings_options
@release_options
@click.option("--force-config/--no-force-config", default=None,
              help="Overwrite an existing config.yaml (env: FORCE_CONFIG).")
@click.option("--sha256", default=None, help="Expected sha256 of the downloaded archive.")
@click.option("--skip-deps/--no-skip-deps", default=None,
              help="Do not install system packages.")
@click.option("--skip-service/--no-skip-service", default=None,
              help="Do not register the systemd unit.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, as_json: bool, **options) -> None:
    """Install mihomo: binary, config, optional UI and systemd unit.

    Examples:

        sudo mihomo-installer install --sub-url https://example.com/sub

        sudo SUB_URL=https://... INSTALL_UI=1 mihomo-installer install
    """
    from mihomo_installer.core.services.provision.orchestration import run_install
    from mihomo_installer.core.services.provision.orchestration.orchestrator import (
        summary_lines,
    )

    settings = settings_from_ctx(ctx, **options)
    report = run_install(settings, paths_from_ctx(ctx))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        if not report.ok:
            sys.exit(1)
        return

    if not report.ok:
        fail(report.error or "install failed")

    if report.soft_failures:
        click.echo()
        click.secho("⚠️  Completed with warnings:", fg="yellow")
        for receipt in report.soft_failures:
            click.echo(f"   • {receipt.stage}: {receipt.error}")

    click.echo()
    for line in summary_lines(report):
        click.echo(line)


@cli.command()
@click.option("--cpu-level", type=click.Choice(["v1", "v2", "v3"]), default=None,
              help="Override the detected microarchitecture tier.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def probe(cpu_level: str | None, as_json: bool) -> None:
    """Show the detected host capabilities."""
    from mihomo_installer.core.errors import ProvisionError
    from mihomo_installer.core.services.provision.detection.host import probe_environment

    try:
        env = probe_environment(cpu_level=cpu_level)
    except ProvisionError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(env.model_dump(), indent=2))
        return

    click.secho("\n🔍 Host", fg="cyan", bold=True)
    click.echo(f"   Architecture:    {env.architecture}")
    click.echo(f"   CPU level:       {env.microarch_tier} ({env.tier_source})")
    click.echo(f"   Package manager: {env.package_manager}")
    click.echo(f"   Init system:     {env.init_system}")
    click.echo()


@cli.command()
@release_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, as_json: bool, **options) -> None:
    """Show which release asset would be installed."""
    from mihomo_installer.core.errors import ProvisionError
    from mihomo_installer.core.services.provision.detection.host import probe_environment
    from mihomo_installer.core.services.provision.domain.deadline import Deadline
    from mihomo_installer.core.services.provision.execution.release import resolve_artifact

    settings = settings_from_ctx(ctx, **options)
    try:
        env = probe_environment(cpu_level=settings.cpu_level)
        artifact = resolve_artifact(
            env,
            repo=settings.release_repo,
            version=settings.release,
            tier_fallback=settings.tier_fallback,
            deadline=Deadline(settings.run_budget),
        )
    except ProvisionError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(artifact.model_dump(), indent=2))
        return

    click.secho(f"\n📦 {artifact.asset.name}", fg="cyan", bold=True)
    click.echo(f"   Release: {artifact.tag}")
    click.echo(f"   Pattern: {artifact.pattern}")
    click.echo(f"   URL:     {artifact.asset.download_url}")
    if artifact.candidates > 1:
        click.echo(f"   ({artifact.candidates} assets matched, shortest name wins)")
    click.echo()


# ── Register sub-command groups from mihomo_installer/ui/cli/ ─────

from mihomo_installer.ui.cli.config import config  # noqa: E402
from mihomo_installer.ui.cli.service import service  # noqa: E402
from mihomo_installer.ui.cli.webui import webui  # noqa: E402

cli.add_command(config)
cli.add_command(service)
cli.add_command(webui)


if __name__ == "__main__":
    cli()
