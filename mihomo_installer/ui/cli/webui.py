"""
CLI commands for the metacubexd web UI.
"""

from __future__ import annotations

import click

from mihomo_installer.ui.cli.common import fail, paths_from_ctx


@click.group("ui")
def webui() -> None:
    """Web UI — install the metacubexd dashboard."""


@webui.command("install")
@click.option("--restart/--no-restart", default=True,
              help="Restart mihomo afterwards so it serves the UI.")
@click.pass_context
def ui_install(ctx: click.Context, restart: bool) -> None:
    """Clone the UI and point config.yaml at it."""
    from mihomo_installer.core.services.provision.execution.ui import install_ui

    paths = paths_from_ctx(ctx)
    if not paths.config_file.exists():
        fail(f"No config at {paths.config_file}. Run 'install' or 'config write' first.")

    receipt = install_ui(paths, restart=restart)
    if receipt.skipped:
        click.secho(f"⊘ UI install skipped: {receipt.output}", fg="yellow")
        return
    if receipt.failed:
        click.secho(f"⚠️  UI install failed: {receipt.error}", fg="yellow")
        return

    click.secho(f"✅ UI installed at {receipt.output}", fg="green", bold=True)
    if receipt.metadata.get("config_changed"):
        click.echo(f"   external-ui added to {paths.config_file}")
