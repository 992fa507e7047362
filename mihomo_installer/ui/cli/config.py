"""
CLI commands for config.yaml.

Thin wrappers over ``execution.config_writer``.
"""

from __future__ import annotations

import click

from mihomo_installer.ui.cli.common import (
    fail,
    paths_from_ctx,
    settings_from_ctx,
    settings_options,
)


@click.group()
def config() -> None:
    """config.yaml — render, write, wire in the web UI."""


@config.command("render")
@settings_options
@click.pass_context
def config_render(ctx: click.Context, **options) -> None:
    """Print the config that ``write`` would produce."""
    from mihomo_installer.core.services.provision.domain.config_render import render_config
    from mihomo_installer.core.services.provision.execution.config_writer import build_params

    settings = settings_from_ctx(ctx, **options)
    params = build_params(settings, paths_from_ctx(ctx))
    click.echo(render_config(params), nl=False)


@config.command("write")
@settings_options
@click.option("--force/--no-force", "force_config", default=None,
              help="Overwrite an existing config (old one is backed up).")
@click.pass_context
def config_write(ctx: click.Context, **options) -> None:
    """Write config.yaml (skipped if it exists, unless --force)."""
    from mihomo_installer.core.services.provision.execution.config_writer import (
        materialize_config,
    )

    settings = settings_from_ctx(ctx, **options)
    try:
        outcome = materialize_config(settings, paths_from_ctx(ctx))
    except OSError as e:
        fail(f"Cannot write config: {e}")

    receipt = outcome.receipt
    if receipt.skipped:
        click.secho(f"ℹ️  {receipt.output}", fg="yellow")
        return

    click.secho(f"✅ Wrote {receipt.output}", fg="green", bold=True)
    if outcome.backup:
        click.echo(f"   Backup: {outcome.backup}")
    click.echo(f"   Secret: {outcome.secret}")


@config.command("ensure-ui")
@click.pass_context
def config_ensure_ui(ctx: click.Context) -> None:
    """Add or fix the external-ui entry in config.yaml."""
    from mihomo_installer.core.services.provision.domain.config_render import (
        ConfigRenderError,
    )
    from mihomo_installer.core.services.provision.execution.config_writer import (
        ensure_ui_reference,
    )

    paths = paths_from_ctx(ctx)
    try:
        changed = ensure_ui_reference(paths)
    except FileNotFoundError:
        fail(f"No config at {paths.config_file}. Run 'config write' first.")
    except (OSError, ConfigRenderError) as e:
        fail(str(e))

    if changed:
        click.secho(f"✅ external-ui set in {paths.config_file}", fg="green")
    else:
        click.echo(f"external-ui already set in {paths.config_file}")
