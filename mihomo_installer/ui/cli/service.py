"""
CLI commands for the systemd unit.
"""

from __future__ import annotations

import json

import click

from mihomo_installer.ui.cli.common import fail, paths_from_ctx


@click.group()
def service() -> None:
    """systemd unit — install, restart, status."""


@service.command("install")
@click.pass_context
def service_install(ctx: click.Context) -> None:
    """Write the unit file, enable and (re)start mihomo."""
    from mihomo_installer.core.errors import ProvisionError
    from mihomo_installer.core.services.provision.execution.service import (
        register_service,
        service_status_receipt,
    )

    paths = paths_from_ctx(ctx)
    try:
        receipt = register_service(paths)
    except ProvisionError as e:
        fail(str(e))

    click.secho(f"✅ Unit installed: {receipt.output}", fg="green", bold=True)
    backup = receipt.metadata.get("backup")
    if backup:
        click.echo(f"   Backup: {backup}")
    status = service_status_receipt()
    click.echo(f"   {status.output or status.error}")


@service.command("restart")
def service_restart() -> None:
    """Restart mihomo."""
    from mihomo_installer.core.services.provision.execution.service import restart_service

    receipt = restart_service()
    if receipt.failed:
        fail(receipt.error or "restart failed")
    click.secho("✅ mihomo restarted", fg="green")


@service.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def service_status(as_json: bool) -> None:
    """Show the unit's systemd state."""
    from mihomo_installer.core.services.provision.data.constants import SERVICE_NAME
    from mihomo_installer.core.services.provision.detection.service_status import (
        get_service_status,
    )

    status = get_service_status(SERVICE_NAME)
    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    if not status["ok"]:
        click.secho(f"❔ {SERVICE_NAME}: status unavailable ({status.get('error', '')})",
                    fg="yellow")
        return

    color = "green" if status["active"] else "red"
    click.secho(f"● {SERVICE_NAME}: {status['state']} ({status['sub_state']})", fg=color)
    click.echo(f"   enabled: {status['enabled']}  loaded: {status['loaded']}")
