import click

from sharectl.cli.utils import handle_share_errors
from sharectl.shares.models import Protocol
from sharectl.systemd.registry import MANAGED_SERVICES

SERVICE_CHOICE = click.Choice(list(MANAGED_SERVICES) + ["all"])


def _services(name):
    return list(MANAGED_SERVICES) if name == "all" else [name]


@click.group()
def services():
    """Control the NFS and SMB server services."""
    pass

@services.command(name='status')
@click.argument('name', type=SERVICE_CHOICE, default="all")
def service_status(name):
    """Show service status."""
    from sharectl.systemd.manager import SystemdManager
    manager = SystemdManager()
    for service in _services(name):
        status = manager.get_service_status(service)
        if status is None:
            click.echo(f"{service}: unknown")
            continue
        click.echo(f"{service}: {status.active_state} ({status.sub_state}), {status.unit_file_state}")

def _service_action(action, past):
    @services.command(name=action, help=f"{action.capitalize()} NFS and/or SMB server services.")
    @click.argument('name', type=SERVICE_CHOICE, default="all")
    @handle_share_errors
    def command(name):
        from sharectl.systemd.manager import SystemdManager
        manager = SystemdManager()
        for service in _services(name):
            if action == "start":
                manager.enable_and_start(service)
            else:
                manager.manage_service(service, action)
            click.echo(f"{service} service {past}.")
    return command

start_services = _service_action("start", "started")
stop_services = _service_action("stop", "stopped")
restart_services = _service_action("restart", "restarted")


@click.command(name="status")
@handle_share_errors
def share_status():
    """Show services, live NFS exports and the checked Samba configuration."""
    from sharectl.systemd.manager import SystemdManager
    manager = SystemdManager()
    for status in manager.list_services():
        click.echo(f"{status.name}: {status.active_state} ({status.sub_state}), {status.unit_file_state}")

    click.echo("\nActive NFS exports:")
    click.echo(manager.show_exports().rstrip() or "  none")

    click.echo("\nSamba configuration:")
    click.echo(manager.check_smb_conf().rstrip())


@click.group()
def backup():
    """Back up and restore /etc/exports and smb.conf."""
    pass

@backup.command(name='create')
@handle_share_errors
def create_backup():
    """Snapshot both config files, replacing the previous backup."""
    from sharectl.backups.manager import BackupManager
    written = BackupManager().snapshot()
    if not written:
        click.echo("Nothing to back up.")
    for path in written:
        click.echo(f"Backed up to {path}")

@backup.command(name='restore')
@handle_share_errors
def restore_backup():
    """Restore both config files from their backups and reload services."""
    from sharectl.backups.manager import BackupManager
    result = BackupManager().restore()
    for path in result.restored:
        click.echo(f"Restored {path}")
    for path in result.skipped:
        click.echo(f"Skipped {path}: no backup found", err=True)

@backup.command(name='list')
def list_backups():
    """List existing backups."""
    from sharectl.backups.manager import BackupManager
    backups = BackupManager().list_backups()
    if not backups:
        click.echo("No backups found.")
    for b in backups:
        click.echo(f"{b['protocol']}: {b['path']} ({b['size']} bytes)")


@click.group()
def firewall():
    """Firewall rules for the share servers."""
    pass

@firewall.command(name='allow')
@click.argument('protocol', type=click.Choice([p.value for p in Protocol]))
@handle_share_errors
def allow_traffic(protocol):
    """Open the ports NFS or SMB needs."""
    from sharectl.firewall.manager import FirewallManager
    backend = FirewallManager().allow_share_traffic(Protocol(protocol))
    click.echo(f"{protocol.upper()} traffic allowed ({backend}).")
