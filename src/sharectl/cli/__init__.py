import click
import os
import yaml

from sharectl.cli.pkgs import pkgs
from sharectl.cli.shares import check, nfs, smb
from sharectl.cli.system import backup, firewall, services, share_status
from sharectl.cli.utils import configure_logging, get_manager, handle_share_errors
from sharectl.version import get_version

@click.group()
@click.option("--log-level", default=None, help="Logging level (default from SHARECTL_LOG_LEVEL).")
@click.version_option(version=get_version(), prog_name="sharectl")
@click.pass_context
def main(ctx, log_level):
    """Manage NFS exports and Samba shares."""
    ctx.ensure_object(dict)
    configure_logging(level=log_level.upper() if log_level else None)

main.add_command(nfs)
main.add_command(smb)
main.add_command(check)
main.add_command(services)
main.add_command(backup)
main.add_command(firewall)
main.add_command(pkgs)
main.add_command(share_status)

@main.command()
@click.option("--config", help="Path to the share definitions file.")
@click.pass_context
@handle_share_errors
def apply(ctx, config):
    """Create or update the shares declared in a YAML file."""
    if config:
        config_path = config
    elif os.path.exists("shares.yaml"):
        config_path = "shares.yaml"
    elif os.path.exists(os.path.expanduser("~/.config/sharectl/shares.yaml")):
        config_path = os.path.expanduser("~/.config/sharectl/shares.yaml")
    elif os.path.exists("/etc/sharectl/shares.yaml"):
        config_path = "/etc/sharectl/shares.yaml"
    else:
        raise click.FileError("shares.yaml", hint="Configuration file not found.")

    with open(config_path, "r") as f:
        full_config = yaml.safe_load(f) or {}

    from sharectl.shares.actions import apply_configuration

    messages = apply_configuration(get_manager(ctx), full_config)
    for message in messages:
        click.echo(message)


@main.command()
@click.option('--host', default=None, help='The host to bind to.')
@click.option('--port', default=None, type=int, help='The port to bind to.')
def server(host, port):
    """Run the HTTP API server."""
    import uvicorn

    from sharectl.api.server import app
    from sharectl.config.settings import config
    uvicorn.run(app, host=host or config.api_host, port=port or config.api_port)
