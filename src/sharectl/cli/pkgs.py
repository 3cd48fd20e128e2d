import click

from sharectl.cli.utils import handle_share_errors
from sharectl.pkgs.manager import COMPONENT_BINARIES

COMPONENT_CHOICE = click.Choice(list(COMPONENT_BINARIES))

@click.group()
@click.pass_context
def pkgs(ctx):
    """Package management commands"""
    pass

@pkgs.command(name='check')
@click.argument('component', type=COMPONENT_CHOICE)
def check_component(component):
    """Check whether a server or client component is installed."""
    from sharectl.pkgs.manager import is_component_installed
    if is_component_installed(component):
        click.echo(f"{component} is installed.")
    else:
        click.echo(f"{component} is NOT installed.")

@pkgs.command(name='install')
@click.argument('component', type=COMPONENT_CHOICE)
@handle_share_errors
def install_component(component):
    """Install the NFS/SMB server or client packages."""
    from sharectl.pkgs.manager import install_component as install
    install(component)
    click.echo(f"{component} installed.")
