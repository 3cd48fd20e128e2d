import click

from sharectl.cli.utils import MutuallyExclusiveOption, echo_warnings, get_manager, handle_share_errors
from sharectl.shares.models import AccessMode, FileType, Protocol, ShareChanges

ACCESS_CHOICE = click.Choice([m.value for m in AccessMode])
FILE_TYPE_CHOICE = click.Choice([t.value for t in FileType])


def _access(value):
    return AccessMode(value) if value else None


@click.group()
def nfs():
    """Manage NFS exports."""
    pass

@nfs.command(name="list")
@click.pass_context
@handle_share_errors
def list_nfs_shares(ctx):
    """List NFS exports."""
    shares = get_manager(ctx).list_shares(Protocol.NFS)
    if not shares:
        click.echo("No exports found.")
        return

    for share in shares:
        click.echo(f"Path: {share.identity}")
        click.echo(f"  Network: {share.access_scope}")
        click.echo(f"  Access: {share.access_mode.value}")
        click.echo(f"  Options: {','.join(share.options)}")
        click.echo("-" * 20)

@nfs.command(name="create")
@click.argument("path")
@click.argument("network")
@click.option("--file-type", type=FILE_TYPE_CHOICE, default=FileType.NORMAL.value, show_default=True,
              help="Tunes rsize/wsize for the kind of files shared.")
@click.option("--access", type=ACCESS_CHOICE, default=AccessMode.READ_WRITE.value, show_default=True)
@click.option("--options", "custom_options", default=None, help="Extra export options, comma-separated.")
@click.pass_context
@handle_share_errors
def create_nfs_share(ctx, path, network, file_type, access, custom_options):
    """Export PATH to NETWORK (CIDR or comma-separated IPs)."""
    result = get_manager(ctx).create_nfs_share(
        path, network, FileType(file_type), AccessMode(access), custom_options
    )
    echo_warnings(result.warnings)
    click.echo(f"Export '{result.share.identity}' created.")

@nfs.command(name="edit")
@click.argument("path")
@click.option("--network", default=None, help="New network (CIDR or comma-separated IPs).")
@click.option("--access", type=ACCESS_CHOICE, default=None)
@click.option("--options", "options", default=None, cls=MutuallyExclusiveOption,
              mutually_exclusive=["add_options"], help="Replace the export options.")
@click.option("--add-options", "add_options", default=None, cls=MutuallyExclusiveOption,
              mutually_exclusive=["options"], help="Add or override export options.")
@click.pass_context
@handle_share_errors
def edit_nfs_share(ctx, path, network, access, options, add_options):
    """Edit an existing NFS export."""
    changes = ShareChanges(
        access_scope=network, access_mode=_access(access), options=options, add_options=add_options
    )
    result = get_manager(ctx).edit(Protocol.NFS, path, changes)
    echo_warnings(result.warnings)
    click.echo(f"Export '{path}' updated.")
    click.echo(f"New options: {','.join(result.share.options)}")

@nfs.command(name="remove")
@click.argument("path")
@click.pass_context
@handle_share_errors
def remove_nfs_share(ctx, path):
    """Remove an NFS export."""
    get_manager(ctx).remove(Protocol.NFS, path)
    click.echo(f"Export '{path}' removed.")

@nfs.command(name="remove-options")
@click.argument("path")
@click.argument("options")
@click.pass_context
@handle_share_errors
def remove_nfs_options(ctx, path, options):
    """Remove comma-separated OPTIONS from an NFS export."""
    result = get_manager(ctx).remove_options(Protocol.NFS, path, options)
    echo_warnings(result.warnings)
    click.echo(f"Options removed from export '{path}'.")
    click.echo(f"New options: {','.join(result.share.options)}")


@click.group()
def smb():
    """Manage Samba shares."""
    pass

@smb.command(name="list")
@click.pass_context
@handle_share_errors
def list_smb_shares(ctx):
    """List Samba shares."""
    shares = get_manager(ctx).list_shares(Protocol.SMB)
    if not shares:
        click.echo("No shares found.")
        return

    for share in shares:
        click.echo(f"Name: {share.identity}")
        click.echo(f"  Path: {share.target}")
        click.echo(f"  Access: {share.access_mode.value}")
        if share.access_scope:
            click.echo(f"  Users: {share.access_scope}")
        for option in share.options:
            click.echo(f"  {option}")
        click.echo("-" * 20)

@smb.command(name="create")
@click.argument("name")
@click.argument("path")
@click.option("--access", type=ACCESS_CHOICE, default=AccessMode.READ_WRITE.value, show_default=True)
@click.option("--users", default="", help="Users or @groups allowed to connect.")
@click.option("--option", "custom_options", multiple=True,
              help="Extra share directive, e.g. 'guest ok = no'. Repeatable.")
@click.pass_context
@handle_share_errors
def create_smb_share(ctx, name, path, access, users, custom_options):
    """Create a Samba share NAME for directory PATH."""
    result = get_manager(ctx).create_smb_share(
        name, path, AccessMode(access), list(custom_options), users
    )
    echo_warnings(result.warnings)
    click.echo(f"Share '{name}' created.")

@smb.command(name="edit")
@click.argument("name")
@click.option("--path", default=None, help="New directory for the share.")
@click.option("--access", type=ACCESS_CHOICE, default=None)
@click.option("--users", default=None, help="Users or @groups allowed to connect.")
@click.option("--option", "options", multiple=True, cls=MutuallyExclusiveOption,
              mutually_exclusive=["add_options"], help="Replace the share directives. Repeatable.")
@click.option("--add-option", "add_options", multiple=True, cls=MutuallyExclusiveOption,
              mutually_exclusive=["options"], help="Add or override a directive. Repeatable.")
@click.pass_context
@handle_share_errors
def edit_smb_share(ctx, name, path, access, users, options, add_options):
    """Edit an existing Samba share."""
    changes = ShareChanges(
        target=path,
        access_scope=users,
        access_mode=_access(access),
        options=list(options) if options else None,
        add_options=list(add_options) if add_options else None,
    )
    result = get_manager(ctx).edit(Protocol.SMB, name, changes)
    echo_warnings(result.warnings)
    click.echo(f"Share '{name}' updated.")

@smb.command(name="remove")
@click.argument("name")
@click.pass_context
@handle_share_errors
def remove_smb_share(ctx, name):
    """Remove a Samba share."""
    get_manager(ctx).remove(Protocol.SMB, name)
    click.echo(f"Share '{name}' removed.")

@smb.command(name="remove-options")
@click.argument("name")
@click.argument("options", nargs=-1, required=True)
@click.pass_context
@handle_share_errors
def remove_smb_options(ctx, name, options):
    """Remove directives (by name, e.g. 'guest ok') from a Samba share."""
    get_manager(ctx).remove_options(Protocol.SMB, name, list(options))
    click.echo(f"Options removed from share '{name}'.")


@click.command()
@handle_share_errors
def check():
    """Report duplicate or unrecognised entries in the config files."""
    from sharectl.shares.manager import ShareManager
    manager = ShareManager()
    found = False
    for protocol, result in manager.load().items():
        for identity in result.duplicates:
            found = True
            click.echo(f"{result.path}: more than one block for '{identity}'")
        for identity, warnings in result.warnings.items():
            for warning in warnings:
                found = True
                click.echo(f"{result.path}: {identity}: {warning}")
    if not found:
        click.echo("No problems found.")
