import logging
import os
import sys
from functools import wraps

import click

from sharectl.config.settings import config
from sharectl.errors import ShareError

class MutuallyExclusiveOption(click.Option):
    def __init__(self, *args, **kwargs):
        self.mutually_exclusive = set(kwargs.pop("mutually_exclusive", []))
        help = kwargs.get("help", "")
        if self.mutually_exclusive:
            ex_str = ", ".join(sorted(self.mutually_exclusive))
            kwargs["help"] = help + (
                " NOTE: This option is mutually exclusive with "
                " options: [%s]." % ex_str
            )
        super(MutuallyExclusiveOption, self).__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        if self.mutually_exclusive.intersection(opts) and self.name in opts:
            raise click.UsageError(
                "Illegal usage: `%s` is mutually exclusive with "
                " `%s`." % (self.name, ", ".join(sorted(self.mutually_exclusive)))
            )

        return super(MutuallyExclusiveOption, self).handle_parse_result(ctx, opts, args)


def handle_share_errors(func):
    """Report ShareError as a one-line CLI error instead of a traceback."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ShareError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def get_manager(ctx):
    """ShareManager for this invocation, loaded from the config files on first use."""
    ctx.ensure_object(dict)
    if ctx.obj.get('manager') is None:
        from sharectl.shares.manager import ShareManager
        manager = ShareManager()
        results = manager.load()
        for result in results.values():
            for identity in result.duplicates:
                click.echo(f"Warning: {result.path} has duplicate blocks for '{identity}'.", err=True)
        ctx.obj['manager'] = manager
    return ctx.obj['manager']


def echo_warnings(warnings):
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)


def configure_logging(level=None, log_file=None):
    """Log to stderr, and to the log file when it can be opened."""
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(level or config.log_level)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    stream.setLevel(logging.WARNING)
    root.addHandler(stream)

    log_file = log_file or config.log_file
    try:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = logging.FileHandler(log_file)
    except OSError:
        root.warning(f"Cannot write to log file {log_file}, logging to stderr only")
        return
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
