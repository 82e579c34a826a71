"""CLI main entry point for mcp-watch."""

import logging
import sys

import click

from mcp_watch.version import __version__

_log_handler = logging.StreamHandler()
_log_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))


def _configure_logging(verbose: bool, quiet: bool):
    """Route mcp-watch log records to stderr at the requested level."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    # Bind to whatever stderr is current for this invocation
    _log_handler.stream = sys.stderr
    for name in ("mcp_watch", "mcp_watch_core"):
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if _log_handler not in logger.handlers:
            logger.addHandler(_log_handler)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Only show errors')
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool):
    """MCP Watch - Security scanner for Model Context Protocol servers."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet
    _configure_logging(verbose, quiet)


# Register commands
from mcp_watch.cli.commands.scan import scan, scan_local  # noqa: E402

cli.add_command(scan)
cli.add_command(scan_local)


if __name__ == '__main__':
    cli()
