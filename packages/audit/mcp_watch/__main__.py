"""Entry point for running mcp-watch as a module."""

from mcp_watch.cli.main import cli

if __name__ == "__main__":
    cli()
