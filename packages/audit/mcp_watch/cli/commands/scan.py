"""Scan command implementation."""

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from mcp_watch.cli.filters import filter_findings, has_blocking_findings, sort_findings
from mcp_watch.cli.formatters.json import format_json
from mcp_watch.cli.formatters.terminal import format_scan_results
from mcp_watch.config import Settings
from mcp_watch.errors import McpWatchError
from mcp_watch.scanners import McpScanner

# Progress goes to stderr so JSON on stdout stays machine-readable
console = Console(stderr=True, highlight=False)


def load_settings(
    target: Optional[Path],
    config_path: Optional[Path],
    severity: Optional[str],
    category: Optional[str],
    rules_dir: Optional[Path],
    timeout: Optional[float],
    strict: bool,
) -> Settings:
    """Config file values with command-line flags applied on top."""
    if config_path:
        settings = Settings.from_file(config_path)
    else:
        settings = Settings.discover(target)

    settings = settings.override(
        min_severity=severity,
        category=category,
        rules_dir=rules_dir,
        strict=True if strict else None,
    )
    if timeout is not None:
        # Zero or negative disables the limit
        settings = replace(settings, timeout=timeout if timeout > 0 else None)
    return settings


def run_scan(
    target: str,
    remote: bool,
    settings: Settings,
    output_format: str,
    output_path: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False
) -> int:
    """
    Run the security scan and render the report.

    Returns exit code: 0 for success, 1 when critical or high findings remain
    after filtering.
    """
    show_progress = not quiet and output_format == "console"

    if verbose and settings.loaded_from and show_progress:
        console.print(f"[dim]Loaded config from: {settings.loaded_from}[/dim]")
    if settings.rules_dir and show_progress:
        console.print(f"[dim]Loading custom rules from: {settings.rules_dir}[/dim]")

    scanner = McpScanner(settings=settings)

    if remote:
        if show_progress:
            console.print(f"[dim]Cloning {target}...[/dim]")
        report = asyncio.run(scanner.run_repository(target))
    else:
        if show_progress:
            console.print(f"[dim]Scanning {target}...[/dim]")
        report = asyncio.run(scanner.run(target))

    findings = settings.apply_ignores(report.findings)
    findings = sort_findings(
        filter_findings(findings, settings.min_severity, settings.category)
    )

    if output_format == "json":
        json_output = format_json(
            findings,
            target=report.target,
            files_scanned=report.files_scanned,
            failures=report.failures,
        )
        if output_path:
            output_path.write_text(json_output, encoding="utf-8")
        else:
            click.echo(json_output)
    elif output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            format_scan_results(
                findings,
                report.target,
                report.files_scanned,
                report.failures,
                verbose=verbose,
                quiet=quiet,
                console=Console(file=f, no_color=True, highlight=False, width=120),
            )
    else:
        format_scan_results(
            findings,
            report.target,
            report.files_scanned,
            report.failures,
            verbose=verbose,
            quiet=quiet,
            no_color=no_color
        )

    return 1 if has_blocking_findings(findings) else 0


def scan_options(func):
    """Options shared by the remote and local scan commands."""
    options = [
        click.option('--format', '-f', 'output_format',
                     type=click.Choice(['console', 'json']),
                     default='console', help='Output format'),
        click.option('--output', '-o', type=click.Path(dir_okay=False),
                     help='Write the report to a file instead of stdout'),
        click.option('--severity', '-s',
                     type=click.Choice(['low', 'medium', 'high', 'critical']),
                     default=None, help='Minimum severity to report [default: low]'),
        click.option('--category', '-c', default=None,
                     help='Only report this category (e.g. credential-leak)'),
        click.option('--config', 'config_path',
                     type=click.Path(exists=True, dir_okay=False),
                     help='Configuration file (default: .mcp-watch.yaml if present)'),
        click.option('--rules-dir', type=click.Path(exists=True, file_okay=False),
                     help='Directory of additional YAML detector tables'),
        click.option('--timeout', type=float, default=None,
                     help='Scan timeout in seconds; 0 disables [default: 300]'),
        click.option('--strict', is_flag=True, default=False,
                     help='Fail the scan if any detector fails'),
        click.option('--no-color', is_flag=True, default=False,
                     help='Disable colored output (for CI/CD environments)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _execute(
    ctx: click.Context,
    target: str,
    remote: bool,
    output_format: str,
    output: Optional[str],
    severity: Optional[str],
    category: Optional[str],
    config_path: Optional[str],
    rules_dir: Optional[str],
    timeout: Optional[float],
    strict: bool,
    no_color: bool,
):
    try:
        settings = load_settings(
            target=None if remote else Path(target),
            config_path=Path(config_path) if config_path else None,
            severity=severity,
            category=category,
            rules_dir=Path(rules_dir) if rules_dir else None,
            timeout=timeout,
            strict=strict,
        )
        exit_code = run_scan(
            target=target,
            remote=remote,
            settings=settings,
            output_format=output_format,
            output_path=Path(output) if output else None,
            verbose=(ctx.obj or {}).get('verbose', False),
            quiet=(ctx.obj or {}).get('quiet', False),
            no_color=no_color
        )
    except McpWatchError as e:
        raise click.ClickException(str(e)) from e

    ctx.exit(exit_code)


@click.command()
@click.argument('url')
@scan_options
@click.pass_context
def scan(ctx: click.Context, url: str, **options):
    """
    Scan a remote MCP server repository for security vulnerabilities.

    URL is any repository URL git can clone. The clone is shallow and is
    deleted when the scan finishes.

    Examples:

        mcp-watch scan https://github.com/user/mcp-server

        mcp-watch scan https://github.com/user/mcp-server --format json
    """
    _execute(ctx, url, remote=True, **options)


@click.command('scan-local')
@click.argument('project_path')
@scan_options
@click.pass_context
def scan_local(ctx: click.Context, project_path: str, **options):
    """
    Scan a local MCP server project directory for security vulnerabilities.

    Examples:

        mcp-watch scan-local ./my-mcp-server

        mcp-watch scan-local . --severity high --category credential-leak
    """
    _execute(ctx, project_path, remote=False, **options)
