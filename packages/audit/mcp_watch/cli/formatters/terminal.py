"""Terminal formatter with Rich output."""

from collections import Counter
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from mcp_watch_core.models import Finding, Severity

from mcp_watch.cli.filters import BLOCKING_SEVERITIES, sort_findings
from mcp_watch.errors import DetectorFailure

RESEARCH_LINE = (
    "Based on research from VulnerableMCP, HiddenLayer, Invariant Labs, "
    "Trail of Bits, and PromptHub"
)

CATEGORY_ICONS = {
    "credential-leak": "🔑",
    "tool-poisoning": "🧪",
    "data-exfiltration": "📤",
    "prompt-injection": "💉",
    "tool-mutation": "🔄",
    "steganographic-attack": "🎭",
    "protocol-violation": "📋",
    "input-validation": "🛡️",
    "server-spoofing": "🎭",
    "toxic-flow": "🌊",
    "access-control": "🔐",
}

REMEDIATION_ADVICE = {
    "credential-leak": [
        "Use encrypted storage for all API tokens and secrets",
        "Implement proper credential rotation policies",
        "Never commit secrets to version control",
        "Use environment variables with proper access controls",
        "Set restrictive file permissions (600) for credential files",
        "Consider a secret management service (HashiCorp Vault, AWS Secrets Manager)",
    ],
    "tool-poisoning": [
        "Run static analysis over all tool descriptions",
        "Manually review every tool before deployment",
        "Use allowlists for acceptable tool description patterns",
        "Pin tool versions and verify signed hashes",
    ],
    "data-exfiltration": [
        "Validate that every function parameter is actually used",
        "Reject unknown parameters with a parameter allowlist",
        "Log and alert on potential exfiltration attempts",
    ],
    "prompt-injection": [
        "Sanitize all tool descriptions and external content",
        "Filter out instruction-like patterns in external data",
        "Cap token limits for retrieved content",
        "Pattern-scan results before feeding them to the model",
    ],
    "tool-mutation": [
        "Lock tool definitions after initial approval",
        "Version tool definitions and alert on changes",
        "Use unique tool names to avoid collisions",
    ],
    "steganographic-attack": [
        "Filter all ANSI escape sequences from tool content",
        "Reject content with excessive whitespace padding",
        "Normalize content before displaying it to users",
    ],
    "protocol-violation": [
        "Never include session IDs in URLs",
        "Always use HTTPS for transport",
        "Follow the MCP protocol specification strictly",
    ],
    "input-validation": [
        "Validate and sanitize all user inputs",
        "Never execute user-controlled commands directly",
        "Validate paths to prevent ../ traversal",
        "Validate URLs to prevent SSRF",
    ],
    "server-spoofing": [
        "Only use servers from trusted sources",
        "Verify server identity before use",
        "Log all cross-server interactions",
    ],
    "toxic-flow": [
        "Sanitize all external data before processing",
        "Require explicit approval for cross-boundary operations",
        "Use allowlists for authorized resource combinations",
    ],
    "access-control": [
        "Apply the principle of least privilege",
        "Batch consent requests to avoid consent fatigue",
        "Use scoped API tokens when possible",
    ],
}

DEFAULT_ADVICE = ["Review security best practices for this category"]


class TerminalFormatter:
    """Rich terminal output formatter for scan results."""

    SEVERITY_COLORS = {
        Severity.CRITICAL: "red bold",
        Severity.HIGH: "red",
        Severity.MEDIUM: "yellow",
        Severity.LOW: "blue",
    }

    SEVERITY_ICONS = {
        Severity.CRITICAL: "🔴",
        Severity.HIGH: "🟠",
        Severity.MEDIUM: "🟡",
        Severity.LOW: "🔵",
    }

    def __init__(
        self,
        console: Optional[Console] = None,
        verbose: bool = False,
        quiet: bool = False,
        no_color: bool = False
    ):
        self.console = console or Console(no_color=no_color, highlight=False)
        self.verbose = verbose
        self.quiet = quiet

    def format_findings(
        self,
        findings: List[Finding],
        target: str,
        files_scanned: int = 0,
        failures: Iterable[DetectorFailure] = (),
    ):
        """Format and display findings."""
        failures = list(failures)
        findings = sort_findings(findings)

        if not self.quiet:
            self._print_header(target, files_scanned)

        for failure in failures:
            self.console.print(
                f"[yellow]Detector '{escape(failure.detector)}' failed: "
                f"{escape(failure.error)}[/yellow]"
            )

        if not findings:
            if not self.quiet:
                self.console.print("[green]No vulnerabilities detected![/green]")
            return

        if not self.quiet:
            self._print_summary(findings)

        self.console.print("\n[bold]Detailed Results[/bold]")
        for index, finding in enumerate(findings, start=1):
            self._print_finding(index, finding)

        if not self.quiet:
            self._print_remediation(findings)
        self._print_verdict(findings)

    def _print_header(self, target: str, files_scanned: int):
        header = Text()
        header.append("MCP Security Scan Results\n", style="bold")
        header.append(f"Scanned: {target}\n", style="dim")
        if files_scanned:
            header.append(f"Files analyzed: {files_scanned}\n", style="dim")
        header.append(RESEARCH_LINE, style="dim")
        self.console.print(Panel(header, border_style="cyan"))

    def _print_summary(self, findings: List[Finding]):
        severity_counts = Counter(f.severity for f in findings)
        self.console.print("[bold]Summary by Severity:[/bold]")
        for severity in sorted(Severity, reverse=True):
            count = severity_counts.get(severity)
            if count:
                color = self.SEVERITY_COLORS[severity]
                icon = self.SEVERITY_ICONS[severity]
                self.console.print(
                    f"  {icon} [{color}]{severity.value.upper()}[/{color}]: {count}"
                )

        self.console.print("\n[bold]Summary by Category:[/bold]")
        for category, count in Counter(f.category for f in findings).items():
            icon = CATEGORY_ICONS.get(category, "⚠️")
            self.console.print(f"  {icon} {escape(category)}: {count}")

    def _print_finding(self, index: int, finding: Finding):
        """Print a single finding."""
        color = self.SEVERITY_COLORS[finding.severity]
        icon = self.SEVERITY_ICONS[finding.severity]

        self.console.print(f"\n{index}. {icon} [{color}]{escape(finding.message)}[/{color}]")
        self.console.print(f"   [dim]ID:[/dim] {finding.id}")
        self.console.print(f"   [dim]Severity:[/dim] {finding.severity.value.upper()}")
        self.console.print(f"   [dim]Category:[/dim] {escape(finding.category)}")
        if finding.source:
            self.console.print(f"   [dim]Source:[/dim] {escape(finding.source)}")
        self.console.print(f"   [dim]Location:[/dim] {escape(finding.location)}")
        if finding.evidence:
            self.console.print(f"   [dim]Evidence:[/dim] {escape(finding.evidence)}")
        if self.verbose and finding.detector:
            self.console.print(f"   [dim]Detector:[/dim] {escape(finding.detector)}")

    def _print_remediation(self, findings: List[Finding]):
        self.console.print("\n[bold]Remediation Guidance[/bold]")
        # First-seen category order
        for category in dict.fromkeys(f.category for f in findings):
            icon = CATEGORY_ICONS.get(category, "⚠️")
            title = category.upper().replace("-", " ")
            self.console.print(f"\n{icon} [bold]{escape(title)}[/bold]")
            for advice in REMEDIATION_ADVICE.get(category, DEFAULT_ADVICE):
                self.console.print(f"  • {advice}")

    def _print_verdict(self, findings: List[Finding]):
        blocking = sum(1 for f in findings if f.severity in BLOCKING_SEVERITIES)
        if blocking:
            self.console.print(
                f"\n[red bold]Found {blocking} critical/high severity vulnerabilities[/red bold]"
            )
        elif not self.quiet:
            self.console.print("\n[green]No critical or high severity vulnerabilities found[/green]")


def format_scan_results(
    findings: List[Finding],
    target: str,
    files_scanned: int = 0,
    failures: Iterable[DetectorFailure] = (),
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False,
    console: Optional[Console] = None,
):
    """Convenience function to format scan results."""
    formatter = TerminalFormatter(
        console=console,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color
    )
    formatter.format_findings(findings, target, files_scanned, failures)
