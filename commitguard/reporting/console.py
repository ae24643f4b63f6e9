"""
CommitGuard Console Reporter

Human-readable colored console output: header, severity summary,
then every finding in discovery order.
"""

from __future__ import annotations

import sys

import click

from commitguard import __version__
from commitguard.core.finding import Results, Severity


def _safe_echo(text: str = "", **kwargs) -> None:
    """Echo text, handling Unicode issues on Windows consoles."""
    try:
        click.echo(text, **kwargs)
    except UnicodeEncodeError:
        safe = text.encode(sys.stdout.encoding or "utf-8", errors="replace").decode(
            sys.stdout.encoding or "utf-8", errors="replace"
        )
        click.echo(safe, **kwargs)


# Severity colors
SEVERITY_COLORS = {
    Severity.CRITICAL: "bright_red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


class ConsoleReporter:
    """Prints a formatted security report to the console."""

    def __init__(self, target: str) -> None:
        self.target = target

    def report(self, results: Results) -> None:
        """Print the full scan report."""
        self._print_header(results)

        if not results.findings:
            self._print_footer(results)
            return

        self._print_severity_summary(results)
        self._print_detailed_findings(results)
        self._print_footer(results)

    def _print_header(self, results: Results) -> None:
        _safe_echo("")
        _safe_echo(click.style("=" * 55, fg="bright_blue"))
        _safe_echo(click.style("  CommitGuard Security Scan Results", fg="bright_white", bold=True))
        _safe_echo(click.style(f"  Version: {__version__}", fg="white"))
        _safe_echo(click.style(f"  Target: {self.target}", fg="white"))
        _safe_echo(click.style("=" * 55, fg="bright_blue"))
        _safe_echo(f"  Scan completed at: {results.scan_time:%Y-%m-%d %H:%M:%S}")
        _safe_echo(f"  Duration: {results.duration:.2f}s")
        _safe_echo(f"  Files scanned: {results.files_scanned}")

    def _print_severity_summary(self, results: Results) -> None:
        summary = results.summary
        counts = {
            Severity.CRITICAL: summary.critical,
            Severity.HIGH: summary.high,
            Severity.MEDIUM: summary.medium,
            Severity.LOW: summary.low,
        }
        _safe_echo("")
        _safe_echo(click.style("  Summary:", fg="bright_white", bold=True))
        for sev, count in counts.items():
            label = sev.value.capitalize()
            _safe_echo(
                click.style(f"     {label:9s}: ", fg=SEVERITY_COLORS[sev]) + click.style(str(count), fg="white")
            )
        _safe_echo(f"     {'Total':9s}: {summary.total}")

    def _print_detailed_findings(self, results: Results) -> None:
        _safe_echo("")
        _safe_echo(click.style("  Issues Found:", fg="bright_white", bold=True))
        _safe_echo(click.style("-" * 55, fg="bright_black"))

        for idx, finding in enumerate(results.findings, start=1):
            sev = finding.severity
            _safe_echo("")
            _safe_echo(
                click.style(f"  {idx}. ", fg="white")
                + click.style(f"[{sev.value.upper()}]", fg=SEVERITY_COLORS[sev], bold=True)
                + click.style(f" {finding.description}", fg="bright_white")
            )
            _safe_echo(
                click.style(
                    f"      File: {finding.file_path}:{finding.line}:{finding.column}",
                    fg="bright_black",
                )
            )
            _safe_echo(click.style(f"      Rule: {finding.rule}", fg="bright_black"))
            if finding.content:
                _safe_echo(click.style(f"      Content: {finding.content}", fg="white"))

    def _print_footer(self, results: Results) -> None:
        _safe_echo("")
        _safe_echo(click.style("=" * 55, fg="bright_blue"))

        if not results.findings:
            _safe_echo(
                click.style("  [OK] PASSED - No security issues found", fg="green", bold=True)
            )
        else:
            _safe_echo(
                click.style(
                    f"  [X] FAILED - {results.summary.total} security issue(s) must be resolved",
                    fg="bright_red",
                    bold=True,
                )
            )

        _safe_echo(click.style("=" * 55, fg="bright_blue"))
        _safe_echo("")
