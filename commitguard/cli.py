"""
CommitGuard CLI

Command-line interface for running security scans.

Commands:
    commitguard scan [PATH...]      - Scan directories or files
    commitguard commit-msg FILE     - Check a commit message (for git commit-msg hooks)
    commitguard init                - Create a default config file

Exit codes: 0 = no findings, 1 = findings reported, 2 = configuration or scan error.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Optional

import click

from commitguard import __version__
from commitguard.core.config import CONFIG_FILENAME, ScanCategory, ScanConfig, generate_default_config
from commitguard.core.engine import ScanEngine
from commitguard.core.errors import CommitGuardError
from commitguard.core.finding import merge_results
from commitguard.core.logging import setup_logging
from commitguard.reporting.console import ConsoleReporter, _safe_echo
from commitguard.reporting.json_reporter import JSONReporter
from commitguard.scanners.social import SocialScanner

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


@click.group()
@click.version_option(version=__version__, prog_name="CommitGuard")
def cli() -> None:
    """
    CommitGuard - Secret, Dependency and Commit Scanner

    Detect leaked secrets, vulnerable dependencies and suspicious
    language before it reaches your repository.
    """
    pass


# ═══════════════════════════════════════════════════════
#  commitguard scan
# ═══════════════════════════════════════════════════════
@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--format", "-f", "output_format", type=click.Choice(["console", "json"]),
              default="console", help="Output format (default: console).")
@click.option("--output", "-o", "output_file", type=click.Path(), default=None,
              help="Write the JSON report to a file.")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Path to .commitguard.yaml configuration file.")
@click.option("--concurrency", "-j", type=click.IntRange(min=1), default=None,
              help="Number of files scanned in parallel.")
@click.option("--no-secrets", is_flag=True, help="Disable the secrets scanner.")
@click.option("--no-deps", is_flag=True, help="Disable the dependency scanner.")
@click.option("--no-social", is_flag=True, help="Disable suspicious keyword detection.")
@click.option("--offline", is_flag=True, help="Do not query the OSV vulnerability database.")
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostics to stderr.")
def scan(
    paths: tuple[str, ...],
    output_format: str,
    output_file: Optional[str],
    config_path: Optional[str],
    concurrency: Optional[int],
    no_secrets: bool,
    no_deps: bool,
    no_social: bool,
    offline: bool,
    verbose: bool,
) -> None:
    """Scan one or more directories or files for security issues.

    Examples:

        commitguard scan

        commitguard scan ./src --format json --output results.json

        commitguard scan services/api services/worker

        commitguard scan --no-social --offline
    """
    setup_logging(verbose)
    targets = [Path(p).resolve() for p in (paths or (".",))]
    label = ", ".join(str(t) for t in targets)

    # ── Load configuration ──
    first = targets[0]
    config_dir = first if first.is_dir() else first.parent
    cfg_path = Path(config_path) if config_path else config_dir / CONFIG_FILENAME
    try:
        config = ScanConfig.load(cfg_path)
    except CommitGuardError as exc:
        _fail(f"Failed to load configuration: {exc}")

    # CLI flags override config
    if concurrency is not None:
        config = dataclasses.replace(config, max_concurrency=concurrency)
    if offline:
        config = dataclasses.replace(
            config, advisories=dataclasses.replace(config.advisories, enabled=False)
        )

    categories = set(ScanCategory)
    if no_secrets:
        categories.discard(ScanCategory.SECRETS)
    if no_deps:
        categories.discard(ScanCategory.DEPENDENCIES)
    if no_social:
        categories.discard(ScanCategory.SOCIAL)

    # ── Run scan ──
    engine = ScanEngine(config)
    try:
        results = merge_results([engine.scan_path(target, categories) for target in targets])
    except CommitGuardError as exc:
        _fail(f"Scan failed: {exc}")

    # ── Report ──
    if output_format == "json":
        json_str = JSONReporter(target=label).report(results, output_file=output_file)
        if not output_file:
            _safe_echo(json_str)
    else:
        ConsoleReporter(target=label).report(results)
        if output_file:
            JSONReporter(target=label).report(results, output_file=output_file)

    # ── Exit code ──
    sys.exit(EXIT_FINDINGS if results.has_findings else EXIT_CLEAN)


# ═══════════════════════════════════════════════════════
#  commitguard commit-msg
# ═══════════════════════════════════════════════════════
@cli.command("commit-msg")
@click.argument("message_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Path to .commitguard.yaml configuration file.")
def commit_msg(message_file: str, config_path: Optional[str]) -> None:
    """Check a commit message for suspicious content.

    Intended for a git commit-msg hook, which passes the message file:

        commitguard commit-msg .git/COMMIT_EDITMSG
    """
    setup_logging()
    try:
        config = ScanConfig.load(Path(config_path) if config_path else None)
    except CommitGuardError as exc:
        _fail(f"Failed to load configuration: {exc}")

    raw = Path(message_file).read_text(encoding="utf-8", errors="replace")
    # git strips comment lines from the final message
    message = "\n".join(line for line in raw.splitlines() if not line.startswith("#"))

    findings = [
        f for f in SocialScanner(config.social_keywords).scan_commit_message(message)
        if f.rule not in config.ignore_rules
    ]
    if not findings:
        sys.exit(EXIT_CLEAN)

    _safe_echo(click.style("  [X] Suspicious commit message:", fg="red", bold=True), err=True)
    for finding in findings:
        _safe_echo(
            f"      line {finding.line}: [{finding.rule}] {finding.description}",
            err=True,
        )
    sys.exit(EXIT_FINDINGS)


# ═══════════════════════════════════════════════════════
#  commitguard init
# ═══════════════════════════════════════════════════════
@cli.command()
@click.option("--path", "-p", "target_path", type=click.Path(), default=".",
              help="Directory to create the config file in.")
def init(target_path: str) -> None:
    """Create a default .commitguard.yaml."""
    target = Path(target_path).resolve()
    target.mkdir(parents=True, exist_ok=True)

    config_file = target / CONFIG_FILENAME

    if config_file.exists():
        _safe_echo(click.style(f"  [!] {config_file} already exists, skipping.", fg="yellow"))
    else:
        config_file.write_text(generate_default_config(), encoding="utf-8")
        _safe_echo(click.style(f"  [+] Created {config_file}", fg="green"))

    _safe_echo("")
    _safe_echo("  Edit this file to customize patterns, whitelist and scanners.")
    _safe_echo("  Run 'commitguard scan' to start scanning.")


# ── Helpers ──

def _fail(message: str) -> None:
    _safe_echo(click.style(f"  [X] {message}", fg="red"), err=True)
    sys.exit(EXIT_ERROR)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
