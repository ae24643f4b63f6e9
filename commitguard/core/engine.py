"""
CommitGuard Scan Engine

Entry point of the scanning pipeline:

    FileWalker -> ConcurrentDispatcher -> {SecretMatcher, SocialScanner,
    dependency extraction} -> join -> VulnerabilityResolver -> Aggregator
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, List, Optional, Union

import structlog

from commitguard.core.config import ScanCategory, ScanConfig
from commitguard.core.dispatcher import ConcurrentDispatcher, FileOutcome
from commitguard.core.finding import Aggregator, Finding, Results
from commitguard.core.scanner import BaseScanner, read_scannable_text
from commitguard.core.walker import FileWalker
from commitguard.scanners.advisories import VulnerabilityResolver
from commitguard.scanners.dependencies import Dependency, extract_dependencies, is_manifest
from commitguard.scanners.secrets import SecretMatcher
from commitguard.scanners.social import SocialScanner

log = structlog.get_logger("commitguard.engine")


class ScanEngine:
    """Runs a full scan of a path with one immutable configuration."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        resolver: Optional[VulnerabilityResolver] = None,
    ) -> None:
        self.config = config or ScanConfig()
        self.walker = FileWalker(self.config)
        self.dispatcher = ConcurrentDispatcher(self.config.concurrency)
        self.resolver = resolver or VulnerabilityResolver(self.config.advisories)

    def scan_path(
        self,
        root: Union[str, Path],
        categories: Optional[Iterable[ScanCategory]] = None,
    ) -> Results:
        """
        Scan a directory or file.

        Args:
            root: Directory or single file to scan.
            categories: Categories to run; defaults to every category enabled
                in the configuration. Categories disabled in the configuration
                never run.

        Returns:
            The aggregated Results.

        Raises:
            ScanError: the root cannot be accessed.
        """
        aggregator = Aggregator()
        started = time.monotonic()

        active = self._active_categories(categories)
        line_scanners = self._line_scanners(active)
        extract_deps = ScanCategory.DEPENDENCIES in active

        paths = self.walker.walk(root)

        def scan_file(path: Path) -> FileOutcome:
            return self._scan_file(path, line_scanners, extract_deps)

        dispatched = self.dispatcher.run(paths, scan_file)

        dependencies: List[Dependency] = []
        for outcome in dispatched.outcomes:
            aggregator.extend(self._reportable(outcome.findings))
            dependencies.extend(outcome.dependencies)

        if dependencies and self.config.advisories.enabled:
            aggregator.extend(self._reportable(self.resolver.resolve(dependencies)))

        results = aggregator.build(
            files_scanned=dispatched.files_dispatched,
            duration=time.monotonic() - started,
        )
        log.info(
            "scan_complete",
            root=str(root),
            files=results.files_scanned,
            findings=results.summary.total,
            duration=round(results.duration, 3),
        )
        return results

    def _reportable(self, findings: List[Finding]) -> List[Finding]:
        """Drop findings whose rule is listed in ignore_rules (exact name match)."""
        if not self.config.ignore_rules:
            return findings
        return [f for f in findings if f.rule not in self.config.ignore_rules]

    def _active_categories(self, categories: Optional[Iterable[ScanCategory]]) -> frozenset[ScanCategory]:
        requested = frozenset(categories) if categories is not None else frozenset(ScanCategory)
        return requested & self.config.enabled_categories

    def _line_scanners(self, active: frozenset[ScanCategory]) -> List[BaseScanner]:
        scanners: List[BaseScanner] = []
        if ScanCategory.SECRETS in active:
            scanners.append(SecretMatcher(self.config.patterns, self.config.whitelist))
        if ScanCategory.SOCIAL in active:
            scanners.append(SocialScanner(self.config.social_keywords))
        return scanners

    def _scan_file(
        self,
        path: Path,
        line_scanners: List[BaseScanner],
        extract_deps: bool,
    ) -> FileOutcome:
        outcome = FileOutcome(path=path)
        try:
            content = read_scannable_text(path, self.config.max_file_size)
        except OSError as exc:
            log.debug("file_unreadable", path=str(path), error=str(exc))
            return outcome
        if content is None:
            log.debug("file_skipped", path=str(path), reason="binary or oversized")
            return outcome

        file_path = str(path)
        for scanner in line_scanners:
            outcome.findings.extend(scanner.scan_text(file_path, content))
        if extract_deps and is_manifest(path):
            outcome.dependencies.extend(extract_dependencies(path, content))
        return outcome


def scan_path(
    root: Union[str, Path],
    categories: Optional[Iterable[ScanCategory]] = None,
    config: Optional[ScanConfig] = None,
) -> Results:
    """Convenience wrapper: scan `root` with a fresh ScanEngine."""
    return ScanEngine(config).scan_path(root, categories)
