"""
CommitGuard Finding Model

A Finding represents one security issue found during scanning:
a leaked secret, a vulnerable dependency or a suspicious phrase.
Findings are folded into an immutable Results value by the Aggregator.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Sequence


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_string(cls, value: str) -> "Severity":
        """Parse a severity from a string (case-insensitive)."""
        return cls[value.strip().upper()]


class FindingKind(Enum):
    SECRET = "secret"
    VULNERABILITY = "vulnerability"
    SOCIAL = "social"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Finding:
    kind: FindingKind
    severity: Severity
    file_path: str
    line: int
    column: int
    rule: str
    description: str
    content: str = ""
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to a dictionary for JSON serialization."""
        return {
            "type": self.kind.value,
            "severity": self.severity.value,
            "file": self.file_path,
            "line": self.line,
            "column": self.column,
            "description": self.description,
            "content": self.content,
            "rule": self.rule,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Summary:
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    def to_dict(self) -> dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "total": self.total,
        }


@dataclass(frozen=True)
class Results:
    """Outcome of one scan. Built by the Aggregator, never mutated afterwards."""

    scan_time: datetime
    duration: float
    files_scanned: int
    findings: tuple[Finding, ...] = ()
    summary: Summary = field(default_factory=Summary)

    @property
    def has_findings(self) -> bool:
        return len(self.findings) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_time": self.scan_time.isoformat(),
            "duration": f"{self.duration:.3f}s",
            "files_scanned": self.files_scanned,
            "issues": [f.to_dict() for f in self.findings],
            "summary": self.summary.to_dict(),
        }


class Aggregator:
    """
    Accumulates findings in arrival order and counts them per severity.

    Not thread-safe: the engine feeds it only after all workers have joined.
    """

    def __init__(self) -> None:
        self.scan_time = _now()
        self._started = time.monotonic()
        self._findings: list[Finding] = []
        self._counts: dict[Severity, int] = {sev: 0 for sev in Severity}

    def add(self, finding: Finding) -> None:
        self._counts[finding.severity] += 1
        self._findings.append(finding)

    def extend(self, findings: Sequence[Finding]) -> None:
        for finding in findings:
            self.add(finding)

    def build(self, files_scanned: int, duration: Optional[float] = None) -> Results:
        """Freeze the accumulated findings into a Results value."""
        if duration is None:
            duration = time.monotonic() - self._started
        summary = Summary(
            critical=self._counts[Severity.CRITICAL],
            high=self._counts[Severity.HIGH],
            medium=self._counts[Severity.MEDIUM],
            low=self._counts[Severity.LOW],
        )
        return Results(
            scan_time=self.scan_time,
            duration=duration,
            files_scanned=files_scanned,
            findings=tuple(self._findings),
            summary=summary,
        )


def merge_results(parts: Sequence[Results]) -> Results:
    """Combine the results of several scans into one, keeping finding order."""
    aggregator = Aggregator()
    for part in parts:
        aggregator.extend(part.findings)
    merged = aggregator.build(
        files_scanned=sum(part.files_scanned for part in parts),
        duration=sum(part.duration for part in parts),
    )
    if parts:
        merged = replace(merged, scan_time=parts[0].scan_time)
    return merged
