"""
CommitGuard Vulnerability Resolver

Looks up dependencies in the OSV (Open Source Vulnerabilities) database.
Dependencies are grouped by ecosystem and each group is sent as one
batched query. A failing batch only loses that ecosystem's findings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

import requests
import structlog

from commitguard.core.config import AdvisoryConfig
from commitguard.core.finding import Finding, FindingKind, Severity
from commitguard.scanners.dependencies import Dependency

log = structlog.get_logger("commitguard.advisories")

RULE_NAME = "Dependency Vulnerability Check"

_DATABASE_SEVERITIES = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MODERATE": Severity.MEDIUM,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}


@dataclass(frozen=True)
class AdvisoryRecord:
    id: str
    summary: str = ""
    detail: str = ""
    severity: Severity = Severity.MEDIUM
    references: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()

    @classmethod
    def from_osv(cls, vuln: dict[str, Any]) -> "AdvisoryRecord":
        """Build a record from an OSV vulnerability, ignoring malformed fields."""
        return cls(
            id=_text(vuln.get("id")) or "UNKNOWN",
            summary=_text(vuln.get("summary")),
            detail=_text(vuln.get("details")),
            severity=map_severity(vuln),
            references=tuple(
                _text(ref.get("url")) for ref in _dicts(vuln.get("references")) if _text(ref.get("url"))
            ),
            aliases=tuple(a for a in _list(vuln.get("aliases")) if isinstance(a, str)),
        )

    def content(self) -> str:
        """Details, aliases and the first reference, one per line."""
        parts = [self.detail] if self.detail else []
        if self.aliases:
            parts.append(f"Aliases: {', '.join(self.aliases)}")
        if self.references:
            parts.append(f"Reference: {self.references[0]}")
        return "\n".join(parts)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _dicts(value: Any) -> list[dict[str, Any]]:
    """The dict items of an OSV list field; anything else is skipped."""
    return [item for item in _list(value) if isinstance(item, dict)]


def severity_from_vector(vector: str) -> Optional[Severity]:
    """Coarse CVSS vector heuristic; not a CVSS calculator."""
    if "/AV:N/" in vector and "/AC:L/" in vector:
        return Severity.HIGH
    if "/PR:N/" in vector:
        return Severity.CRITICAL
    return None


def map_severity(vuln: dict[str, Any]) -> Severity:
    """Map an OSV vulnerability to a Severity level."""
    for sev_info in _dicts(vuln.get("severity")):
        if sev_info.get("type") not in ("CVSS_V3", "CVSS_V4"):
            continue
        severity = severity_from_vector(_text(sev_info.get("score")))
        if severity is not None:
            return severity

    # Check ecosystem-specific severity
    db_specific = vuln.get("database_specific")
    if isinstance(db_specific, dict):
        severity_str = _text(db_specific.get("severity")).upper()
        if severity_str in _DATABASE_SEVERITIES:
            return _DATABASE_SEVERITIES[severity_str]

    # Default to MEDIUM if we can't determine severity
    return Severity.MEDIUM


@dataclass
class _Batch:
    """One ecosystem's request, each entry paired with the dependency it came from."""

    ecosystem: str
    entries: list[tuple[Dependency, dict[str, Any]]] = field(default_factory=list)

    def payload(self) -> dict[str, Any]:
        return {"queries": [query for _, query in self.entries]}


class VulnerabilityResolver:
    """
    Batched OSV client.

    Responses are attributed through the (dependency, query) pairs that built
    the request; a response with a different number of results is rejected.
    """

    def __init__(self, config: Optional[AdvisoryConfig] = None) -> None:
        self.config = config or AdvisoryConfig()
        self.url = self.config.url.rstrip("/")

    def resolve(self, dependencies: Iterable[Dependency]) -> List[Finding]:
        findings: List[Finding] = []
        for batch in self._group(dependencies):
            findings.extend(self._resolve_batch(batch))
        return findings

    def query(self, dependency: Dependency) -> List[AdvisoryRecord]:
        """Single-package lookup against /v1/query."""
        try:
            resp = requests.post(
                f"{self.url}/query",
                json=dependency.to_osv_query(),
                timeout=self.config.timeout,
            )
            if resp.status_code != 200:
                log.warning("osv_query_failed", package=dependency.name, status=resp.status_code)
                return []
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.warning("osv_query_failed", package=dependency.name, error=str(exc))
            return []
        vulns = _dicts(data.get("vulns")) if isinstance(data, dict) else []
        return [AdvisoryRecord.from_osv(self._hydrate(v)) for v in vulns]

    @staticmethod
    def _group(dependencies: Iterable[Dependency]) -> list[_Batch]:
        batches: dict[str, _Batch] = {}
        for dep in dependencies:
            if not dep.version:
                continue
            batch = batches.setdefault(dep.ecosystem, _Batch(ecosystem=dep.ecosystem))
            batch.entries.append((dep, dep.to_osv_query()))
        return list(batches.values())

    def _resolve_batch(self, batch: _Batch) -> List[Finding]:
        try:
            resp = requests.post(
                f"{self.url}/querybatch",
                json=batch.payload(),
                timeout=self.config.timeout,
            )
            if resp.status_code != 200:
                log.warning("osv_batch_failed", ecosystem=batch.ecosystem, status=resp.status_code)
                return []
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.warning("osv_batch_failed", ecosystem=batch.ecosystem, error=str(exc))
            return []

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or len(results) != len(batch.entries):
            log.warning(
                "osv_batch_misaligned",
                ecosystem=batch.ecosystem,
                queries=len(batch.entries),
                results=len(results) if isinstance(results, list) else None,
            )
            return []

        findings: List[Finding] = []
        for (dep, _query), result in zip(batch.entries, results):
            if result is None:
                continue
            if not isinstance(result, dict):
                log.warning("osv_result_malformed", ecosystem=batch.ecosystem, package=dep.name)
                continue
            for vuln in _dicts(result.get("vulns")):
                record = AdvisoryRecord.from_osv(self._hydrate(vuln))
                findings.append(self._to_finding(dep, record))

        log.debug(
            "osv_batch_resolved",
            ecosystem=batch.ecosystem,
            queries=len(batch.entries),
            findings=len(findings),
        )
        return findings

    def _hydrate(self, vuln: dict[str, Any]) -> dict[str, Any]:
        """Fetch the full record for a batch stub that only carries an id."""
        vuln_id = _text(vuln.get("id"))
        if not self.config.hydrate or vuln.get("summary") or vuln.get("details") or not vuln_id:
            return vuln
        try:
            resp = requests.get(f"{self.url}/vulns/{vuln_id}", timeout=self.config.timeout)
            if resp.status_code == 200:
                full = resp.json()
                if isinstance(full, dict):
                    return full
            log.debug("osv_hydrate_failed", id=vuln_id, status=resp.status_code)
        except (requests.RequestException, ValueError) as exc:
            log.debug("osv_hydrate_failed", id=vuln_id, error=str(exc))
        return vuln

    @staticmethod
    def _to_finding(dep: Dependency, record: AdvisoryRecord) -> Finding:
        summary = record.summary or "No description available."
        return Finding(
            kind=FindingKind.VULNERABILITY,
            severity=record.severity,
            file_path=dep.source_file,
            line=dep.line,
            column=1,
            rule=RULE_NAME,
            description=f"Vulnerability {record.id} in {dep.name}@{dep.version}: {summary}",
            content=record.content(),
        )
