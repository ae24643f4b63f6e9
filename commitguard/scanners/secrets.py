"""
CommitGuard Secrets Scanner

Matches every line of a file against the configured PatternSet.
Whitelisted matches are dropped and every reported secret is masked,
so raw secret values never reach a report.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from commitguard.core.config import PatternSet, ScanCategory
from commitguard.core.finding import Finding, FindingKind
from commitguard.core.scanner import BaseScanner

MASK_CHAR = "*"
VISIBLE_CHARS = 4


def mask_secret(secret: str) -> str:
    """
    Length-preserving redaction.

    Values of up to 9 characters are fully masked; longer values keep their
    first and last four characters.
    """
    length = len(secret)
    if length <= 2 * VISIBLE_CHARS + 1:
        return MASK_CHAR * length
    return (
        secret[:VISIBLE_CHARS]
        + MASK_CHAR * (length - 2 * VISIBLE_CHARS)
        + secret[-VISIBLE_CHARS:]
    )


def secret_value(match: re.Match) -> str:
    """The first capture group when it took part in the match, else the whole match."""
    if match.re.groups >= 1 and match.group(1) is not None:
        return match.group(1)
    return match.group(0)


class SecretMatcher(BaseScanner):
    """
    Regex-based secrets scanner.
    Rules come from configuration; the scanner holds no global state.
    """

    name = "secrets"
    category = ScanCategory.SECRETS

    def __init__(self, patterns: PatternSet, whitelist: Optional[Iterable[str]] = None) -> None:
        self.patterns = patterns
        self._whitelist = tuple(w.lower() for w in (whitelist or ()) if w)

    def is_whitelisted(self, value: str) -> bool:
        lowered = value.lower()
        return any(entry in lowered for entry in self._whitelist)

    def scan_text(self, file_path: str, content: str) -> List[Finding]:
        findings: List[Finding] = []

        for line_no, line in enumerate(content.split("\n"), start=1):
            for rule in self.patterns:
                for match in rule.pattern.finditer(line):
                    if not match.group(0):
                        continue
                    # the whole match contains the captured value
                    if self.is_whitelisted(match.group(0)):
                        continue

                    findings.append(
                        Finding(
                            kind=FindingKind.SECRET,
                            severity=rule.severity,
                            file_path=file_path,
                            line=line_no,
                            column=match.start() + 1,
                            rule=rule.name,
                            description=rule.description,
                            content=mask_secret(secret_value(match)),
                        )
                    )

        return findings
