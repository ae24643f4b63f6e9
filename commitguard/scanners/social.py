"""
CommitGuard Social Engineering Scanner

Flags suspicious language ("backdoor", "bypass", "temporary fix", ...)
in file contents, and suspicious content in commit messages.
"""

from __future__ import annotations

import re
from typing import Iterable, List

from commitguard.core.config import DEFAULT_SOCIAL_KEYWORDS, ScanCategory
from commitguard.core.finding import Finding, FindingKind, Severity
from commitguard.core.scanner import BaseScanner
from commitguard.scanners.secrets import mask_secret

RULE_NAME = "Social Engineering Detection"
COMMIT_MESSAGE_FILE = "commit-message"

# (rule, pattern, severity, description)
COMMIT_MESSAGE_RULES: list[tuple[str, re.Pattern, Severity, str]] = [
    ("TODOSecret",
     re.compile(r"(?i)\bTODO[:\s].*(secret|password|key)\b"),
     Severity.LOW,
     "Commit message defers work on a secret, password or key"),
    ("CommentedCred",
     re.compile(r"(?i)//.*(AKIA|ghp_)[A-Za-z0-9]+"),
     Severity.HIGH,
     "Commit message contains a commented-out credential"),
    ("WeakPwInCode",
     re.compile(r"(?i)password\s*=\s*['\"][a-z0-9]{4,8}['\"]"),
     Severity.MEDIUM,
     "Commit message contains a short hardcoded password"),
]


class SocialScanner(BaseScanner):
    """Case-insensitive keyword search, one finding per keyword per line."""

    name = "social"
    category = ScanCategory.SOCIAL

    def __init__(self, keywords: Iterable[str] = DEFAULT_SOCIAL_KEYWORDS) -> None:
        self.keywords = [(k, k.lower()) for k in keywords if k]

    def scan_text(self, file_path: str, content: str) -> List[Finding]:
        findings: List[Finding] = []

        for line_no, line in enumerate(content.split("\n"), start=1):
            lowered = line.lower()
            for keyword, needle in self.keywords:
                index = lowered.find(needle)
                if index < 0:
                    continue
                findings.append(
                    Finding(
                        kind=FindingKind.SOCIAL,
                        severity=Severity.MEDIUM,
                        file_path=file_path,
                        line=line_no,
                        column=index + 1,
                        rule=RULE_NAME,
                        description=f"Suspicious keyword detected: {keyword}",
                        content=line.strip(),
                    )
                )

        return findings

    def scan_commit_message(self, message: str) -> List[Finding]:
        """Check a commit message with the keyword list and the commit-message rules."""
        message = message.strip()
        findings = self.scan_text(COMMIT_MESSAGE_FILE, message)

        for line_no, line in enumerate(message.split("\n"), start=1):
            for rule, pattern, severity, description in COMMIT_MESSAGE_RULES:
                match = pattern.search(line)
                if match is None:
                    continue
                findings.append(
                    Finding(
                        kind=FindingKind.SOCIAL,
                        severity=severity,
                        file_path=COMMIT_MESSAGE_FILE,
                        line=line_no,
                        column=match.start() + 1,
                        rule=rule,
                        description=description,
                        content=mask_secret(match.group(0)),
                    )
                )

        return findings
