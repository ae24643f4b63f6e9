"""
CommitGuard Base Scanner

A line scanner inspects the decoded text of one file and returns findings.

Line scanners:
- SecretMatcher
- SocialScanner
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from commitguard.core.config import ScanCategory
from commitguard.core.finding import Finding

BINARY_SNIFF_BYTES = 512


class BaseScanner(ABC):
    """
    Minimal per-file scanner interface.
    Each scanner must implement scan_text().
    """

    name: str = "base"
    category: ScanCategory

    @abstractmethod
    def scan_text(self, file_path: str, content: str) -> List[Finding]:
        """
        Scan the content of one file and return findings in line order.
        """
        raise NotImplementedError


def is_binary(data: bytes) -> bool:
    """A NUL byte in the first 512 bytes marks the file as binary."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def read_scannable_text(file_path: Path, max_file_size: int) -> Optional[str]:
    """
    Return the decoded content of a file, or None when it must not be scanned
    (oversized or binary). OSError propagates to the caller.
    """
    if file_path.stat().st_size > max_file_size:
        return None
    data = file_path.read_bytes()
    if is_binary(data):
        return None
    return data.decode("utf-8", errors="replace")
