"""
CommitGuard JSON Reporter

Generates machine-readable JSON output format:
{
    "version": "1.0",
    "tool": {"name": "CommitGuard", "version": "..."},
    "target": "...",
    "scan_time": "...",
    "duration": "...",
    "files_scanned": N,
    "issues": [...],
    "summary": {"critical": n, "high": n, "medium": n, "low": n, "total": n}
}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from commitguard import __version__
from commitguard.core.finding import Results


class JSONReporter:
    """Generates JSON-formatted scan reports."""

    def __init__(self, target: str) -> None:
        self.target = target

    def report(
        self,
        results: Results,
        output_file: Optional[str] = None,
    ) -> str:
        """
        Generate JSON report.

        Args:
            results: Aggregated scan results.
            output_file: Optional file path to write the report to.

        Returns:
            The JSON string.
        """
        report_data = {
            "version": "1.0",
            "tool": {
                "name": "CommitGuard",
                "version": __version__,
            },
            "target": self.target,
            **results.to_dict(),
        }

        json_str = json.dumps(report_data, indent=2, default=str)

        if output_file:
            Path(output_file).write_text(json_str, encoding="utf-8")

        return json_str
