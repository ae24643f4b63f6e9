"""
Tests for Reporters
"""

import json
from pathlib import Path

from commitguard.core.finding import Aggregator, merge_results
from commitguard.reporting.console import ConsoleReporter
from commitguard.reporting.json_reporter import JSONReporter


def _results(findings, files_scanned: int = 3):
    aggregator = Aggregator()
    aggregator.extend(findings)
    return aggregator.build(files_scanned=files_scanned, duration=0.25)


class TestAggregator:
    """Tests for Results assembly."""

    def test_counts_per_severity(self, sample_findings):
        results = _results(sample_findings)

        assert results.summary.critical == 1
        assert results.summary.high == 1
        assert results.summary.medium == 1
        assert results.summary.low == 1
        assert results.summary.total == 4
        assert results.findings == tuple(sample_findings)

    def test_empty_results(self):
        results = _results([], files_scanned=0)

        assert results.findings == ()
        assert results.summary.total == 0
        assert not results.has_findings

    def test_merge_results(self, sample_findings):
        first = _results(sample_findings[:2], files_scanned=2)
        second = _results(sample_findings[2:], files_scanned=5)

        merged = merge_results([first, second])

        assert merged.findings == tuple(sample_findings)
        assert merged.files_scanned == 7
        assert merged.duration == 0.5
        assert merged.summary.total == 4
        assert merged.scan_time == first.scan_time


class TestJSONReporter:
    """Tests for JSON output."""

    def test_report_structure(self, sample_findings):
        report = json.loads(JSONReporter(target="/repo").report(_results(sample_findings)))

        assert report["tool"]["name"] == "CommitGuard"
        assert report["target"] == "/repo"
        assert report["files_scanned"] == 3
        assert report["duration"] == "0.250s"
        assert report["summary"] == {"critical": 1, "high": 1, "medium": 1, "low": 1, "total": 4}
        assert len(report["issues"]) == 4

    def test_issue_fields(self, sample_findings):
        report = json.loads(JSONReporter(target="/repo").report(_results(sample_findings)))
        issue = report["issues"][0]

        assert issue["type"] == "secret"
        assert issue["severity"] == "critical"
        assert issue["file"] == "app/settings.py"
        assert issue["line"] == 3
        assert issue["column"] == 18
        assert issue["rule"] == "AWS Access Key"
        assert issue["content"] == "AKIA************MPLE"
        assert "timestamp" in issue

    def test_writes_output_file(self, sample_findings, temp_dir: Path):
        output = temp_dir / "report.json"
        json_str = JSONReporter(target="/repo").report(_results(sample_findings), output_file=str(output))

        assert output.read_text(encoding="utf-8") == json_str


class TestConsoleReporter:
    """Tests for console output."""

    def test_passed_report(self, capsys):
        ConsoleReporter(target="/repo").report(_results([], files_scanned=7))
        out = capsys.readouterr().out

        assert "CommitGuard Security Scan Results" in out
        assert "Files scanned: 7" in out
        assert "[OK] PASSED" in out

    def test_failed_report(self, sample_findings, capsys):
        ConsoleReporter(target="/repo").report(_results(sample_findings))
        out = capsys.readouterr().out

        assert "[X] FAILED - 4 security issue(s)" in out
        assert "File: app/settings.py:3:18" in out
        assert "Rule: AWS Access Key" in out
        assert "Content: AKIA************MPLE" in out
        assert "[CRITICAL]" in out
