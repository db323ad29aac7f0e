"""Tests for scan data models."""

from __future__ import annotations

import pytest

from codesentry.scan.models import (
    EnhancedAnalysis,
    ScanJob,
    ScanStatus,
    Severity,
    StatusCheck,
    VulnerabilityReport,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("COMPLETED", ScanStatus.COMPLETED),
        ("scanning", ScanStatus.SCANNING),
        ("UNKNOWN", ScanStatus.PENDING),
        (None, ScanStatus.PENDING),
    ],
)
def test_scan_status_parse(raw, expected):
    assert ScanStatus.parse(raw) == expected


def test_terminal_statuses():
    assert ScanStatus.COMPLETED.is_terminal
    assert ScanStatus.FAILED.is_terminal
    assert not ScanStatus.SCANNING.is_terminal
    assert not ScanStatus.PENDING.is_terminal


@pytest.mark.parametrize("raw", ["SEVERE", "", None, "info"])
def test_unrecognised_severity_reads_as_low(raw):
    assert Severity.parse(raw) == Severity.LOW


def test_report_from_api_keeps_server_order(report_payload):
    report = VulnerabilityReport.from_api(report_payload)
    assert report.security_score == 85
    assert report.code_id == "code-1"
    assert [v.type for v in report.vulnerabilities] == ["SQL Injection", "Hardcoded secret"]
    assert report.vulnerabilities[0].severity == Severity.HIGH
    assert report.vulnerabilities[0].code_snippet.startswith("cursor.execute")
    assert report.vulnerabilities[1].line == 3


def test_report_api_format_is_symmetric(report_payload):
    report = VulnerabilityReport.from_api(report_payload)
    assert VulnerabilityReport.from_api(report.to_api()) == report


def test_report_score_bounds():
    with pytest.raises(ValueError):
        VulnerabilityReport(security_score=101)
    with pytest.raises(ValueError):
        VulnerabilityReport(security_score=-1)


def test_severity_counts(report_payload):
    counts = VulnerabilityReport.from_api(report_payload).severity_counts()
    assert counts[Severity.CRITICAL] == 1
    assert counts[Severity.HIGH] == 1
    assert counts[Severity.LOW] == 0


def test_job_drops_stale_result_when_status_moves_on(sample_report):
    job = ScanJob(code_id="code-1")
    assert job.status == ScanStatus.PENDING
    assert job.attempts_made == 0

    job.record(StatusCheck(status=ScanStatus.COMPLETED, report=sample_report))
    assert job.result is sample_report

    job.record(StatusCheck(status=ScanStatus.SCANNING))
    assert job.result is None


def test_job_fail_clears_result(sample_report):
    job = ScanJob(code_id="code-1")
    job.record(StatusCheck(status=ScanStatus.COMPLETED, report=sample_report))
    job.fail(timed_out=True)
    assert job.status == ScanStatus.FAILED
    assert job.result is None
    assert job.timed_out


def test_job_exhausted():
    job = ScanJob(code_id="code-1", max_attempts=2)
    job.attempts_made = 1
    assert not job.exhausted
    job.attempts_made = 2
    assert job.exhausted


def test_enhanced_analysis_from_api():
    enhanced = EnhancedAnalysis.from_api(
        {"queries": ["MATCH (n) RETURN n"], "retrievedNodes": [{"id": "cwe-89"}]}
    )
    assert enhanced.queries == ("MATCH (n) RETURN n",)
    assert enhanced.retrieved_nodes == ({"id": "cwe-89"},)
