"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from codesentry.config import CodeSentryConfig
from codesentry.scan.models import Severity, Vulnerability, VulnerabilityReport


@pytest.fixture
def report_payload() -> dict:
    """A completed scan result as the remote API sends it."""
    return {
        "id": "rep-1",
        "codeId": "code-1",
        "scanTime": "2026-10-19T10:15:00",
        "summary": "Two issues found",
        "securityScore": 85,
        "vulnerabilities": [
            {
                "type": "SQL Injection",
                "description": "Query built by string concatenation",
                "line": 12,
                "codeSnippet": "cursor.execute('SELECT ' + name)",
                "suggestion": "Use parameterised queries",
                "severity": "HIGH",
            },
            {
                "type": "Hardcoded secret",
                "description": "API key in source",
                "line": 3,
                "codeSnippet": "KEY = 'abc'",
                "suggestion": "Read it from the environment",
                "severity": "CRITICAL",
            },
        ],
    }


@pytest.fixture
def sample_report() -> VulnerabilityReport:
    return VulnerabilityReport(
        security_score=85,
        vulnerabilities=(
            Vulnerability(
                type="XSS",
                description="Unescaped output",
                severity=Severity.MEDIUM,
                line=7,
                code_snippet="print(html)",
                suggestion="Escape it",
            ),
            Vulnerability(
                type="Weak hash",
                description="md5 used for passwords",
                severity=Severity.LOW,
                line=2,
            ),
        ),
        summary="Mostly fine",
        scan_time="2026-10-19T10:15:00",
        code_id="code-1",
        id="rep-1",
    )


@pytest.fixture
def config(tmp_path: Path) -> CodeSentryConfig:
    return CodeSentryConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
        api_base_url="http://api.test",
        poll_interval=0.01,
        status_timeout=0.005,
        max_attempts=5,
    )
