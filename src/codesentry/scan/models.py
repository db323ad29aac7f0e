"""Scan data models — jobs, status checks, reports and poll outcomes."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any


class ScanStatus(enum.Enum):
    """Server-reported scan state of a generated code document."""

    PENDING = "PENDING"
    SCANNING = "SCANNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, value: str | None) -> ScanStatus:
        """Unknown or missing values read as PENDING."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


class Severity(enum.Enum):
    """Vulnerability severity, most severe first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @classmethod
    def parse(cls, value: str | None) -> Severity:
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.LOW


class Outcome(enum.Enum):
    """How a poll loop ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Vulnerability:
    """A single finding of a completed scan."""

    type: str
    description: str
    severity: Severity
    line: int
    code_snippet: str = ""
    suggestion: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Vulnerability:
        return cls(
            type=data.get("type", ""),
            description=data.get("description", ""),
            severity=Severity.parse(data.get("severity")),
            line=int(data.get("line") or 0),
            code_snippet=data.get("codeSnippet", ""),
            suggestion=data.get("suggestion", ""),
        )


@dataclass(frozen=True)
class VulnerabilityReport:
    """Result of a completed scan. Findings keep the server's order."""

    security_score: int
    vulnerabilities: tuple[Vulnerability, ...] = ()
    summary: str = ""
    scan_time: str = ""
    code_id: str = ""
    id: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.security_score <= 100:
            raise ValueError(
                f"security_score must be within 0..100, got {self.security_score}"
            )

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> VulnerabilityReport:
        return cls(
            security_score=int(data.get("securityScore", 0)),
            vulnerabilities=tuple(
                Vulnerability.from_api(v) for v in data.get("vulnerabilities") or ()
            ),
            summary=data.get("summary", ""),
            scan_time=str(data.get("scanTime", "")),
            code_id=data.get("codeId", ""),
            id=data.get("id", ""),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "codeId": self.code_id,
            "securityScore": self.security_score,
            "summary": self.summary,
            "scanTime": self.scan_time,
            "vulnerabilities": [
                {
                    "type": v.type,
                    "description": v.description,
                    "severity": v.severity.value,
                    "line": v.line,
                    "codeSnippet": v.code_snippet,
                    "suggestion": v.suggestion,
                }
                for v in self.vulnerabilities
            ],
        }

    def severity_counts(self) -> dict[Severity, int]:
        counts = {s: 0 for s in Severity}
        for vuln in self.vulnerabilities:
            counts[vuln.severity] += 1
        return counts


@dataclass(frozen=True)
class StatusCheck:
    """One answer from the status fetch capability."""

    status: ScanStatus
    report: VulnerabilityReport | None = None


@dataclass(frozen=True)
class EnhancedAnalysis:
    """Knowledge-graph context returned by an enhanced scan submission."""

    queries: tuple[str, ...] = ()
    retrieved_nodes: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> EnhancedAnalysis:
        return cls(
            queries=tuple(str(q) for q in data.get("queries") or ()),
            retrieved_nodes=tuple(data.get("retrievedNodes") or ()),
        )


@dataclass(frozen=True)
class SubmissionOutcome:
    """Acknowledgement of a scan submission.

    The remote service keys status by code id, so ``code_id`` doubles as the
    polling handle.
    """

    code_id: str
    message: str = ""
    enhanced: EnhancedAnalysis | None = None


@dataclass(frozen=True)
class TerminalOutcome:
    """Final result of ``ScanOrchestrator.poll_until_terminal``."""

    outcome: Outcome
    code_id: str
    attempts: int
    report: VulnerabilityReport | None = None


@dataclass(frozen=True)
class TickEvent:
    """Published to subscribers after every status check."""

    code_id: str
    attempt: int
    status: ScanStatus
    error: str = ""


@dataclass
class ScanJob:
    """One tracked attempt to obtain a report for a code document.

    Only the orchestrator's tick handler mutates a job; ``record`` and
    ``fail`` keep ``result`` in step with ``status``.
    """

    code_id: str
    max_attempts: int = 10
    poll_interval: float = 3.0
    status: ScanStatus = ScanStatus.PENDING
    attempts_made: int = 0
    result: VulnerabilityReport | None = None
    timed_out: bool = False
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    def record(self, check: StatusCheck) -> None:
        """Apply a status check to the job."""
        self.status = check.status
        if check.status == ScanStatus.COMPLETED:
            self.result = check.report
        else:
            self.result = None

    def fail(self, timed_out: bool = False) -> None:
        self.status = ScanStatus.FAILED
        self.result = None
        self.timed_out = timed_out

    @property
    def exhausted(self) -> bool:
        return self.attempts_made >= self.max_attempts
