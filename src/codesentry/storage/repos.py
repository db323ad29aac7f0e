"""Repository classes for async CRUD operations on the local scan ledger."""

from __future__ import annotations

import time

import aiosqlite

from codesentry.scan.models import (
    Outcome,
    ScanJob,
    ScanStatus,
    Severity,
    Vulnerability,
    VulnerabilityReport,
)


class ScanJobRepo:
    """One row per code document: the last poll loop run against it."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def upsert(self, job: ScanJob, outcome: Outcome | None = None) -> None:
        await self._db.execute(
            "INSERT OR REPLACE INTO scan_jobs "
            "(code_id, status, attempts_made, max_attempts, poll_interval, "
            "timed_out, outcome, started_at, finished_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                job.code_id,
                job.status.value,
                job.attempts_made,
                job.max_attempts,
                job.poll_interval,
                int(job.timed_out),
                outcome.value if outcome else "",
                job.started_at,
                job.finished_at,
            ),
        )
        await self._db.commit()

    async def update_status(self, code_id: str, status: ScanStatus) -> None:
        """Record a status change of an active scan; clears any previous outcome."""
        await self._db.execute(
            "INSERT INTO scan_jobs (code_id, status, started_at) VALUES (?, ?, ?) "
            "ON CONFLICT(code_id) DO UPDATE SET "
            "status = excluded.status, outcome = '', timed_out = 0",
            (code_id, status.value, time.time()),
        )
        await self._db.commit()

    async def get(self, code_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM scan_jobs WHERE code_id = ?", (code_id,)
        )
        row = await cursor.fetchone()
        return _job_row(row) if row else None

    async def list_all(self, limit: int = 50, offset: int = 0) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM scan_jobs ORDER BY started_at DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [_job_row(row) async for row in cursor]

    async def list_unfinished(self) -> list[dict]:
        """Jobs whose scan may still be running on the server."""
        cursor = await self._db.execute(
            "SELECT * FROM scan_jobs WHERE timed_out = 1 OR status = ? "
            "ORDER BY started_at",
            (ScanStatus.SCANNING.value,),
        )
        return [_job_row(row) async for row in cursor]


class ReportRepo:
    """Completed vulnerability reports, findings kept in server order."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save(self, code_id: str, report: VulnerabilityReport) -> None:
        await self._db.execute("DELETE FROM vulnerabilities WHERE code_id = ?", (code_id,))
        await self._db.execute(
            "INSERT OR REPLACE INTO scan_reports "
            "(code_id, report_id, security_score, summary, scan_time, saved_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                code_id,
                report.id,
                report.security_score,
                report.summary,
                report.scan_time,
                time.time(),
            ),
        )
        for position, vuln in enumerate(report.vulnerabilities):
            await self._db.execute(
                "INSERT INTO vulnerabilities "
                "(code_id, position, type, severity, line, description, "
                "suggestion, code_snippet) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    code_id,
                    position,
                    vuln.type,
                    vuln.severity.value,
                    vuln.line,
                    vuln.description,
                    vuln.suggestion,
                    vuln.code_snippet,
                ),
            )
        await self._db.commit()

    async def get(self, code_id: str) -> VulnerabilityReport | None:
        cursor = await self._db.execute(
            "SELECT * FROM scan_reports WHERE code_id = ?", (code_id,)
        )
        row = await cursor.fetchone()
        if not row:
            return None

        cursor = await self._db.execute(
            "SELECT * FROM vulnerabilities WHERE code_id = ? ORDER BY position",
            (code_id,),
        )
        vulnerabilities = tuple(
            [
                Vulnerability(
                    type=v["type"],
                    description=v["description"],
                    severity=Severity.parse(v["severity"]),
                    line=v["line"],
                    code_snippet=v["code_snippet"],
                    suggestion=v["suggestion"],
                )
                async for v in cursor
            ]
        )
        return VulnerabilityReport(
            security_score=row["security_score"],
            vulnerabilities=vulnerabilities,
            summary=row["summary"],
            scan_time=row["scan_time"],
            code_id=code_id,
            id=row["report_id"],
        )


def _job_row(row: aiosqlite.Row) -> dict:
    result = dict(row)
    result["timed_out"] = bool(result["timed_out"])
    return result
