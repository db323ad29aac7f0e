"""Tests for the SQLite scan ledger."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from codesentry.scan.models import Outcome, ScanJob, ScanStatus, Severity


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path: Path):
    from codesentry.storage.db import get_db

    conn = run_async(get_db(db_path))
    yield conn
    run_async(conn.close())


class TestScanJobRepo:
    def test_upsert_and_get(self, db):
        from codesentry.storage.repos import ScanJobRepo

        repo = ScanJobRepo(db)
        job = ScanJob(code_id="c1", max_attempts=10, status=ScanStatus.SCANNING)
        job.attempts_made = 3
        run_async(repo.upsert(job))

        row = run_async(repo.get("c1"))
        assert row is not None
        assert row["status"] == "SCANNING"
        assert row["attempts_made"] == 3
        assert row["outcome"] == ""
        assert row["timed_out"] is False

    def test_upsert_replaces_previous_run(self, db):
        from codesentry.storage.repos import ScanJobRepo

        repo = ScanJobRepo(db)
        job = ScanJob(code_id="c1", status=ScanStatus.SCANNING)
        run_async(repo.upsert(job))
        job.fail(timed_out=True)
        run_async(repo.upsert(job, Outcome.TIMED_OUT))

        rows = run_async(repo.list_all())
        assert len(rows) == 1
        assert rows[0]["outcome"] == "timedOut"
        assert rows[0]["timed_out"] is True

    def test_update_status_creates_and_resets(self, db):
        from codesentry.storage.repos import ScanJobRepo

        repo = ScanJobRepo(db)
        run_async(repo.update_status("c1", ScanStatus.SCANNING))
        assert run_async(repo.get("c1"))["status"] == "SCANNING"

        job = ScanJob(code_id="c1")
        job.fail(timed_out=True)
        run_async(repo.upsert(job, Outcome.TIMED_OUT))

        run_async(repo.update_status("c1", ScanStatus.SCANNING))
        row = run_async(repo.get("c1"))
        assert row["outcome"] == ""
        assert row["timed_out"] is False

    def test_list_unfinished(self, db):
        from codesentry.storage.repos import ScanJobRepo

        repo = ScanJobRepo(db)
        timed_out = ScanJob(code_id="slow")
        timed_out.fail(timed_out=True)
        run_async(repo.upsert(timed_out, Outcome.TIMED_OUT))

        done = ScanJob(code_id="done", status=ScanStatus.COMPLETED)
        run_async(repo.upsert(done, Outcome.COMPLETED))

        failed = ScanJob(code_id="broken")
        failed.fail()
        run_async(repo.upsert(failed, Outcome.FAILED))

        stuck = ScanJob(code_id="cancelled", status=ScanStatus.SCANNING)
        run_async(repo.upsert(stuck, Outcome.CANCELLED))

        unfinished = {row["code_id"] for row in run_async(repo.list_unfinished())}
        assert unfinished == {"slow", "cancelled"}

    def test_get_missing(self, db):
        from codesentry.storage.repos import ScanJobRepo

        assert run_async(ScanJobRepo(db).get("nope")) is None


class TestReportRepo:
    def test_save_and_get_keeps_order(self, db, sample_report):
        from codesentry.storage.repos import ReportRepo

        repo = ReportRepo(db)
        run_async(repo.save("code-1", sample_report))

        loaded = run_async(repo.get("code-1"))
        assert loaded == sample_report
        assert [v.severity for v in loaded.vulnerabilities] == [
            Severity.MEDIUM,
            Severity.LOW,
        ]

    def test_save_overwrites_findings(self, db, sample_report):
        from codesentry.scan.models import VulnerabilityReport
        from codesentry.storage.repos import ReportRepo

        repo = ReportRepo(db)
        run_async(repo.save("code-1", sample_report))
        run_async(repo.save("code-1", VulnerabilityReport(security_score=100)))

        loaded = run_async(repo.get("code-1"))
        assert loaded.security_score == 100
        assert loaded.vulnerabilities == ()

    def test_get_missing(self, db):
        from codesentry.storage.repos import ReportRepo

        assert run_async(ReportRepo(db).get("nope")) is None


def test_reopen_existing_database(db_path):
    from codesentry.storage.db import SCHEMA_VERSION, get_db

    conn = run_async(get_db(db_path))
    run_async(conn.close())

    conn = run_async(get_db(db_path))
    cursor = run_async(conn.execute("SELECT version FROM schema_version"))
    row = run_async(cursor.fetchone())
    run_async(conn.close())
    assert row[0] == SCHEMA_VERSION
