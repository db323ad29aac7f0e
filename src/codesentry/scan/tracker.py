"""Wires the orchestrator to the remote API and the local scan ledger."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiosqlite

from codesentry.api.security import CodeSecurityApi
from codesentry.scan.models import (
    Outcome,
    ScanStatus,
    SubmissionOutcome,
    TerminalOutcome,
    TickEvent,
)
from codesentry.scan.orchestrator import PollConfig, ScanOrchestrator, SleepFn
from codesentry.storage.repos import ReportRepo, ScanJobRepo

logger = logging.getLogger(__name__)


class ScanTracker:
    """Runs scans for one code document and records every transition locally."""

    def __init__(
        self,
        security: CodeSecurityApi,
        db: aiosqlite.Connection,
        max_attempts: int = 10,
        poll_interval: float = 3.0,
        sleep: SleepFn | None = None,
        on_status: Callable[[str, ScanStatus], None] | None = None,
        on_tick: Callable[[TickEvent], None] | None = None,
    ) -> None:
        self._jobs = ScanJobRepo(db)
        self._reports = ReportRepo(db)
        self._on_status = on_status
        self._on_tick = on_tick
        self._writes: list[asyncio.Task[Any]] = []
        self.orchestrator = ScanOrchestrator(
            submit_scan=security.scan_code,
            config=PollConfig(
                fetch_status=security.fetch_scan_status,
                max_attempts=max_attempts,
                poll_interval=poll_interval,
            ),
            sleep=sleep,
            on_status=self._status_changed,
            on_tick=self._ticked,
        )

    async def submit(self, code_id: str) -> SubmissionOutcome:
        submission = await self.orchestrator.submit_scan(code_id)
        await self._flush()
        return submission

    async def poll(self, code_id: str) -> TerminalOutcome:
        """Poll an already submitted scan and persist its outcome."""
        try:
            outcome = await self.orchestrator.poll_until_terminal(code_id)
        finally:
            await self._flush()

        job = self.orchestrator.job
        if job is not None:
            await self._jobs.upsert(job, outcome.outcome)
        if outcome.outcome == Outcome.COMPLETED and outcome.report is not None:
            await self._reports.save(code_id, outcome.report)
        logger.info(
            "Scan for %s ended: %s after %d check(s)",
            code_id,
            outcome.outcome.value,
            outcome.attempts,
        )
        return outcome

    async def run(self, code_id: str) -> tuple[SubmissionOutcome, TerminalOutcome]:
        submission = await self.submit(code_id)
        return submission, await self.poll(code_id)

    def cancel(self) -> None:
        self.orchestrator.cancel()

    def _status_changed(self, code_id: str, status: ScanStatus) -> None:
        self._spawn(self._jobs.update_status(code_id, status))
        if self._on_status:
            self._on_status(code_id, status)

    def _ticked(self, event: TickEvent) -> None:
        job = self.orchestrator.job
        if job is not None:
            self._spawn(self._jobs.upsert(job))
        if self._on_tick:
            self._on_tick(event)

    def _spawn(self, coro: Awaitable[None]) -> None:
        self._writes.append(asyncio.ensure_future(coro))

    async def _flush(self) -> None:
        writes, self._writes = self._writes, []
        if writes:
            await asyncio.gather(*writes)
