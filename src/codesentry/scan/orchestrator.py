"""Scan orchestrator — submits a scan and polls until a terminal status."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from codesentry.errors import ApiError, AuthenticationError, SubmissionError
from codesentry.scan.models import (
    Outcome,
    ScanJob,
    ScanStatus,
    StatusCheck,
    SubmissionOutcome,
    TerminalOutcome,
    TickEvent,
)

logger = logging.getLogger(__name__)

SubmitFn = Callable[[str], Union[SubmissionOutcome, Awaitable[SubmissionOutcome]]]
FetchFn = Callable[[str], Union[StatusCheck, Awaitable[StatusCheck]]]
SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class PollConfig:
    """Retry budget and status capability for one poll loop."""

    fetch_status: FetchFn
    max_attempts: int = 10
    poll_interval: float = 3.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.poll_interval <= 0:
            raise ValueError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )


async def _invoke(fn: Callable[..., Any], *args: Any) -> Any:
    # Blocking capabilities run off the event loop so ticks stay cooperative.
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


class ScanOrchestrator:
    """Drives one scan job: submit → sleep → fetch → ... → terminal outcome.

    ``sleep`` is injected so the same loop runs under real or simulated time.
    ``on_status`` fires on every status change of the tracked document,
    ``on_tick`` after every status check.
    """

    def __init__(
        self,
        submit_scan: SubmitFn,
        config: PollConfig,
        sleep: SleepFn | None = None,
        on_status: Callable[[str, ScanStatus], None] | None = None,
        on_tick: Callable[[TickEvent], None] | None = None,
    ) -> None:
        self._submit_scan = submit_scan
        self._config = config
        self._sleep = sleep or asyncio.sleep
        self._on_status = on_status
        self._on_tick = on_tick
        self._job: ScanJob | None = None
        self._running = False
        self._cancelled = False
        self._pending_sleep: asyncio.Future[Any] | None = None

    @property
    def job(self) -> ScanJob | None:
        """The job being (or last) polled. Read-only for callers."""
        return self._job

    @property
    def running(self) -> bool:
        return self._running

    async def submit_scan(self, code_id: str) -> SubmissionOutcome:
        """Ask the remote service to start scanning ``code_id``."""
        try:
            outcome = await _invoke(self._submit_scan, code_id)
        except ApiError as exc:
            logger.warning("Scan submission for %s failed: %s", code_id, exc)
            raise SubmissionError(code_id, exc.message) from exc

        logger.info("Scan submitted for %s", code_id)
        self._emit_status(code_id, ScanStatus.SCANNING)
        return outcome

    async def poll_until_terminal(
        self,
        code_id: str,
        config: PollConfig | None = None,
    ) -> TerminalOutcome:
        """Poll the status capability until a terminal status or budget exhaustion."""
        if self._running:
            raise RuntimeError("A poll loop is already running on this orchestrator")

        config = config or self._config
        job = ScanJob(
            code_id=code_id,
            max_attempts=config.max_attempts,
            poll_interval=config.poll_interval,
            status=ScanStatus.SCANNING,
        )
        self._job = job
        self._cancelled = False
        self._running = True
        try:
            return await self._poll(job, config)
        finally:
            self._running = False
            self._pending_sleep = None
            job.finished_at = time.time()

    async def run(self, code_id: str) -> TerminalOutcome:
        """Submit a scan and poll it to completion."""
        await self.submit_scan(code_id)
        return await self.poll_until_terminal(code_id)

    def cancel(self) -> None:
        """Stop the poll loop. Idempotent; a no-op once the loop has ended."""
        if not self._running or self._cancelled:
            return
        self._cancelled = True

        pending = self._pending_sleep
        if pending is not None and not pending.done():
            loop = pending.get_loop()
            if _on_loop(loop):
                pending.cancel()
            else:
                loop.call_soon_threadsafe(pending.cancel)

        if self._job is not None:
            logger.info(
                "Polling for %s cancelled after %d attempt(s)",
                self._job.code_id,
                self._job.attempts_made,
            )

    async def _poll(self, job: ScanJob, config: PollConfig) -> TerminalOutcome:
        while not job.exhausted:
            if not await self._wait(config.poll_interval):
                return self._outcome(job, Outcome.CANCELLED)

            job.attempts_made += 1
            # Every failed check costs one attempt; a refused token never recovers.
            try:
                check = await _invoke(config.fetch_status, job.code_id)
            except AuthenticationError:
                raise
            except Exception as exc:
                if self._cancelled:
                    return self._outcome(job, Outcome.CANCELLED)
                logger.warning(
                    "Status check %d/%d for %s failed: %s",
                    job.attempts_made,
                    job.max_attempts,
                    job.code_id,
                    exc,
                )
                self._publish(
                    TickEvent(job.code_id, job.attempts_made, job.status, error=str(exc))
                )
                continue

            if self._cancelled:
                logger.debug("Discarding late status for %s", job.code_id)
                return self._outcome(job, Outcome.CANCELLED)

            previous = job.status
            job.record(check)
            logger.debug(
                "Status check %d/%d for %s: %s",
                job.attempts_made,
                job.max_attempts,
                job.code_id,
                check.status.value,
            )
            self._publish(TickEvent(job.code_id, job.attempts_made, job.status))
            if job.status != previous:
                self._emit_status(job.code_id, job.status)

            if check.status == ScanStatus.COMPLETED:
                logger.info("Scan for %s completed", job.code_id)
                return self._outcome(job, Outcome.COMPLETED, report=check.report)
            if check.status == ScanStatus.FAILED:
                logger.info("Scan for %s failed on the server", job.code_id)
                return self._outcome(job, Outcome.FAILED)

        job.fail(timed_out=True)
        self._emit_status(job.code_id, job.status)
        logger.warning(
            "Scan for %s still running after %d checks — giving up",
            job.code_id,
            job.attempts_made,
        )
        return self._outcome(job, Outcome.TIMED_OUT)

    async def _wait(self, delay: float) -> bool:
        """Sleep one interval. Returns False if cancelled meanwhile."""
        if self._cancelled:
            return False
        self._pending_sleep = asyncio.ensure_future(self._sleep(delay))
        try:
            await self._pending_sleep
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
            return False
        finally:
            self._pending_sleep = None
        return not self._cancelled

    def _outcome(self, job: ScanJob, outcome: Outcome, report=None) -> TerminalOutcome:
        return TerminalOutcome(
            outcome=outcome,
            code_id=job.code_id,
            attempts=job.attempts_made,
            report=report,
        )

    def _publish(self, event: TickEvent) -> None:
        if self._on_tick:
            self._on_tick(event)

    def _emit_status(self, code_id: str, status: ScanStatus) -> None:
        if self._on_status:
            self._on_status(code_id, status)
