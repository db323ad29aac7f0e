"""REST API for scan jobs: list, inspect, start, cancel."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from codesentry.errors import SubmissionError
from codesentry.scan.tracker import ScanTracker
from codesentry.storage.repos import ReportRepo, ScanJobRepo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scans"])


@router.get("/scans")
async def list_scans(request: Request):
    repo = ScanJobRepo(request.app.state.db)
    return await repo.list_all()


@router.get("/scans/{code_id}")
async def get_scan(code_id: str, request: Request):
    db = request.app.state.db
    job = await ScanJobRepo(db).get(code_id)
    if not job:
        return JSONResponse(
            status_code=404,
            content={"detail": "Scan not found"},
        )

    report = await ReportRepo(db).get(code_id)
    job["report"] = report.to_api() if report else None
    job["polling"] = code_id in request.app.state.trackers
    return job


@router.post("/scans/{code_id}", status_code=202)
async def start_scan(code_id: str, request: Request):
    state = request.app.state
    if code_id in state.trackers:
        return JSONResponse(
            status_code=409,
            content={"detail": "A scan is already being polled for this code"},
        )

    config = state.config
    tracker = ScanTracker(
        state.security,
        state.db,
        max_attempts=config.max_attempts,
        poll_interval=config.poll_interval,
    )
    # Claimed before the submit await so a concurrent POST sees it.
    state.trackers[code_id] = tracker
    try:
        submission = await tracker.submit(code_id)
    except SubmissionError as exc:
        state.trackers.pop(code_id, None)
        return JSONResponse(status_code=502, content={"detail": str(exc)})
    except BaseException:
        state.trackers.pop(code_id, None)
        raise

    task = asyncio.create_task(tracker.poll(code_id))

    def _done(finished: asyncio.Task) -> None:
        state.trackers.pop(code_id, None)
        if not finished.cancelled() and finished.exception() is not None:
            logger.error(
                "Polling for %s crashed: %s", code_id, finished.exception()
            )

    task.add_done_callback(_done)

    enhanced = submission.enhanced
    return {
        "code_id": code_id,
        "status": "SCANNING",
        "message": submission.message,
        "enhanced": (
            {
                "queries": list(enhanced.queries),
                "retrievedNodes": list(enhanced.retrieved_nodes),
            }
            if enhanced
            else None
        ),
    }


@router.post("/scans/{code_id}/cancel")
async def cancel_scan(code_id: str, request: Request):
    tracker = request.app.state.trackers.get(code_id)
    if tracker is None:
        return JSONResponse(
            status_code=404,
            content={"detail": "No scan is being polled for this code"},
        )
    tracker.cancel()
    return {"status": "cancelled", "code_id": code_id}
