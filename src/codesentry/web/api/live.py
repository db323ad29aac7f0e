"""WebSocket endpoint streaming a scan job's status changes."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from codesentry.storage.repos import ScanJobRepo

router = APIRouter(tags=["live"])


@router.websocket("/ws/scans/{code_id}")
async def scan_ws(websocket: WebSocket, code_id: str):
    """Send the job row whenever its status or attempt count changes."""
    await websocket.accept()

    repo = ScanJobRepo(websocket.app.state.db)
    last_seen = None

    try:
        while True:
            job = await repo.get(code_id)
            if job is not None:
                marker = (job["status"], job["attempts_made"], job["outcome"])
                if marker != last_seen:
                    await websocket.send_text(json.dumps({"type": "status", "data": job}))
                    last_seen = marker
                if job["outcome"]:
                    break

            await asyncio.sleep(0.5)
        await websocket.close()
    except WebSocketDisconnect:
        pass
