"""Security scan endpoints: submit a scan, fetch its status and report."""

from __future__ import annotations

import logging

from codesentry.api.client import ApiClient
from codesentry.api.codegen import GeneratedCodeApi
from codesentry.errors import ApiError, AuthenticationError, TransientFetchError
from codesentry.scan.models import (
    EnhancedAnalysis,
    ScanStatus,
    StatusCheck,
    SubmissionOutcome,
    VulnerabilityReport,
)

logger = logging.getLogger(__name__)


class CodeSecurityApi:
    """Client side of the remote scan service."""

    def __init__(self, client: ApiClient, status_timeout: float | None = None) -> None:
        self._client = client
        self._codes = GeneratedCodeApi(client)
        self._status_timeout = status_timeout

    def scan_code(self, code_id: str) -> SubmissionOutcome:
        """Start an asynchronous scan. Raises ApiError on failure."""
        data = self._client.post(f"/code-security/scan/{code_id}")
        if isinstance(data, dict):
            enhanced = data.get("enhancedAnalysis")
            return SubmissionOutcome(
                code_id=code_id,
                message=str(data.get("message", "")),
                enhanced=EnhancedAnalysis.from_api(enhanced) if enhanced else None,
            )
        return SubmissionOutcome(code_id=code_id, message=str(data or ""))

    def get_scan_result(self, code_id: str) -> VulnerabilityReport:
        data = self._client.get(
            f"/code-security/result/{code_id}", timeout=self._status_timeout
        )
        if not data:
            raise ApiError(f"No scan result for {code_id}", status_code=404)
        try:
            return VulnerabilityReport.from_api(data)
        except (AttributeError, TypeError, ValueError) as exc:
            # Treated like a bad gateway answer: the next check may succeed.
            raise ApiError(
                f"Malformed scan result for {code_id}: {exc}", status_code=502
            ) from exc

    def fetch_scan_status(self, code_id: str) -> StatusCheck:
        """One status check for the poll loop.

        A report means the scan completed. A 4xx "no result yet" answer falls
        back to the document's ``scanStatus``. Transport failures and server
        errors become TransientFetchError; 401 propagates.
        """
        try:
            report = self.get_scan_result(code_id)
        except AuthenticationError:
            raise
        except ApiError as exc:
            if _is_transient(exc):
                raise TransientFetchError(str(exc)) from exc
            logger.debug("No result yet for %s: %s", code_id, exc)
        else:
            return StatusCheck(status=ScanStatus.COMPLETED, report=report)

        try:
            document = self._codes.get_code(code_id, timeout=self._status_timeout)
        except AuthenticationError:
            raise
        except ApiError as exc:
            raise TransientFetchError(str(exc)) from exc

        status = document.scan_status
        if status == ScanStatus.COMPLETED:
            # The document flipped between the two calls; the report will be
            # there on the next tick.
            status = ScanStatus.SCANNING
        return StatusCheck(status=status)


def _is_transient(exc: ApiError) -> bool:
    return exc.status_code is None or exc.status_code >= 500
