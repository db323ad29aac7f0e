"""HTTP client wrapper for the remote API.

Every endpoint answers with the envelope ``{"status", "message", "data"}``.
The client sends the stored token, unwraps the envelope and converts
transport failures into the codesentry error hierarchy.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from codesentry import __version__
from codesentry.api.token import TokenStore
from codesentry.errors import ApiError, AuthenticationError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiClient:
    """Wrapper around requests.Session for the code-generation/scan API."""

    def __init__(
        self,
        base_url: str,
        token_store: TokenStore | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_store = token_store
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"codesentry/{__version__}",
                "Accept": "application/json",
            }
        )

    def get(self, path: str, timeout: float | None = None) -> Any:
        return self.request("GET", path, timeout=timeout)

    def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return self.request("POST", path, json=json, timeout=timeout)

    def delete(self, path: str, timeout: float | None = None) -> Any:
        return self.request("DELETE", path, timeout=timeout)

    def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and return the envelope's ``data`` field."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {}
        token = self.token_store.load() if self.token_store else None
        if token:
            # The server expects the raw token, no "Bearer" scheme.
            headers["Authorization"] = token

        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.status_code == 401:
            if self.token_store:
                self.token_store.clear()
            raise AuthenticationError(
                "Not logged in or session expired — run `codesentry login`",
                status_code=401,
            )

        body = self._decode(response)
        if response.status_code >= 400:
            raise ApiError(
                body.get("message") or f"Request failed ({response.status_code})",
                status_code=response.status_code,
            )

        status = body.get("status", response.status_code)
        if status != 200:
            raise ApiError(body.get("message") or "Request failed", status_code=status)
        return body.get("data")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @staticmethod
    def _decode(response: requests.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"status": 200, "data": body}
