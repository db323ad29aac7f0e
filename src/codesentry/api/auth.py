"""Authentication endpoints."""

from __future__ import annotations

import logging

from codesentry.api.client import ApiClient
from codesentry.errors import ApiError

logger = logging.getLogger(__name__)


class AuthApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def login(self, account: str, password: str) -> str:
        """Log in and persist the returned token."""
        token = self._client.post(
            "/auth/login", json={"account": account, "password": password}
        )
        if not token:
            raise ApiError("Login succeeded but no token was returned")
        if self._client.token_store:
            self._client.token_store.save(token)
        logger.info("Logged in as %s", account)
        return token

    def register(self, account: str, password: str, name: str) -> None:
        self._client.post(
            "/auth/register",
            json={"account": account, "password": password, "name": name},
        )
        logger.info("Registered account %s", account)

    def logout(self) -> None:
        """End the server session. The local token is dropped regardless."""
        try:
            self._client.post("/auth/logout")
        finally:
            if self._client.token_store:
                self._client.token_store.clear()

    def refresh_token(self) -> str:
        token = self._client.post("/auth/refresh")
        if token and self._client.token_store:
            self._client.token_store.save(token)
        return token
