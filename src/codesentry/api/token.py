"""Persisted auth token — the only piece of client state shared across runs."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class TokenStore:
    """Keeps the API token in a single file readable only by the user."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(token, encoding="utf-8")
        os.chmod(self._path, 0o600)
        logger.debug("Token saved to %s", self._path)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.debug("Token removed from %s", self._path)
