"""Conversation data models."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any


class Role(enum.Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationMessage:
    role: Role
    content: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ConversationMessage:
        return cls(role=Role(data.get("role", "assistant")), content=data.get("content", ""))


@dataclass
class Conversation:
    """A chat with one model, identified by the server-issued id."""

    id: str
    model_type: str
    user_id: str = ""
    messages: list[ConversationMessage] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    last_updated_at: float = field(default_factory=time.time)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Conversation:
        return cls(
            id=data["id"],
            model_type=data.get("modelType", ""),
            user_id=str(data.get("userId", "")),
            messages=[ConversationMessage.from_api(m) for m in data.get("messages") or ()],
            # Server timestamps are epoch milliseconds.
            created_at=float(data.get("createdAt", 0)) / 1000,
            last_updated_at=float(data.get("lastUpdatedAt", 0)) / 1000,
        )
