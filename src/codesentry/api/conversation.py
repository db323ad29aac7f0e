"""Conversation endpoints."""

from __future__ import annotations

from codesentry.api.client import ApiClient
from codesentry.conversation.models import Conversation


class ConversationApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def create(self, model_type: str | None = None) -> tuple[str, str]:
        """Open a conversation. Returns (conversation_id, model_type)."""
        payload = {"modelType": model_type} if model_type else {}
        data = self._client.post("/conversation/create", json=payload)
        return data["conversationId"], data.get("modelType", model_type or "")

    def send(self, conversation_id: str, message: str) -> str:
        data = self._client.post(
            "/conversation/send",
            json={"conversationId": conversation_id, "message": message},
        )
        return data["reply"]

    def history(self, user_id: int, conversation_id: str) -> Conversation:
        data = self._client.get(f"/conversation/{user_id}/{conversation_id}")
        return Conversation.from_api(data)

    def end(self, user_id: int, conversation_id: str) -> None:
        self._client.delete(f"/conversation/{user_id}/{conversation_id}")
