"""In-memory chat transcript bound to one remote conversation."""

from __future__ import annotations

import logging
import time

from codesentry.api.conversation import ConversationApi
from codesentry.conversation.models import Conversation, ConversationMessage, Role

logger = logging.getLogger(__name__)


class ChatSession:
    """Short-lived transcript; discarded when the conversation ends."""

    def __init__(self, api: ConversationApi, user_id: int | None = None) -> None:
        self._api = api
        self._user_id = user_id
        self._conversation: Conversation | None = None

    @property
    def conversation(self) -> Conversation | None:
        return self._conversation

    @property
    def messages(self) -> list[ConversationMessage]:
        if self._conversation is None:
            return []
        return list(self._conversation.messages)

    def start(self, model_type: str | None = None) -> Conversation:
        conversation_id, model = self._api.create(model_type)
        self._conversation = Conversation(
            id=conversation_id,
            model_type=model,
            user_id=str(self._user_id or ""),
        )
        logger.info("Started conversation %s with %s", conversation_id, model)
        return self._conversation

    def send(self, text: str) -> str:
        """Send a user message; it is dropped from the transcript if sending fails."""
        if self._conversation is None:
            raise RuntimeError("No conversation started — call start() first")

        conversation = self._conversation
        conversation.messages.append(ConversationMessage(Role.USER, text))
        try:
            reply = self._api.send(conversation.id, text)
        except Exception:
            conversation.messages.pop()
            raise
        conversation.messages.append(ConversationMessage(Role.ASSISTANT, reply))
        conversation.last_updated_at = time.time()
        return reply

    def end(self) -> None:
        """End the remote conversation (when the user id is known) and drop the transcript."""
        if self._conversation is None:
            return
        if self._user_id is not None:
            self._api.end(self._user_id, self._conversation.id)
        else:
            logger.debug(
                "No user id configured; conversation %s left to expire",
                self._conversation.id,
            )
        self._conversation = None
