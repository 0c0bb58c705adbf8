import logging
from typing import List, Optional

from .ai_client import ClientResult
from .config import settings
from .interaction_log import InteractionLog
from .models import ChatAction, ChatMessage, ChatPayload, ChatReply

logger = logging.getLogger(__name__)

FALLBACK_TEXT = (
    "❌ **Connection Error**: I couldn't reach my brain. "
    "Please check your internet connection or API Key configuration."
)
FALLBACK_SUGGESTIONS = ["Retry", "Check Courses"]


def detect_action(text: str) -> Optional[ChatReply]:
    """Quick actions the widget handles itself instead of asking the model."""
    lower = text.lower()
    if "take" in lower and "mock test" in lower:
        return ChatReply(action=ChatAction.START_TEST)
    if "check out our courses" in lower or "view courses" in lower:
        return ChatReply(action=ChatAction.OPEN_COURSES, url=settings.COURSES_URL)
    return None


def parse_chat_reply(raw_text: str) -> ChatReply:
    payload = ChatPayload.model_validate_json(raw_text)
    return ChatReply(text=payload.text, suggestions=payload.suggestions)


def fallback_reply() -> ChatReply:
    return ChatReply(
        text=FALLBACK_TEXT, suggestions=list(FALLBACK_SUGGESTIONS), is_error=True
    )


class ChatAssistant:
    """The academy mentor chat; every turn is recorded in the interaction log."""

    def __init__(self, client_result: ClientResult, interaction_log: InteractionLog):
        self.service = client_result.client
        self.interaction_log = interaction_log
        if not client_result.ok:
            logger.error(f"Chat model unavailable: {client_result.error}")

    async def reply(self, history: List[ChatMessage], message: str) -> ChatReply:
        if not message.strip():
            raise ValueError("Message is empty")

        action = detect_action(message)
        if action is not None:
            return action

        if self.service is None:
            self.interaction_log.log_interaction(message, "ERROR: API_KEY_MISSING")
            return fallback_reply()

        try:
            raw_text = await self.service.chat(history, message)
            reply = parse_chat_reply(raw_text)
        except Exception as e:
            logger.warning(f"Chat request failed, providing fallback: {e}")
            self.interaction_log.log_interaction(message, f"ERROR: {e}")
            return fallback_reply()

        self.interaction_log.log_interaction(message, reply.text)
        return reply
