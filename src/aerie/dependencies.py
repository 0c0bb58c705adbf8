from typing import Optional

from fastapi import Cookie, Request

from .chat import ChatAssistant
from .config import settings
from .generator import QuestionProvider
from .interaction_log import InteractionLog
from .question_bank import QuestionBankManager
from .session_store import SessionStore


def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_client_id(
    client_id: Optional[str] = Cookie(None, alias=settings.CLIENT_COOKIE_NAME)
) -> Optional[str]:
    return client_id


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_question_provider(request: Request) -> QuestionProvider:
    return request.app.state.question_provider


def get_question_bank(request: Request) -> QuestionBankManager:
    return request.app.state.question_bank


def get_chat_assistant(request: Request) -> ChatAssistant:
    return request.app.state.chat_assistant


def get_interaction_log(request: Request) -> InteractionLog:
    return request.app.state.interaction_log
