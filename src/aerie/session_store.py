import itertools
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .config import settings
from .models import Question, TestConfig
from .session import ExamSession

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory exam sessions keyed by cookie id, plus pending setups per client."""

    def __init__(self, timeout_minutes: int = settings.SESSION_TIMEOUT_MINUTES):
        self.sessions: Dict[str, ExamSession] = {}
        self.timeout = timedelta(minutes=timeout_minutes)
        # Generations come from one counter so a dropped entry is never reissued
        self._generations = itertools.count(1)
        self._setup_generations: Dict[str, int] = {}

    def create(self, questions: List[Question], config: TestConfig) -> str:
        self.sweep_expired()
        session_id = str(uuid.uuid4())
        self.sessions[session_id] = ExamSession(questions, config)
        logger.info(
            f"New session: {session_id} [Subject: {config.subject}, Difficulty: {config.difficulty.value}]"
        )
        return session_id

    def _is_expired(self, session: ExamSession) -> bool:
        return datetime.now() - session.created_at > self.timeout

    def get_active(self, session_id: Optional[str]) -> Optional[ExamSession]:
        if not session_id or session_id not in self.sessions:
            return None
        if self._is_expired(self.sessions[session_id]):
            logger.info(f"Session expired: {session_id}")
            self.discard(session_id)
            return None
        return self.sessions[session_id]

    def sweep_expired(self):
        expired = [sid for sid, session in self.sessions.items() if self._is_expired(session)]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.info(f"Swept {len(expired)} expired sessions")

    def discard(self, session_id: Optional[str]):
        session = self.sessions.pop(session_id, None) if session_id else None
        if session is not None:
            session.close()

    def close_all(self):
        for session in self.sessions.values():
            session.close()
        self.sessions = {}

    # --- Setup generations ---
    def begin_setup(self, client_id: str) -> int:
        generation = next(self._generations)
        self._setup_generations[client_id] = generation
        return generation

    def cancel_setup(self, client_id: str):
        self._setup_generations.pop(client_id, None)

    def is_current_setup(self, client_id: str, generation: int) -> bool:
        return self._setup_generations.get(client_id) == generation

    def end_setup(self, client_id: str, generation: int):
        """Forget a finished setup unless a newer one has replaced it."""
        if self.is_current_setup(client_id, generation):
            del self._setup_generations[client_id]

    @property
    def pending_setups(self) -> int:
        return len(self._setup_generations)
