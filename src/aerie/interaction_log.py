import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from .errors import EmptyInteractionLog
from .models import InteractionEntry

logger = logging.getLogger("aerie.interactions")


class InteractionLog:
    """
    User/AI turns collected for the lifetime of one application instance.

    Created by the app factory and handed to the components that record
    turns; nothing here is module-global.
    """

    LOG_ID = "AERIE-MASTER-LOG-001"
    PLATFORM = "Aerie Education Portal"
    EXPORT_FILE_NAME = "AERIE_MASTER_LOG.json"

    def __init__(self, log_id: str = LOG_ID, platform: str = PLATFORM):
        self.log_id = log_id
        self.platform = platform
        self.history: List[InteractionEntry] = []
        self.last_updated = datetime.now(timezone.utc)

    def log_interaction(
        self, prompt: str, response: str, context: str = "chatbot"
    ) -> InteractionEntry:
        entry = InteractionEntry(
            timestamp=datetime.now(timezone.utc),
            prompt=prompt,
            response=response,
            context=context,
        )
        self.history.append(entry)
        self.last_updated = entry.timestamp
        logger.info(f"Interaction [{context}]: {entry.model_dump_json()}")
        return entry

    def count(self) -> int:
        return len(self.history)

    def export(self) -> Dict[str, Any]:
        if not self.history:
            raise EmptyInteractionLog("No conversation history to sync yet.")
        return {
            "log_id": self.log_id,
            "last_updated": self.last_updated.isoformat(),
            "platform": self.platform,
            "history": [entry.model_dump(mode="json") for entry in self.history],
        }

    def clear(self):
        self.history = []
        self.last_updated = datetime.now(timezone.utc)
