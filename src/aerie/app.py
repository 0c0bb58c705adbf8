import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .ai_client import ClientResult, create_gemini_client
from .chat import ChatAssistant
from .config import settings
from .errors import InvalidSlotIndex
from .generator import GeneratorFactory, QuestionProvider, StaticQuestionGenerator
from .interaction_log import InteractionLog
from .question_bank import QuestionBankManager
from .router import router
from .session_store import SessionStore

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


# --- Logging Setup ---
def setup_logging():
    logger = logging.getLogger("aerie")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.question_bank.load_all()
    yield
    app.state.session_store.close_all()


async def invalid_slot_handler(request: Request, exc: InvalidSlotIndex):
    return JSONResponse({"error": str(exc)}, status_code=404)


# --- App Factory ---
def create_app(
    client_result: Optional[ClientResult] = None,
    question_bank: Optional[QuestionBankManager] = None,
) -> FastAPI:
    setup_logging()
    if client_result is None:
        client_result = create_gemini_client(settings.API_KEY)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    bank = question_bank or QuestionBankManager(settings.QUESTION_BANK_DIR)
    interaction_log = InteractionLog()
    app.state.question_bank = bank
    app.state.interaction_log = interaction_log
    app.state.session_store = SessionStore()
    app.state.question_provider = QuestionProvider(
        GeneratorFactory.create(settings.QUESTION_SOURCE, client_result, bank),
        StaticQuestionGenerator(bank),
    )
    app.state.chat_assistant = ChatAssistant(client_result, interaction_log)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.add_exception_handler(InvalidSlotIndex, invalid_slot_handler)

    app.include_router(router)

    return app
