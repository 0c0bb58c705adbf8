import logging
import os
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .chat import ChatAssistant
from .config import settings
from .dependencies import (
    get_chat_assistant,
    get_client_id,
    get_interaction_log,
    get_question_bank,
    get_question_provider,
    get_session_id,
    get_session_store,
)
from .errors import EmptyInteractionLog, QuestionBankExhausted, SetupAbandoned
from .generator import QuestionProvider
from .interaction_log import InteractionLog
from .models import ChatRequest, Difficulty, QuestionType, TestConfig
from .question_bank import QuestionBankManager
from .scorecard import build_scorecard
from .session import ExamSession
from .session_store import SessionStore

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=TEMPLATE_DIR)

router = APIRouter()

EXAM_ACTIONS = ("answer", "save_next", "mark_review", "clear", "jump", "previous", "next")


# --- Helpers ---
def apply_action(
    session: ExamSession, action: str, value: Optional[str] = None, index: Optional[int] = None
):
    """Run one palette/answer action. Bad input raises ValueError."""
    if action == "answer":
        slot = session.current_index if index is None else index
        question = session.question_at(slot)
        if value is None:
            raise ValueError("Missing value")
        if question.type == QuestionType.NAT:
            session.record_answer(slot, value)
            return
        try:
            option = int(value)
        except ValueError:
            raise ValueError("Invalid option") from None
        if not 0 <= option < len(question.options):
            raise ValueError("Invalid option")
        session.record_answer(slot, option)
    elif action == "save_next":
        session.save_and_next()
    elif action == "mark_review":
        session.mark_for_review()
    elif action == "clear":
        session.clear_response(index)
    elif action == "jump":
        if index is None:
            raise ValueError("Missing index")
        session.jump_to(index)
    elif action == "previous":
        session.go_previous()
    elif action == "next":
        session.go_next()
    else:
        raise ValueError(f"Unknown action: {action}")


def exam_state(session: ExamSession) -> Dict[str, Any]:
    return {
        "current_index": session.current_index,
        "total_questions": len(session.questions),
        "question": session.current_question.public_view(),
        "response": session.current_response.model_dump(mode="json"),
        "palette": [status.value for status in session.palette()],
        "time_left": session.countdown.remaining,
        "time_left_display": session.countdown.display(),
        "time_up": session.countdown.expired,
        "is_first_question": session.current_index == 0,
        "is_last_question": session.current_index == session.last_index,
        "subject": session.config.subject,
        "difficulty": session.config.difficulty.value,
        "submitted": session.submitted,
    }


async def start_session(
    store: SessionStore,
    provider: QuestionProvider,
    subject: str,
    difficulty: Difficulty,
    client_id: str,
    previous_session_id: Optional[str] = None,
) -> str:
    generation = store.begin_setup(client_id)
    try:
        questions = await provider.fetch_questions(subject, difficulty)
        if not store.is_current_setup(client_id, generation):
            logger.info(f"Discarding stale setup for client {client_id}")
            raise SetupAbandoned("Test setup was cancelled.")
    finally:
        store.end_setup(client_id, generation)

    store.discard(previous_session_id)
    session_id = store.create(questions, TestConfig(subject=subject, difficulty=difficulty))
    store.sessions[session_id].countdown.start()
    return session_id


def set_cookies(response: Response, session_id: str, client_id: str):
    for key, value in (
        (settings.SESSION_COOKIE_NAME, session_id),
        (settings.CLIENT_COOKIE_NAME, client_id),
    ):
        response.set_cookie(key=key, value=value, httponly=True, samesite="Lax")


# --- API Routes ---
@router.get("/api/options")
async def get_options(bank: QuestionBankManager = Depends(get_question_bank)):
    return {
        "subjects": settings.SUBJECTS,
        "difficulties": [d.value for d in Difficulty],
        "bank": bank.get_subjects(),
    }


@router.post("/api/start")
async def api_start(
    subject: str = Form(...),
    difficulty: Difficulty = Form(Difficulty.MEDIUM),
    session_id: Optional[str] = Depends(get_session_id),
    client_id: Optional[str] = Depends(get_client_id),
    store: SessionStore = Depends(get_session_store),
    provider: QuestionProvider = Depends(get_question_provider),
):
    if subject not in settings.SUBJECTS:
        return JSONResponse({"error": "Unknown subject"}, status_code=400)
    client_id = client_id or str(uuid.uuid4())
    try:
        new_id = await start_session(store, provider, subject, difficulty, client_id, session_id)
    except QuestionBankExhausted as e:
        logger.error(f"Test initialization failed: {e}")
        return JSONResponse(
            {"error": "Test initialization failed. Please try again or contact support."},
            status_code=503,
        )
    except SetupAbandoned as e:
        return JSONResponse({"error": str(e)}, status_code=409)

    session = store.sessions[new_id]
    response = JSONResponse(
        {"total_questions": len(session.questions), "time_left": session.countdown.remaining}
    )
    set_cookies(response, new_id, client_id)
    return response


@router.post("/api/setup/cancel")
async def cancel_setup(
    client_id: Optional[str] = Depends(get_client_id),
    store: SessionStore = Depends(get_session_store),
):
    if client_id:
        store.cancel_setup(client_id)
    return {"status": "cancelled"}


@router.get("/api/exam")
async def get_exam(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    return exam_state(session)


@router.post("/api/exam/submit")
async def submit_exam(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if session.submitted:
        return JSONResponse({"error": "Test already submitted"}, status_code=409)
    result = session.submit()
    logger.info(f"Session {session_id} submitted: {result.score}/{len(session.questions)}")
    return build_scorecard(session.questions, session.responses).model_dump(mode="json")


@router.post("/api/exam/retake")
async def retake_exam(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    session.retake()
    session.countdown.start()
    return exam_state(session)


@router.post("/api/exam/{action}")
async def exam_action(
    action: str,
    value: Optional[str] = Form(None),
    index: Optional[int] = Form(None),
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if action not in EXAM_ACTIONS:
        return JSONResponse({"error": "Unknown action"}, status_code=404)
    if session.submitted:
        return JSONResponse({"error": "Test already submitted"}, status_code=409)
    try:
        apply_action(session, action, value, index)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return exam_state(session)


@router.get("/api/result")
async def get_result(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if not session.submitted:
        return JSONResponse({"error": "Test not submitted"}, status_code=409)
    return build_scorecard(session.questions, session.responses).model_dump(mode="json")


@router.post("/api/reset")
async def reset_session(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    store.discard(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}


@router.post("/api/chat")
async def chat(
    payload: ChatRequest,
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    if not payload.message.strip():
        return JSONResponse({"error": "Message is empty"}, status_code=400)
    reply = await assistant.reply(payload.history, payload.message)
    return reply.model_dump(mode="json")


@router.get("/api/logs")
async def get_log_count(interaction_log: InteractionLog = Depends(get_interaction_log)):
    return {"count": interaction_log.count()}


@router.get("/api/logs/export")
async def export_logs(interaction_log: InteractionLog = Depends(get_interaction_log)):
    try:
        document = interaction_log.export()
    except EmptyInteractionLog as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    return JSONResponse(
        document,
        headers={
            "Content-Disposition": f'attachment; filename="{InteractionLog.EXPORT_FILE_NAME}"'
        },
    )


# --- Pages ---
@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    return templates.TemplateResponse(
        request,
        "start.html",
        {
            "subjects": settings.SUBJECTS,
            "difficulties": [d.value for d in Difficulty],
            "error": None,
        },
    )


@router.post("/start")
async def start_page(
    request: Request,
    subject: str = Form(...),
    difficulty: Difficulty = Form(Difficulty.MEDIUM),
    session_id: Optional[str] = Depends(get_session_id),
    client_id: Optional[str] = Depends(get_client_id),
    store: SessionStore = Depends(get_session_store),
    provider: QuestionProvider = Depends(get_question_provider),
):
    error = None
    if subject not in settings.SUBJECTS:
        error = "Please choose one of the listed subjects."
    else:
        client_id = client_id or str(uuid.uuid4())
        try:
            new_id = await start_session(
                store, provider, subject, difficulty, client_id, session_id
            )
        except QuestionBankExhausted as e:
            logger.error(f"Test initialization failed: {e}")
            error = "Test initialization failed. Please try again or contact support."
        except SetupAbandoned as e:
            error = str(e)

    if error:
        return templates.TemplateResponse(
            request,
            "start.html",
            {
                "subjects": settings.SUBJECTS,
                "difficulties": [d.value for d in Difficulty],
                "error": error,
            },
            status_code=400,
        )

    redirect = RedirectResponse(url="/exam", status_code=302)
    set_cookies(redirect, new_id, client_id)
    return redirect


@router.get("/exam", response_class=HTMLResponse)
async def exam_page(
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return RedirectResponse(url="/", status_code=302)
    if session.submitted:
        return RedirectResponse(url="/result", status_code=302)
    return templates.TemplateResponse(request, "exam.html", {"exam": exam_state(session)})


@router.post("/exam/action")
async def exam_page_action(
    action: str = Form(...),
    value: Optional[str] = Form(None),
    index: Optional[int] = Form(None),
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return RedirectResponse(url="/", status_code=302)

    if action == "retake":
        session.retake()
        session.countdown.start()
        return RedirectResponse(url="/exam", status_code=302)
    if session.submitted:
        return RedirectResponse(url="/result", status_code=302)
    if action == "submit":
        session.submit()
        return RedirectResponse(url="/result", status_code=302)

    try:
        apply_action(session, action, value, index)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return RedirectResponse(url="/exam", status_code=302)


@router.get("/result", response_class=HTMLResponse)
async def result_page(
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get_active(session_id)
    if not session:
        return RedirectResponse(url="/", status_code=302)
    if not session.submitted:
        return RedirectResponse(url="/exam", status_code=302)
    scorecard = build_scorecard(session.questions, session.responses)
    return templates.TemplateResponse(request, "result.html", {"scorecard": scorecard})


@router.post("/exit")
async def exit_exam(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    store.discard(session_id)
    redirect = RedirectResponse(url="/", status_code=302)
    redirect.delete_cookie(settings.SESSION_COOKIE_NAME)
    return redirect
