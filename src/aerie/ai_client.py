import logging
from dataclasses import dataclass
from typing import List, Optional

from google import genai
from google.genai import types

from .config import settings
from .errors import ConfigurationMissing, EmptyModelResponse
from .models import ChatMessage, ChatPayload, Difficulty, GeneratedQuestionSet

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """
You are the "Aerie AI Expert", the lead mentor for Aerie Academy (https://www.aerieacademy.com).
Aerie Academy is the premier coaching institute for Architecture students (GATE, NATA, JEE Paper 2).

TONE: Extremely optimistic, encouraging, technical, and sales-oriented.

YOUR MISSIONS:
1. Provide expert architectural advice (History, Structures, Design, Planning).
2. SALES: If the user mentions preparation, exams, or specific subjects, warmly recommend our paid courses at: {courses_url}
3. FREE MOCK TEST: Always mention that users can take a FREE high-quality mock test right here on this dashboard.

RESPONSE FORMAT:
You MUST respond with a valid JSON object:
{{
  "text": "Your answer with **bolding**.",
  "suggestions": ["Suggestion 1", "Suggestion 2", "Suggestion 3"]
}}
"""

GENERATION_PROMPT = """
Task: Generate {count} high-fidelity, competitive-level architectural exam questions.
Subject: {subject}
Difficulty Level: {difficulty}
Standard: GATE Architecture / JEE B.Arch Paper 2 / NATA.

Guidelines for High Quality:
1. CONCEPTUAL DEPTH: Focus on "why" and "how" rather than simple facts. Use scenarios where possible.
2. PLAUSIBLE DISTRACTORS: For MCQs, ensure the 3 wrong options represent common student misconceptions or related but incorrect architectural principles.
3. TECHNICAL ACCURACY: Ensure all structural formulas, historical dates, and planning regulations are 100% accurate.
4. DOMAINS: Include topics like Sustainability, Building Services (HVAC, Acoustics, Lighting), Structural Systems, Urban Planning, and Contemporary Architecture.
5. EXPLANATIONS: Provide a "Mentor's Logic" explanation that doesn't just give the answer but teaches the underlying architectural principle.

Return a JSON object with a 'questions' array.
"""


class GeminiService:
    """Async access to the chat and question-generation models."""

    def __init__(
        self,
        client: genai.Client,
        chat_model: str = settings.CHAT_MODEL,
        generation_model: str = settings.GENERATION_MODEL,
        thinking_budget: int = settings.THINKING_BUDGET,
    ):
        self.client = client
        self.chat_model = chat_model
        self.generation_model = generation_model
        self.thinking_budget = thinking_budget

    async def generate_questions(
        self, subject: str, difficulty: Difficulty, count: int = settings.TEST_SIZE
    ) -> str:
        """Returns the raw JSON text of a generated question set."""
        response = await self.client.aio.models.generate_content(
            model=self.generation_model,
            contents=GENERATION_PROMPT.format(
                count=count, subject=subject, difficulty=difficulty.value
            ),
            config=types.GenerateContentConfig(
                thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
                response_mime_type="application/json",
                response_schema=GeneratedQuestionSet,
            ),
        )
        if not response.text:
            raise EmptyModelResponse("NO_QUESTIONS")
        return response.text

    async def chat(self, history: List[ChatMessage], message: str) -> str:
        """Returns the raw JSON text of a chat reply."""
        contents = [
            types.Content(role=m.role, parts=[types.Part(text=m.text)]) for m in history
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=message)]))

        response = await self.client.aio.models.generate_content(
            model=self.chat_model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION.format(courses_url=settings.COURSES_URL),
                response_mime_type="application/json",
                response_schema=ChatPayload,
                temperature=settings.CHAT_TEMPERATURE,
            ),
        )
        if not response.text:
            raise EmptyModelResponse("EMPTY_RESPONSE")
        return response.text


@dataclass
class ClientResult:
    client: Optional[GeminiService] = None
    error: Optional[ConfigurationMissing] = None

    @property
    def ok(self) -> bool:
        return self.client is not None


def create_gemini_client(api_key: Optional[str]) -> ClientResult:
    """Build the Gemini service, or report why it cannot be built."""
    key = (api_key or "").strip()
    if not key or key == "undefined" or len(key) < 5:
        return ClientResult(error=ConfigurationMissing("API_KEY_MISSING"))
    return ClientResult(client=GeminiService(genai.Client(api_key=key)))
