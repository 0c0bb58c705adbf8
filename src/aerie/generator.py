import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import List

from .ai_client import ClientResult, GeminiService
from .config import settings
from .errors import QuestionBankExhausted, QuestionFormatError
from .models import Difficulty, Question, QuestionType, decode_correct_answer
from .question_bank import QuestionBankManager

logger = logging.getLogger(__name__)


def parse_generated_questions(
    raw_text: str, subject: str, difficulty: Difficulty, count: int
) -> List[Question]:
    """
    Validate a generated question set before it reaches a session.

    The payload must be a JSON object with a ``questions`` array of exactly
    ``count`` items. Each item is decoded into a ``Question`` carrying the
    requested subject and difficulty and an id derived from the current time.
    """
    try:
        payload = json.loads(raw_text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise QuestionFormatError("Generated payload is not JSON") from exc

    items = payload.get("questions") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise QuestionFormatError("Generated payload has no 'questions' array")
    if len(items) != count:
        raise QuestionFormatError(f"Expected {count} questions, got {len(items)}")

    base_id = time.time_ns() // 1_000_000
    questions = []
    for index, item in enumerate(items):
        try:
            qtype = QuestionType(item["type"])
            options = None if qtype == QuestionType.NAT else (item.get("options") or None)
            questions.append(
                Question(
                    id=base_id + index,
                    subject=subject,
                    text=item["text"],
                    type=qtype,
                    options=options,
                    correct_answer=decode_correct_answer(qtype, item.get("correctAnswer")),
                    difficulty=difficulty,
                    explanation=item.get("explanation", ""),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise QuestionFormatError(
                f"Generated question {index + 1} is malformed: {exc}"
            ) from exc
    return questions


# --- Strategy Pattern: Question Generators ---
class QuestionGenerator(ABC):
    """Abstract Base Class for the ways a test can be put together."""

    @abstractmethod
    async def generate(
        self, subject: str, difficulty: Difficulty, count: int
    ) -> List[Question]:
        pass


class StaticQuestionGenerator(QuestionGenerator):
    """Local bank: questions matching the difficulty or subject, padded from the rest."""

    def __init__(self, bank: QuestionBankManager):
        self.bank = bank

    async def generate(
        self, subject: str, difficulty: Difficulty, count: int
    ) -> List[Question]:
        return self.select(subject, difficulty, count)

    def select(self, subject: str, difficulty: Difficulty, count: int) -> List[Question]:
        questions = self.bank.all_questions()
        if len(questions) < count:
            raise QuestionBankExhausted(
                f"Static bank holds {len(questions)} questions, a test needs {count}"
            )

        selected = [
            q for q in questions if q.difficulty == difficulty or subject in q.subject
        ][:count]
        if len(selected) < count:
            chosen = {q.id for q in selected}
            padding = [q for q in questions if q.id not in chosen]
            selected.extend(padding[: count - len(selected)])
        return selected


class GeminiQuestionGenerator(QuestionGenerator):
    """Asks the generation model for a fresh question set."""

    def __init__(
        self, service: GeminiService, timeout: float = settings.GENERATION_TIMEOUT_SECONDS
    ):
        self.service = service
        self.timeout = timeout

    async def generate(
        self, subject: str, difficulty: Difficulty, count: int
    ) -> List[Question]:
        raw_text = await asyncio.wait_for(
            self.service.generate_questions(subject, difficulty, count),
            timeout=self.timeout,
        )
        return parse_generated_questions(raw_text, subject, difficulty, count)


class GeneratorFactory:
    """Factory to select the appropriate generator."""

    @staticmethod
    def create(
        mode: str, client_result: ClientResult, bank: QuestionBankManager
    ) -> QuestionGenerator:
        if mode == "ai" and client_result.ok:
            return GeminiQuestionGenerator(client_result.client)
        if mode == "ai":
            logger.warning(
                f"Question generation unavailable ({client_result.error}); using the static bank."
            )
        return StaticQuestionGenerator(bank)


class QuestionProvider:
    """
    Supplies exactly ``count`` questions per test. Failures of the primary
    generator are logged and answered from the static bank; only an
    undersized static bank is reported to the caller.
    """

    def __init__(
        self,
        generator: QuestionGenerator,
        fallback: StaticQuestionGenerator,
        count: int = settings.TEST_SIZE,
    ):
        self.generator = generator
        self.fallback = fallback
        self.count = count

    async def fetch_questions(self, subject: str, difficulty: Difficulty) -> List[Question]:
        if not isinstance(self.generator, StaticQuestionGenerator):
            try:
                questions = await self.generator.generate(subject, difficulty, self.count)
                logger.info(f"Generated {len(questions)} questions [{subject}, {difficulty.value}]")
                return questions
            except Exception as e:
                logger.error(f"AI question generation failed, using local fallback bank: {e}")
        return self.fallback.select(subject, difficulty, self.count)
