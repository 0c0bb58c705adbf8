import json
from typing import List, Optional

from aerie.models import (
    Difficulty,
    IndexAnswer,
    IndexSetAnswer,
    NumericAnswer,
    Question,
    QuestionType,
)

OPTIONS = ["Option A", "Option B", "Option C", "Option D"]


def mcq(id: int, answer: int, qtype: QuestionType = QuestionType.MCQ, **kwargs) -> Question:
    fields = dict(
        id=id,
        subject="Physics",
        text=f"Question {id}",
        type=qtype,
        options=OPTIONS,
        correct_answer=IndexAnswer(index=answer),
        difficulty=Difficulty.MEDIUM,
        explanation="Because.",
    )
    fields.update(kwargs)
    return Question(**fields)


def msq(id: int, answer: List[int], **kwargs) -> Question:
    fields = dict(
        id=id,
        subject="Mathematics",
        text=f"Question {id}",
        type=QuestionType.MSQ,
        options=OPTIONS,
        correct_answer=IndexSetAnswer(indices=tuple(answer)),
        difficulty=Difficulty.HARD,
        explanation="Both hold.",
    )
    fields.update(kwargs)
    return Question(**fields)


def nat(id: int, answer: str, **kwargs) -> Question:
    fields = dict(
        id=id,
        subject="Physics",
        text=f"Question {id}",
        type=QuestionType.NAT,
        correct_answer=NumericAnswer(value=answer),
        difficulty=Difficulty.EASY,
        explanation="Compute it.",
    )
    fields.update(kwargs)
    return Question(**fields)


def mixed_questions() -> List[Question]:
    """MCQ, MSQ, NAT, MATCH, MCQ."""
    return [
        mcq(1, 1),
        msq(2, [0, 2]),
        nat(3, "12.5"),
        mcq(4, 3, qtype=QuestionType.MATCH),
        mcq(5, 0),
    ]


GENERATED_PAYLOAD = {
    "questions": [
        {
            "text": "Which element carries the thrust of a Gothic vault?",
            "type": "MCQ",
            "options": ["Pier", "Flying buttress", "Lintel", "Dome"],
            "correctAnswer": "1",
            "explanation": "Flying buttresses carry lateral thrust.",
        },
        {
            "text": "Which are passive cooling strategies?",
            "type": "MSQ",
            "options": ["Stack ventilation", "Chiller", "Night purging", "VRF"],
            "correctAnswer": "[0,2]",
            "explanation": "Stack ventilation and night purging use no plant.",
        },
        {
            "text": "Reverberation time of the hall in seconds?",
            "type": "NAT",
            "correctAnswer": "1.6",
            "explanation": "Sabine's formula.",
        },
        {
            "text": "Match the architect to the building.",
            "type": "MATCH",
            "options": ["P-1, Q-2", "P-2, Q-1", "P-1, Q-1", "P-2, Q-2"],
            "correctAnswer": "2",
            "explanation": "Matching rationale.",
        },
        {
            "text": "Which code governs fire exits?",
            "type": "MCQ",
            "options": ["NBC Part 4", "IS 456", "IS 800", "NBC Part 6"],
            "correctAnswer": 0,
            "explanation": "NBC Part 4 covers fire and life safety.",
        },
    ]
}


class FakeGeminiService:
    """Stands in for GeminiService; returns canned raw JSON text."""

    def __init__(
        self,
        questions_text: Optional[str] = None,
        chat_text: Optional[str] = None,
        error: Optional[Exception] = None,
    ):
        self.questions_text = (
            json.dumps(GENERATED_PAYLOAD) if questions_text is None else questions_text
        )
        self.chat_text = (
            json.dumps({"text": "Study **structures** daily.", "suggestions": ["View Courses"]})
            if chat_text is None
            else chat_text
        )
        self.error = error
        self.generation_calls = []
        self.chat_calls = []

    async def generate_questions(self, subject, difficulty, count=5):
        self.generation_calls.append((subject, difficulty, count))
        if self.error is not None:
            raise self.error
        return self.questions_text

    async def chat(self, history, message):
        self.chat_calls.append((list(history), message))
        if self.error is not None:
            raise self.error
        return self.chat_text

