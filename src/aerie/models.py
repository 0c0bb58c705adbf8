import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import QuestionFormatError


# --- Enumerations ---
class QuestionType(str, Enum):
    MCQ = "MCQ"
    MSQ = "MSQ"
    NAT = "NAT"
    MATCH = "MATCH"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class ResponseStatus(str, Enum):
    NOT_VISITED = "Not Visited"
    NOT_ANSWERED = "Not Answered"
    ANSWERED = "Answered"
    MARKED_FOR_REVIEW = "Marked for Review"
    ANSWERED_AND_MARKED = "Answered & Marked"

    @property
    def is_marked(self) -> bool:
        return self in (
            ResponseStatus.MARKED_FOR_REVIEW,
            ResponseStatus.ANSWERED_AND_MARKED,
        )


# --- Correct answers ---
class IndexAnswer(BaseModel):
    """Single option index (MCQ and MATCH)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["index"] = "index"
    index: int


class IndexSetAnswer(BaseModel):
    """Set of option indices (MSQ)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["index_set"] = "index_set"
    indices: Tuple[int, ...]


class NumericAnswer(BaseModel):
    """Numeric literal compared as text (NAT)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    value: str

    @field_validator("value")
    @classmethod
    def check_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("NAT answer must not be empty")
        return value


CorrectAnswer = Annotated[
    Union[IndexAnswer, IndexSetAnswer, NumericAnswer], Field(discriminator="kind")
]

ANSWER_KINDS = {
    QuestionType.MCQ: IndexAnswer,
    QuestionType.MATCH: IndexAnswer,
    QuestionType.MSQ: IndexSetAnswer,
    QuestionType.NAT: NumericAnswer,
}


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def decode_correct_answer(question_type: Union[QuestionType, str], raw: Any):
    """
    Decode a wire-format answer: an index for MCQ/MATCH, a JSON array of
    indices for MSQ and a literal string for NAT. Strings holding JSON are
    accepted for the index forms.
    """
    qtype = QuestionType(question_type)
    if qtype == QuestionType.NAT:
        if raw is None or isinstance(raw, (list, dict)):
            raise QuestionFormatError(f"NAT answer must be a literal, got {raw!r}")
        if not str(raw).strip():
            raise QuestionFormatError("NAT answer is empty")
        return NumericAnswer(value=str(raw))

    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise QuestionFormatError(f"Cannot decode {qtype.value} answer {raw!r}") from exc

    if qtype == QuestionType.MSQ:
        if not isinstance(value, list) or not all(_is_index(i) for i in value):
            raise QuestionFormatError(f"MSQ answer must be a list of indices, got {raw!r}")
        return IndexSetAnswer(indices=tuple(value))

    if not _is_index(value):
        raise QuestionFormatError(f"{qtype.value} answer must be an index, got {raw!r}")
    return IndexAnswer(index=value)


# --- Questions ---
class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    subject: str
    text: str
    type: QuestionType
    options: Optional[Tuple[str, ...]] = None
    correct_answer: CorrectAnswer
    difficulty: Difficulty
    explanation: str = ""

    @model_validator(mode="after")
    def check_shape(self) -> "Question":
        expected = ANSWER_KINDS[self.type]
        if not isinstance(self.correct_answer, expected):
            raise ValueError(f"{self.type.value} questions need an {expected.__name__}")

        if self.type == QuestionType.NAT:
            if self.options:
                raise ValueError("NAT questions take no options")
            return self

        if not self.options:
            raise ValueError(f"{self.type.value} questions need options")
        count = len(self.options)
        if isinstance(self.correct_answer, IndexAnswer):
            indices: Tuple[int, ...] = (self.correct_answer.index,)
        else:
            indices = self.correct_answer.indices
            if not indices:
                raise ValueError("MSQ answer must select at least one option")
            if len(set(indices)) != len(indices):
                raise ValueError("MSQ answer repeats an option")
        for index in indices:
            if not 0 <= index < count:
                raise ValueError(f"Answer index {index} outside {count} options")
        return self

    def public_view(self) -> Dict[str, Any]:
        """The question as shown during the exam, without its solution."""
        return self.model_dump(mode="json", exclude={"correct_answer", "explanation"})


class TestConfig(BaseModel):
    subject: str
    difficulty: Difficulty


# --- Responses ---
class ResponseRecord(BaseModel):
    question_id: int
    selected_option: Optional[int] = None
    selected_options: List[int] = Field(default_factory=list)
    numerical_value: str = ""
    status: ResponseStatus = ResponseStatus.NOT_VISITED


class ScoreResult(BaseModel):
    score: int
    verdicts: List[bool]


class QuestionReview(BaseModel):
    index: int
    question_id: int
    type: QuestionType
    text: str
    is_correct: bool
    is_marked: bool
    user_answer: str
    correct_answer: str
    explanation: str


class Scorecard(BaseModel):
    score: int
    total: int
    incorrect: int
    review_count: int
    affirmation: str
    questions: List[QuestionReview]


# --- Gemini payloads ---
class GeneratedQuestion(BaseModel):
    """Response schema for one generated question."""

    text: str
    type: QuestionType
    options: Optional[List[str]] = None
    correctAnswer: str = Field(
        description="MCQ: Index (0-3). MSQ: JSON array of indices like [0,2]. NAT: Numerical string."
    )
    explanation: str


class GeneratedQuestionSet(BaseModel):
    questions: List[GeneratedQuestion]


# --- Chat ---
class ChatAction(str, Enum):
    START_TEST = "start_test"
    OPEN_COURSES = "open_courses"


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatRequest(BaseModel):
    history: List[ChatMessage] = Field(default_factory=list)
    message: str


class ChatPayload(BaseModel):
    """Response schema the chat model must follow."""

    text: str
    suggestions: List[str]


class ChatReply(BaseModel):
    text: str = ""
    suggestions: List[str] = Field(default_factory=list)
    action: Optional[ChatAction] = None
    url: Optional[str] = None
    is_error: bool = False


# --- Interaction log ---
class InteractionEntry(BaseModel):
    timestamp: datetime
    prompt: str
    response: str
    context: str = "chatbot"
