import asyncio
from datetime import datetime
from typing import List, Optional, Union

from .config import settings
from .errors import InvalidSlotIndex
from .models import (
    Question,
    QuestionType,
    ResponseRecord,
    ResponseStatus,
    ScoreResult,
    TestConfig,
)
from .scoring import score


class Countdown:
    """Remaining exam time in whole seconds, decremented once per second and floored at zero."""

    def __init__(self, duration_seconds: int = settings.TEST_DURATION_SECONDS):
        self.duration_seconds = duration_seconds
        self.remaining = duration_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def expired(self) -> bool:
        return self.remaining == 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> int:
        if self.remaining > 0:
            self.remaining -= 1
        return self.remaining

    def display(self) -> str:
        minutes, seconds = divmod(self.remaining, 60)
        return f"{minutes:02d}:{seconds:02d}"

    async def run(self):
        while self.remaining > 0:
            await asyncio.sleep(1)
            self.tick()

    def start(self):
        """Schedule the per-second tick on the running event loop."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self.run())

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def reset(self):
        self.stop()
        self.remaining = self.duration_seconds


class ExamSession:
    """
    One sitting of a mock test.

    Holds the questions, one ``ResponseRecord`` per question slot and the
    cursor. Each slot moves through ``ResponseStatus`` only via the
    navigation and answer operations below. The cursor starts on slot 0,
    which counts as a visit.
    """

    def __init__(
        self,
        questions: List[Question],
        config: TestConfig,
        duration_seconds: int = settings.TEST_DURATION_SECONDS,
    ):
        if not questions:
            raise ValueError("An exam session needs at least one question")
        self.questions = list(questions)
        self.config = config
        self.created_at = datetime.now()
        self.countdown = Countdown(duration_seconds)
        self.submitted = False
        self.current_index = 0
        self.responses: List[ResponseRecord] = []
        self._reset_responses()

    def _reset_responses(self):
        self.responses = [ResponseRecord(question_id=q.id) for q in self.questions]
        self.current_index = 0
        self.visit(0)

    # --- Slot access ---
    @property
    def last_index(self) -> int:
        return len(self.questions) - 1

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def current_response(self) -> ResponseRecord:
        return self.responses[self.current_index]

    def _check_index(self, index: int):
        if not 0 <= index <= self.last_index:
            raise InvalidSlotIndex(index, len(self.questions))

    def question_at(self, index: int) -> Question:
        self._check_index(index)
        return self.questions[index]

    def palette(self) -> List[ResponseStatus]:
        return [r.status for r in self.responses]

    # --- Status transitions ---
    def visit(self, index: int):
        self._check_index(index)
        response = self.responses[index]
        if response.status == ResponseStatus.NOT_VISITED:
            response.status = ResponseStatus.NOT_ANSWERED

    def is_answered(self, index: int) -> bool:
        self._check_index(index)
        response = self.responses[index]
        qtype = self.questions[index].type
        if qtype == QuestionType.NAT:
            return response.numerical_value != ""
        if qtype == QuestionType.MSQ:
            return len(response.selected_options) > 0
        return response.selected_option is not None

    def record_answer(self, index: int, value: Union[int, str]):
        """
        Update the answer payload of a slot without touching its status.

        MCQ/MATCH replace the selected option, MSQ toggles ``value`` in the
        selected set and NAT stores the text verbatim.
        """
        self._check_index(index)
        response = self.responses[index]
        qtype = self.questions[index].type
        if qtype == QuestionType.NAT:
            response.numerical_value = str(value)
        elif qtype == QuestionType.MSQ:
            option = int(value)
            if option in response.selected_options:
                response.selected_options.remove(option)
            else:
                response.selected_options.append(option)
        else:
            response.selected_option = int(value)

    def _advance(self):
        if self.current_index < self.last_index:
            self.current_index += 1
            self.visit(self.current_index)

    def save_and_next(self):
        answered = self.is_answered(self.current_index)
        self.current_response.status = (
            ResponseStatus.ANSWERED if answered else ResponseStatus.NOT_ANSWERED
        )
        self._advance()

    def mark_for_review(self):
        answered = self.is_answered(self.current_index)
        self.current_response.status = (
            ResponseStatus.ANSWERED_AND_MARKED
            if answered
            else ResponseStatus.MARKED_FOR_REVIEW
        )
        self._advance()

    def clear_response(self, index: Optional[int] = None):
        if index is None:
            index = self.current_index
        self._check_index(index)
        response = self.responses[index]
        response.selected_option = None
        response.selected_options = []
        response.numerical_value = ""
        response.status = ResponseStatus.NOT_ANSWERED

    # --- Navigation ---
    def jump_to(self, index: int):
        self._check_index(index)
        self.current_index = index
        self.visit(index)

    def go_previous(self):
        if self.current_index > 0:
            self.current_index -= 1
            self.visit(self.current_index)

    def go_next(self):
        self._advance()

    # --- Lifecycle ---
    def submit(self) -> ScoreResult:
        self.submitted = True
        self.countdown.stop()
        return score(self.questions, self.responses)

    def retake(self):
        """Replace every response and rewind the clock; the caller restarts it."""
        self.submitted = False
        self.created_at = datetime.now()
        self._reset_responses()
        self.countdown.reset()

    def close(self):
        self.countdown.stop()
