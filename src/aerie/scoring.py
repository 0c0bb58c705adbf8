from typing import Sequence

from .models import (
    IndexAnswer,
    IndexSetAnswer,
    NumericAnswer,
    Question,
    ResponseRecord,
    ScoreResult,
)


def check_correct(question: Question, response: ResponseRecord) -> bool:
    answer = question.correct_answer
    if isinstance(answer, NumericAnswer):
        # Literal comparison: "12.50" does not match "12.5"
        return response.numerical_value.strip() == str(answer.value).strip()
    if isinstance(answer, IndexSetAnswer):
        selected = response.selected_options
        if len(selected) != len(answer.indices):
            return False
        return all(index in answer.indices for index in selected)
    if isinstance(answer, IndexAnswer):
        return response.selected_option is not None and response.selected_option == answer.index
    return False


def score(questions: Sequence[Question], responses: Sequence[ResponseRecord]) -> ScoreResult:
    """One point per correct slot, no partial credit."""
    if len(questions) != len(responses):
        raise ValueError(
            f"{len(questions)} questions but {len(responses)} responses"
        )
    verdicts = [check_correct(q, r) for q, r in zip(questions, responses)]
    return ScoreResult(score=sum(verdicts), verdicts=verdicts)
