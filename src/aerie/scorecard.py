from typing import Sequence

from .models import (
    IndexAnswer,
    IndexSetAnswer,
    Question,
    QuestionReview,
    QuestionType,
    ResponseRecord,
    Scorecard,
)
from .scoring import score

NO_ANSWER = "No Answer"

AFFIRMATIONS = {
    5: "UNSTOPPABLE! You've mastered this subject. Perfect Score!",
    4: "EXCELLENT! You are almost there. Great architectural focus.",
    3: "GOOD JOB! You can do better with a bit more technical practice.",
    2: "STEADY PROGRESS. Focus more on theoretical depth.",
}
DEFAULT_AFFIRMATION = "KEEP GOING! Architecture is a journey. Review the explanations below."


def affirmation_for(points: int) -> str:
    return AFFIRMATIONS.get(points, DEFAULT_AFFIRMATION)


def _option_labels(question: Question, indices) -> str:
    options = question.options or ()
    return ", ".join(options[i] for i in indices if 0 <= i < len(options))


def user_answer_text(question: Question, response: ResponseRecord) -> str:
    if question.type == QuestionType.NAT:
        return response.numerical_value or NO_ANSWER
    if question.type == QuestionType.MSQ:
        return _option_labels(question, response.selected_options) or NO_ANSWER
    if response.selected_option is None:
        return NO_ANSWER
    return _option_labels(question, [response.selected_option]) or NO_ANSWER


def correct_answer_text(question: Question) -> str:
    answer = question.correct_answer
    if isinstance(answer, IndexSetAnswer):
        return _option_labels(question, answer.indices)
    if isinstance(answer, IndexAnswer):
        return _option_labels(question, [answer.index]) or "None"
    return str(answer.value)


def build_scorecard(
    questions: Sequence[Question], responses: Sequence[ResponseRecord]
) -> Scorecard:
    """Everything the result page shows for a submitted test."""
    result = score(questions, responses)
    reviews = [
        QuestionReview(
            index=index,
            question_id=question.id,
            type=question.type,
            text=question.text,
            is_correct=result.verdicts[index],
            is_marked=response.status.is_marked,
            user_answer=user_answer_text(question, response),
            correct_answer=correct_answer_text(question),
            explanation=question.explanation,
        )
        for index, (question, response) in enumerate(zip(questions, responses))
    ]
    return Scorecard(
        score=result.score,
        total=len(questions),
        incorrect=len(questions) - result.score,
        review_count=sum(1 for r in responses if r.status.is_marked),
        affirmation=affirmation_for(result.score),
        questions=reviews,
    )
