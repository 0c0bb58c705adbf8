import pytest

from aerie.models import ResponseRecord, ResponseStatus
from aerie.scorecard import (
    DEFAULT_AFFIRMATION,
    NO_ANSWER,
    affirmation_for,
    build_scorecard,
    correct_answer_text,
)
from aerie.scoring import check_correct, score

from helpers import mcq, mixed_questions, msq, nat


def test_msq_selection_order_does_not_matter():
    question = msq(1, [0, 2])
    assert check_correct(question, ResponseRecord(question_id=1, selected_options=[2, 0]))
    assert check_correct(question, ResponseRecord(question_id=1, selected_options=[0, 2]))


@pytest.mark.parametrize("selected", [[0], [0, 1, 2], [1, 3], []])
def test_msq_requires_exact_set(selected):
    question = msq(1, [0, 2])
    assert not check_correct(question, ResponseRecord(question_id=1, selected_options=selected))


def test_nat_ignores_surrounding_whitespace():
    question = nat(1, "12.5")
    assert check_correct(question, ResponseRecord(question_id=1, numerical_value=" 12.5 "))


def test_nat_compares_literally():
    question = nat(1, "12.5")
    assert not check_correct(question, ResponseRecord(question_id=1, numerical_value="12.50"))
    assert not check_correct(question, ResponseRecord(question_id=1, numerical_value=""))


def test_unanswered_index_question_is_wrong():
    question = mcq(1, 0)
    assert not check_correct(question, ResponseRecord(question_id=1))
    assert check_correct(question, ResponseRecord(question_id=1, selected_option=0))


def test_score_with_no_responses_is_zero():
    questions = mixed_questions()
    responses = [ResponseRecord(question_id=q.id) for q in questions]
    result = score(questions, responses)
    assert result.score == 0
    assert result.verdicts == [False] * 5


def test_score_counts_one_point_per_correct_slot():
    questions = mixed_questions()
    responses = [
        ResponseRecord(question_id=1, selected_option=1),
        ResponseRecord(question_id=2, selected_options=[2, 0]),
        ResponseRecord(question_id=3, numerical_value="12.5"),
        ResponseRecord(question_id=4, selected_option=0),
        ResponseRecord(question_id=5, selected_option=0),
    ]
    result = score(questions, responses)
    assert result.score == 4
    assert result.verdicts == [True, True, True, False, True]


def test_score_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        score(mixed_questions(), [ResponseRecord(question_id=1)])


@pytest.mark.parametrize(
    "points, phrase",
    [(5, "UNSTOPPABLE"), (4, "EXCELLENT"), (3, "GOOD JOB"), (2, "STEADY PROGRESS")],
)
def test_affirmation_by_score(points, phrase):
    assert affirmation_for(points).startswith(phrase)


@pytest.mark.parametrize("points", [0, 1])
def test_low_scores_get_default_affirmation(points):
    assert affirmation_for(points) == DEFAULT_AFFIRMATION


def test_correct_answer_text_by_type():
    questions = mixed_questions()
    assert correct_answer_text(questions[0]) == "Option B"
    assert correct_answer_text(questions[1]) == "Option A, Option C"
    assert correct_answer_text(questions[2]) == "12.5"


def test_scorecard_summary_and_review():
    questions = mixed_questions()
    responses = [
        ResponseRecord(question_id=1, selected_option=1, status=ResponseStatus.ANSWERED),
        ResponseRecord(
            question_id=2, selected_options=[0], status=ResponseStatus.ANSWERED_AND_MARKED
        ),
        ResponseRecord(question_id=3, status=ResponseStatus.MARKED_FOR_REVIEW),
        ResponseRecord(question_id=4, selected_option=3, status=ResponseStatus.ANSWERED),
        ResponseRecord(question_id=5, status=ResponseStatus.NOT_VISITED),
    ]
    card = build_scorecard(questions, responses)

    assert card.score == 2
    assert card.total == 5
    assert card.incorrect == 3
    assert card.review_count == 2
    assert card.affirmation == affirmation_for(2)

    first, second, third, _, fifth = card.questions
    assert first.is_correct and first.user_answer == "Option B"
    assert not second.is_correct and second.is_marked
    assert second.user_answer == "Option A"
    assert second.correct_answer == "Option A, Option C"
    assert third.user_answer == NO_ANSWER
    assert third.correct_answer == "12.5"
    assert fifth.user_answer == NO_ANSWER
    assert first.explanation == "Because."


def test_score_is_deterministic_and_order_independent():
    questions = mixed_questions()
    responses = [
        ResponseRecord(question_id=1, selected_option=1),
        ResponseRecord(question_id=2, selected_options=[0]),
        ResponseRecord(question_id=3, numerical_value="12.5"),
        ResponseRecord(question_id=4, selected_option=3),
        ResponseRecord(question_id=5),
    ]
    first = score(questions, responses)
    assert score(questions, responses) == first

    order = [4, 2, 0, 3, 1]
    shuffled = score([questions[i] for i in order], [responses[i] for i in order])
    assert shuffled.score == first.score == 3
    assert shuffled.verdicts == [first.verdicts[i] for i in order]


def test_five_mcq_scenario():
    questions = [mcq(i + 1, answer) for i, answer in enumerate([1, 1, 2, 1, 3])]
    responses = [
        ResponseRecord(question_id=i + 1, selected_option=option)
        for i, option in enumerate([1, 0, 2, 1, 3])
    ]
    result = score(questions, responses)
    assert result.score == 4
    assert result.verdicts[1] is False
    assert result.verdicts == [True, False, True, True, True]
