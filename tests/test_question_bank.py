import pandas as pd
import pytest

from aerie.models import IndexSetAnswer, NumericAnswer, QuestionType
from aerie.question_bank import CSV_COLUMNS, QuestionBankManager, builtin_bank


def write_bank(path, rows):
    pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(path, index=False)


ROWS = [
    {
        "id": 101,
        "subject": "Building Services",
        "type": "MCQ",
        "text": "Unit of luminous flux?",
        "options": "Lux|Lumen|Candela|Nit",
        "correct_answer": "1",
        "difficulty": "Easy",
        "explanation": "Flux is measured in lumens.",
    },
    {
        "id": 102,
        "subject": "Building Services",
        "type": "MSQ",
        "text": "Which are renewable sources?",
        "options": "Solar|Coal|Wind|Diesel",
        "correct_answer": "[0, 2]",
        "difficulty": "Medium",
        "explanation": "",
    },
    {
        "id": 103,
        "subject": "Structures",
        "type": "NAT",
        "text": "Span in metres?",
        "options": "",
        "correct_answer": "12.50",
        "difficulty": "hard",
        "explanation": "Read it off the drawing.",
    },
]


def test_missing_directory_loads_builtin_bank(tmp_path):
    bank = QuestionBankManager(str(tmp_path / "missing"))
    assert list(bank.banks) == ["builtin"]
    questions = bank.all_questions()
    assert len(questions) == 60
    assert [q.id for q in questions] == list(range(1, 61))


def test_builtin_bank_is_well_formed():
    questions = builtin_bank()
    assert questions[0].subject == "Architectural Aptitude"
    assert all(q.type == QuestionType.MCQ for q in questions)
    assert len({q.id for q in questions}) == len(questions)


def test_loads_csv_bank(tmp_path):
    write_bank(tmp_path / "services.csv", ROWS)
    bank = QuestionBankManager(str(tmp_path))

    assert list(bank.banks) == ["services"]
    mcq, msq, nat = bank.all_questions()
    assert mcq.options == ("Lux", "Lumen", "Candela", "Nit")
    assert msq.correct_answer == IndexSetAnswer(indices=(0, 2))
    assert nat.options is None
    assert nat.correct_answer == NumericAnswer(value="12.50")
    assert nat.difficulty.value == "Hard"


def test_bad_rows_are_skipped(tmp_path):
    bad = dict(ROWS[0], id=104, correct_answer="7")
    write_bank(tmp_path / "services.csv", ROWS + [bad])
    bank = QuestionBankManager(str(tmp_path))
    assert [q.id for q in bank.all_questions()] == [101, 102, 103]


def test_file_with_missing_columns_is_skipped(tmp_path):
    pd.DataFrame([{"id": 1, "text": "?"}]).to_csv(tmp_path / "broken.csv", index=False)
    bank = QuestionBankManager(str(tmp_path))
    assert list(bank.banks) == ["builtin"]


def test_duplicate_ids_keep_first_occurrence(tmp_path):
    write_bank(tmp_path / "a.csv", ROWS[:1])
    write_bank(tmp_path / "b.csv", [dict(ROWS[0], text="Duplicate")])
    bank = QuestionBankManager(str(tmp_path))
    questions = bank.all_questions()
    assert len(questions) == 1
    assert questions[0].text == "Unit of luminous flux?"


def test_get_subjects_counts_questions(tmp_path):
    write_bank(tmp_path / "services.csv", ROWS)
    bank = QuestionBankManager(str(tmp_path))
    assert bank.get_subjects() == [
        {"name": "Building Services", "count": 2},
        {"name": "Structures", "count": 1},
    ]


@pytest.mark.parametrize("name", ["Physics", "Chemistry", "Mathematics"])
def test_builtin_subjects_are_listed(tmp_path, name):
    bank = QuestionBankManager(str(tmp_path))
    assert name in {entry["name"] for entry in bank.get_subjects()}


def test_numeric_row_without_answer_is_skipped(tmp_path):
    blank = dict(ROWS[2], id=105, correct_answer="")
    write_bank(tmp_path / "services.csv", ROWS + [blank])
    bank = QuestionBankManager(str(tmp_path))
    assert 105 not in {q.id for q in bank.all_questions()}
