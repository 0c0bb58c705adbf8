import glob
import logging
import os
from typing import Any, Dict, List

import pandas as pd

from .models import Difficulty, IndexAnswer, Question, QuestionType, decode_correct_answer

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "subject",
    "type",
    "text",
    "options",
    "correct_answer",
    "difficulty",
    "explanation",
]
OPTION_SEPARATOR = "|"


def _mcq(
    id: int,
    subject: str,
    text: str,
    options: List[str],
    answer: int,
    difficulty: Difficulty,
    explanation: str,
) -> Question:
    return Question(
        id=id,
        subject=subject,
        text=text,
        type=QuestionType.MCQ,
        options=options,
        correct_answer=IndexAnswer(index=answer),
        difficulty=difficulty,
        explanation=explanation,
    )


AUTHORED_QUESTIONS: List[Question] = [
    _mcq(
        1,
        "Architectural Aptitude",
        "Which architectural style is characterized by pointed arches, ribbed vaults, and flying buttresses?",
        ["Romanesque", "Gothic", "Renaissance", "Baroque"],
        1,
        Difficulty.EASY,
        "Gothic architecture is known for its verticality and light, achieved through pointed arches, ribbed vaults, and flying buttresses.",
    ),
    _mcq(
        2,
        "Architectural Aptitude",
        "Who designed the Fallingwater house in Pennsylvania?",
        ["Le Corbusier", "Frank Lloyd Wright", "Mies van der Rohe", "Zaha Hadid"],
        1,
        Difficulty.EASY,
        "Fallingwater was designed by Frank Lloyd Wright in 1935 and is a masterpiece of organic architecture.",
    ),
    _mcq(
        3,
        "Physics",
        "The characteristic distance at which quantum gravitational effects are significant, the Planck length, "
        "can be determined from combination of G, h, and c. Which is correct?",
        ["G h^2 c^3", "sqrt(Gh/c^3)", "G^2 h c", "h^2 c / G"],
        1,
        Difficulty.HARD,
        "The Planck length is defined as sqrt(Gh/c^3).",
    ),
    _mcq(
        4,
        "Physics",
        "A wire of length L and resistance R is stretched to twice its length. What is its new resistance?",
        ["R", "2R", "4R", "R/2"],
        2,
        Difficulty.MEDIUM,
        "Resistance R = ρL/A. When length L is doubled, the cross-sectional area A is halved to keep volume "
        "constant, resulting in a resistance of 4R.",
    ),
    _mcq(
        5,
        "Mathematics",
        "Find the derivative of f(x) = sin(x^2).",
        ["cos(x^2)", "2x cos(x^2)", "2 sin(x) cos(x)", "-2x cos(x^2)"],
        1,
        Difficulty.MEDIUM,
        "Using the chain rule, the derivative of sin(u) is cos(u) * u'. Here u = x^2, so u' = 2x, "
        "making the derivative 2x cos(x^2).",
    ),
    _mcq(
        6,
        "Mathematics",
        "The value of integral from 0 to pi/2 of sin(x) dx is:",
        ["0", "1", "pi", "1/2"],
        1,
        Difficulty.EASY,
        "The integral of sin(x) is -cos(x). Evaluating from 0 to pi/2 gives [-cos(pi/2)] - [-cos(0)] = 0 - (-1) = 1.",
    ),
    _mcq(
        7,
        "Chemistry",
        "Which of the following has the highest electronegativity?",
        ["Oxygen", "Fluorine", "Nitrogen", "Chlorine"],
        1,
        Difficulty.EASY,
        "Fluorine is the most electronegative element in the periodic table due to its small size and high "
        "effective nuclear charge.",
    ),
    _mcq(
        8,
        "Chemistry",
        "The oxidation state of Manganese in KMnO4 is:",
        ["+2", "+4", "+6", "+7"],
        3,
        Difficulty.MEDIUM,
        "In KMnO4, Potassium (K) is +1 and Oxygen (O) is -2. Total charge 0 = 1 + Mn + 4(-2) => Mn = +7.",
    ),
]

PLACEHOLDER_SUBJECTS = ["Physics", "Chemistry", "Mathematics", "Architectural Aptitude"]


def builtin_bank() -> List[Question]:
    """The authored questions followed by practice placeholders up to id 60."""
    questions = list(AUTHORED_QUESTIONS)
    for i in range(len(AUTHORED_QUESTIONS) + 1, 61):
        questions.append(
            _mcq(
                i,
                PLACEHOLDER_SUBJECTS[i % 4],
                f"Sample Question {i} for competitive exam practice. "
                "What is the logic behind structural integrity in modern high-rise buildings?",
                ["Option A", "Option B", "Option C", "Option D"],
                0,
                Difficulty.MEDIUM,
                "Structural integrity in high-rise buildings depends on efficient load distribution "
                "and wind resistance strategies.",
            )
        )
    return questions


def question_from_row(row: Dict[str, Any]) -> Question:
    """Build a question from one CSV record. Raises ValueError on bad rows."""
    options = [o.strip() for o in str(row["options"]).split(OPTION_SEPARATOR) if o.strip()]
    return Question(
        id=int(row["id"]),
        subject=row["subject"].strip(),
        text=row["text"].strip(),
        type=row["type"].strip().upper(),
        options=options or None,
        correct_answer=decode_correct_answer(row["type"].strip().upper(), row["correct_answer"]),
        difficulty=row["difficulty"].strip().capitalize(),
        explanation=row["explanation"],
    )


class QuestionBankManager:
    """Manages the static question banks used when generation is unavailable."""

    def __init__(self, directory: str):
        self.directory = directory
        self.banks: Dict[str, List[Question]] = {}
        self.load_all()

    def load_all(self):
        self.banks = {}
        if not os.path.isdir(self.directory):
            logger.info(f"No question bank directory at {self.directory}.")
        else:
            csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
            for file_path in csv_files:
                self._load_file(file_path)

        if not self.banks:
            logger.warning("No CSV question banks found. Loading built-in bank.")
            self.banks["builtin"] = builtin_bank()

    def _load_file(self, file_path: str):
        name = os.path.splitext(os.path.basename(file_path))[0]
        try:
            # NAT answers are literals: keep "12.50" and empty cells as text
            df = pd.read_csv(file_path, encoding="utf-8", dtype=str, keep_default_na=False)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {file_path}: {e}")
            return

        missing = set(CSV_COLUMNS) - set(df.columns)
        if missing:
            logger.error(f"Skipping {name}: Missing columns {sorted(missing)}.")
            return

        questions = []
        for row in df.to_dict("records"):
            try:
                questions.append(question_from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping question {row.get('id')!r} in {name}: {e}")
        if questions:
            self.banks[name] = questions
            logger.info(f"Loaded {len(questions)} questions from {name}")

    def all_questions(self) -> List[Question]:
        """Every loaded question, first occurrence of each id wins."""
        seen = set()
        questions = []
        for bank in self.banks.values():
            for question in bank:
                if question.id not in seen:
                    seen.add(question.id)
                    questions.append(question)
        return questions

    def get_subjects(self) -> List[Dict[str, Any]]:
        questions = self.all_questions()
        if not questions:
            return []
        frame = pd.DataFrame([{"subject": q.subject} for q in questions])
        counts = frame.groupby("subject").size()
        return [{"name": subject, "count": int(count)} for subject, count in counts.items()]
