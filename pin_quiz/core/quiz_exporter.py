"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from pin_quiz.core.models import Question, QuizWithQuestions
from pin_quiz.core.quiz_importer import LITERAL_LINE_PREFIX, needs_literal_prefix


def serialize_quiz(quiz: QuizWithQuestions) -> str:
    """Render the quiz as a document that ``parse_quiz_text`` reads back."""
    if not quiz.questions:
        raise ValueError("Cannot export a quiz without questions.")
    blocks = [_serialize_header(quiz)]
    blocks.extend(_serialize_question(question) for question in quiz.questions)
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_header(quiz: QuizWithQuestions) -> str:
    # Header values are single-line.
    lines = [f"TITLE: {' '.join(quiz.quiz.title.split())}"]
    if quiz.quiz.description:
        lines.append(f"DESCRIPTION: {' '.join(quiz.quiz.description.split())}")
    lines.append(f"TIMEPERQUESTION: {quiz.quiz.time_per_question}")
    return "\n".join(lines)


def _serialize_question(question: Question) -> str:
    lines = _serialize_field("Q", question.question_text)
    for letter, option_text in question.options().items():
        lines.extend(_serialize_field(letter, option_text))
    lines.append(f"CORRECT: {question.correct_answer}")
    return "\n".join(lines)


def _serialize_field(marker: str, text: str) -> list[str]:
    first, *rest = text.splitlines() or [text]
    lines = [f"{marker}: {first}"]
    for line in rest:
        lines.append(f"{LITERAL_LINE_PREFIX}{line}" if needs_literal_prefix(line) else line)
    return lines
