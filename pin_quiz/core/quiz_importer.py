r"""Utilities for importing quizzes from a human-friendly text file.

File format (blocks separated by blank lines or '---'):

    TITLE: Quiz title            (optional header block, must come first)
    DESCRIPTION: Short blurb     (optional)
    TIMEPERQUESTION: seconds     (optional, defaults to 30)

    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    C: Third option text         (optional)
    D: Fourth option text        (optional, requires C)
    CORRECT: A|B|C|D

A continuation line that starts with a backslash is taken literally after the
backslash, so question and option text may contain blank lines, '---' or
lines that look like markers:

    Q: Read the extract:
    \
    \A: this line belongs to the question

Example:

    TITLE: Warm-up
    TIMEPERQUESTION: 20

    Q: What is 2 + 2?
    A: 3
    B: 4
    CORRECT: B
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pin_quiz.constants.quiz_constants import (
    DEFAULT_TIME_PER_QUESTION_SECONDS,
    MAX_TIME_PER_QUESTION_SECONDS,
    MIN_TIME_PER_QUESTION_SECONDS,
    OPTION_LETTERS,
)
from pin_quiz.core.models import QuestionDraft


class QuizImportError(ValueError):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    title: str
    time_per_question: int = DEFAULT_TIME_PER_QUESTION_SECONDS
    description: str | None = None
    questions: list[QuestionDraft] = field(default_factory=list)
    source_path: Path | None = None


_HEADER_KEYS = ("TITLE:", "DESCRIPTION:", "TIMEPERQUESTION:")
LITERAL_LINE_PREFIX = "\\"


def needs_literal_prefix(line: str) -> bool:
    """True when a continuation line would be read as structure rather than text."""
    stripped = line.strip()
    return (
        not stripped
        or stripped == "---"
        or stripped.startswith(LITERAL_LINE_PREFIX)
        or line[:1].isspace()
        or _is_marker(stripped)
    )


def _is_marker(line: str) -> bool:
    upper = line.upper()
    if upper.startswith(("Q:", "CORRECT:")):
        return True
    return len(line) > 2 and upper[0] in OPTION_LETTERS and line[1] == ":"


def load_quiz_from_file(file_path: Path, default_title: str | None = None) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text, default_title=default_title or file_path.stem)
    imported.source_path = file_path
    return imported


def parse_quiz_text(text: str, default_title: str | None = None) -> ImportedQuiz:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file did not contain any questions.")

    imported = ImportedQuiz(title=default_title or "")
    if blocks[0].lstrip().upper().startswith(_HEADER_KEYS):
        _parse_header(blocks.pop(0), imported)

    if not imported.title.strip():
        raise QuizImportError("Quiz title missing (TITLE: ...)")
    if not blocks:
        raise QuizImportError("Quiz file did not contain any questions.")

    imported.questions = [
        _parse_block(block, order) for order, block in enumerate(blocks, start=1)
    ]
    return imported


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return blocks


def _parse_header(block: str, imported: ImportedQuiz) -> None:
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, _, value = line.partition(":")
        key = key.strip().upper()
        value = value.strip()
        if key == "TITLE":
            imported.title = value
        elif key == "DESCRIPTION":
            imported.description = value or None
        elif key == "TIMEPERQUESTION":
            imported.time_per_question = _parse_time_per_question(value)
        else:
            raise QuizImportError(f"Unknown header line: '{line}'.")


def _parse_time_per_question(raw_value: str) -> int:
    try:
        seconds = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("TIMEPERQUESTION must be an integer number of seconds.") from exc
    if not MIN_TIME_PER_QUESTION_SECONDS <= seconds <= MAX_TIME_PER_QUESTION_SECONDS:
        raise QuizImportError(
            f"TIMEPERQUESTION must be between {MIN_TIME_PER_QUESTION_SECONDS} "
            f"and {MAX_TIME_PER_QUESTION_SECONDS} seconds."
        )
    return seconds


def _parse_block(block: str, order: int) -> QuestionDraft:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if line.startswith(LITERAL_LINE_PREFIX):
            _append_continuation(line[1:], current_section, question_lines, options)
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        _append_continuation(line, current_section, question_lines, options)

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    cleaned = {letter: text.strip() for letter, text in options.items()}
    if not cleaned.get("A") or not cleaned.get("B"):
        raise QuizImportError("Each question needs at least options A and B.")
    if cleaned.get("D") and not cleaned.get("C"):
        raise QuizImportError("Option D requires option C.")
    if any(not text for text in cleaned.values()):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError("CORRECT is required for every question.")
    if correct_letter not in cleaned:
        raise QuizImportError(f"CORRECT must name one of the options: {', '.join(sorted(cleaned))}.")

    return QuestionDraft(
        question_text=question_text,
        option_a=cleaned["A"],
        option_b=cleaned["B"],
        option_c=cleaned.get("C"),
        option_d=cleaned.get("D"),
        correct_answer=correct_letter,
        order=order,
    )


def _append_continuation(
    line: str,
    current_section: str | None,
    question_lines: list[str],
    options: dict[str, str],
) -> None:
    if current_section == "Q":
        question_lines.append(line)
    elif current_section in OPTION_LETTERS:
        options[current_section] = options[current_section] + f"\n{line}"
    else:
        raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")
