"""Error log: questions answered incorrectly across every activity."""
import logging

from sat_prep.errors import NothingToRetake
from sat_prep.generation import ContentClient, regenerate_mistake_questions
from sat_prep.models import (
    SOURCE_FLASHCARD, SOURCE_MOCK_TEST, SOURCES, IncorrectQuestion, Question, TestResult, now_ms,
)

logger = logging.getLogger(__name__)


def entries_from_result(result: TestResult, timestamp: int | None = None) -> list[IncorrectQuestion]:
    """Every wrong answer the user actually gave during a finished test."""
    stamp = timestamp if timestamp is not None else now_ms()
    return [
        IncorrectQuestion(a.question, a.user_answer, stamp, SOURCE_MOCK_TEST)
        for a in result.answers
        if not a.is_correct and a.user_answer
    ]


def add_batch(log: list[IncorrectQuestion], result: TestResult) -> list[IncorrectQuestion]:
    """Append a finished test's mistakes. No de-duplication on this path."""
    return log + entries_from_result(result)


def add_single(
    log: list[IncorrectQuestion], question: Question, user_answer: str, source: str,
) -> tuple[list[IncorrectQuestion], bool]:
    """Append one mistake unless the same question text is already logged.

    Returns the log and whether an entry was added.
    """
    if source not in SOURCES:
        raise ValueError(f"Unknown error log source '{source}'")
    if any(e.question.question == question.question for e in log):
        return log, False
    return log + [IncorrectQuestion(question, user_answer, now_ms(), source)], True


def filter_by_source(log: list[IncorrectQuestion], source: str | None = None) -> list[IncorrectQuestion]:
    if source is None:
        return list(log)
    return [e for e in log if e.source == source]


def source_counts(log: list[IncorrectQuestion]) -> dict:
    counts = {"All": len(log)}
    for source in SOURCES:
        n = sum(1 for e in log if e.source == source)
        if n:
            counts[source] = n
    return counts


def retake_candidates(log: list[IncorrectQuestion]) -> list[IncorrectQuestion]:
    return [e for e in log if e.source != SOURCE_FLASHCARD]


def build_retake(client: ContentClient, log: list[IncorrectQuestion]) -> list[Question]:
    """Regenerate one new question per question-based mistake.

    Raises NothingToRetake when no mistake qualifies or nothing came back.
    """
    mistakes = retake_candidates(log)
    if not mistakes:
        raise NothingToRetake("No question-based mistakes to retake!")
    questions = regenerate_mistake_questions(client, mistakes)
    if not questions:
        raise NothingToRetake("No new questions could be built from your mistakes.")
    logger.info("Built a retake of %d questions from %d mistakes", len(questions), len(mistakes))
    return questions
