"""Tests for the error log."""
import pytest

from sat_prep.error_log import (
    add_batch, add_single, build_retake, entries_from_result, filter_by_source,
    retake_candidates, source_counts,
)
from sat_prep.errors import NothingToRetake
from sat_prep.models import (
    SOURCE_FLASHCARD, SOURCE_MOCK_TEST, SOURCE_QUESTION_BANK, TEST_QUICK, AnswerRecord,
    IncorrectQuestion, TestResult,
)


@pytest.fixture
def quick_result(make_question):
    q1, q2, q3 = make_question(1), make_question(2), make_question(3)
    answers = (
        AnswerRecord(q1, "A1", True),
        AnswerRecord(q2, "B2", False),
        AnswerRecord(q3, None, False),
    )
    return TestResult(TEST_QUICK, 33, 0, 0, answers, 120, 1000)


def test_entries_from_result_skips_correct_and_unanswered(quick_result):
    entries = entries_from_result(quick_result, timestamp=5)
    assert len(entries) == 1
    assert entries[0].question.question == "Question 2?"
    assert entries[0].user_answer == "B2"
    assert entries[0].source == SOURCE_MOCK_TEST
    assert entries[0].timestamp == 5


def test_add_batch_does_not_deduplicate(quick_result):
    log = add_batch([], quick_result)
    log = add_batch(log, quick_result)
    assert len(log) == 2


def test_add_single_deduplicates_by_question_text(make_question):
    log, added = add_single([], make_question(1), "B1", SOURCE_QUESTION_BANK)
    assert added
    log, added = add_single(log, make_question(1), "C1", SOURCE_QUESTION_BANK)
    assert not added
    assert len(log) == 1
    assert log[0].user_answer == "B1"


def test_add_single_rejects_unknown_source(make_question):
    with pytest.raises(ValueError):
        add_single([], make_question(1), "B1", "Homework")


def make_log(make_question):
    return [
        IncorrectQuestion(make_question(1), "B1", 1, SOURCE_MOCK_TEST),
        IncorrectQuestion(make_question(2), "B2", 2, SOURCE_FLASHCARD),
        IncorrectQuestion(make_question(3), "B3", 3, SOURCE_FLASHCARD),
    ]


def test_filter_and_counts(make_question):
    log = make_log(make_question)
    assert len(filter_by_source(log)) == 3
    assert len(filter_by_source(log, SOURCE_FLASHCARD)) == 2
    assert source_counts(log) == {"All": 3, SOURCE_MOCK_TEST: 1, SOURCE_FLASHCARD: 2}


def test_retake_excludes_flashcards(make_question):
    assert [e.source for e in retake_candidates(make_log(make_question))] == [SOURCE_MOCK_TEST]


def test_build_retake_with_only_flashcard_mistakes(fake_client, make_question):
    client = fake_client()
    log = make_log(make_question)[1:]
    with pytest.raises(NothingToRetake):
        build_retake(client, log)
    assert client.requests == []


def test_build_retake_with_empty_regeneration(fake_client, make_question):
    with pytest.raises(NothingToRetake):
        build_retake(fake_client("[]"), make_log(make_question))


def test_build_retake(fake_client, questions_json, make_question):
    client = fake_client(questions_json(1, start=20))
    questions = build_retake(client, make_log(make_question))
    assert [q.question for q in questions] == ["Question 20?"]
    assert "Question 2?" not in client.requests[0].prompt
