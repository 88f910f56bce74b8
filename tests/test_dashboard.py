# tests/test_dashboard.py
from datetime import date

import pytest

from sat_prep.dashboard import (
    days_until, dream_score_progress, get_accuracy_color, get_overall_stats, is_chartable,
    latest_full_simulation, result_topic_breakdown, score_series, topic_accuracy, xp_progress,
)
from sat_prep.models import (
    TEST_FULL, TEST_QUICK, AnswerRecord, FlashcardResult, TestResult, UserProfile,
)


def record(make_question, n, topic, correct):
    q = make_question(n, topic=topic)
    return AnswerRecord(q, q.correct_answer if correct else None, correct)


def test_accuracy_color():
    assert get_accuracy_color(85) == "green"
    assert get_accuracy_color(70) == "yellow"
    assert get_accuracy_color(55) == "dark_orange"
    assert get_accuracy_color(40) == "red"


def test_topic_accuracy_weakest_first(make_question):
    answers = (
        record(make_question, 1, "Heart of Algebra", True),
        record(make_question, 2, "Heart of Algebra", True),
        record(make_question, 3, "Geometry and Trigonometry", False),
        record(make_question, 4, "Geometry and Trigonometry", True),
    )
    history = [
        TestResult(TEST_QUICK, 75, 0, 0, answers, 60, 1),
        TestResult(TEST_QUICK, 0, 0, 0, (record(make_question, 5, "Heart of Algebra", False),), 60, 2),
    ]
    rows = topic_accuracy(history)
    assert [r["name"] for r in rows] == ["Geometry and Trigonometry", "Heart of Algebra"]
    assert rows[0]["accuracy"] == 50
    assert (rows[1]["correct"], rows[1]["total"], rows[1]["accuracy"]) == (2, 3, 67)


def test_result_topic_breakdown_keeps_appearance_order(make_question):
    answers = (
        record(make_question, 1, "Transitions", True),
        record(make_question, 2, "Circles", False),
    )
    rows = result_topic_breakdown(TestResult(TEST_QUICK, 50, 0, 0, answers, 60, 1))
    assert [(r["name"], r["accuracy"]) for r in rows] == [("Transitions", 100), ("Circles", 0)]


def test_overall_stats_empty():
    stats = get_overall_stats([], [])
    assert stats["total_tests"] == 0
    assert stats["avg_score"] == 0
    assert stats["avg_flashcard_score"] == 0


def test_overall_stats_percent_label_without_full_simulation():
    history = [TestResult(TEST_QUICK, 60, 0, 0, (), 60, 1), TestResult(TEST_QUICK, 80, 0, 0, (), 60, 2)]
    decks = [FlashcardResult(7, 10, 1), FlashcardResult(10, 10, 2)]
    stats = get_overall_stats(history, decks)
    assert stats["avg_score"] == 70
    assert stats["avg_score_label"] == "70%"
    assert stats["flashcards_reviewed"] == 20
    assert stats["avg_flashcard_score"] == 85


def test_overall_stats_plain_label_with_full_simulation():
    history = [TestResult(TEST_FULL, 1200, 600, 600, (), 60, 1)]
    assert get_overall_stats(history, [])["avg_score_label"] == "1200"


def test_score_series_sorted_by_time():
    history = [
        TestResult(TEST_FULL, 1100, 500, 600, (), 60, 30),
        TestResult(TEST_QUICK, 80, 0, 0, (), 60, 20),
        TestResult(TEST_FULL, 1000, 500, 500, (), 60, 10),
    ]
    series = score_series(history, TEST_FULL)
    assert [p["total_score"] for p in series] == [1000, 1100]
    assert is_chartable(series)
    assert not is_chartable(score_series(history, TEST_QUICK))


def test_progress_helpers():
    profile = UserProfile(xp=250, dream_score=1500)
    assert xp_progress(profile) == 25
    history = [
        TestResult(TEST_FULL, 1200, 600, 600, (), 60, 1),
        TestResult(TEST_FULL, 900, 450, 450, (), 60, 2),
    ]
    assert latest_full_simulation(history).total_score == 900
    assert dream_score_progress(profile, history) == pytest.approx(60)
    assert dream_score_progress(profile, []) == 0


def test_days_until():
    assert days_until(date(2026, 12, 5), today=date(2026, 12, 1)) == 4
    assert days_until(date(2026, 11, 1), today=date(2026, 12, 1)) == 0
    assert days_until(None) == 0


def test_accuracy_rounds_halves_up(make_question):
    answers = tuple(record(make_question, n, "Transitions", n <= 5) for n in range(1, 9))
    rows = result_topic_breakdown(TestResult(TEST_QUICK, 63, 0, 0, answers, 60, 1))
    assert rows[0]["accuracy"] == 63
    history = [TestResult(TEST_QUICK, 62, 0, 0, (), 60, 1), TestResult(TEST_QUICK, 63, 0, 0, (), 60, 2)]
    stats = get_overall_stats(history, [])
    assert stats["avg_score_label"] == "63%"
