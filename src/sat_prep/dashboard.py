"""Statistics derived from test and flashcard history."""
from datetime import date
from typing import Optional

from sat_prep.mock_test import round_half_up
from sat_prep.models import TEST_FULL, FlashcardResult, TestResult, UserProfile

MIN_CHART_POINTS = 2


def get_accuracy_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def _tally_topics(results: list[TestResult]) -> dict:
    tally: dict = {}
    for result in results:
        for answer in result.answers:
            counts = tally.setdefault(answer.question.topic, [0, 0])
            counts[1] += 1
            if answer.is_correct:
                counts[0] += 1
    return tally


def _accuracy_rows(tally: dict) -> list[dict]:
    return [
        {"name": topic, "correct": c, "total": t, "accuracy": round_half_up(c / t * 100)}
        for topic, (c, t) in tally.items()
    ]


def topic_accuracy(test_history: list[TestResult]) -> list[dict]:
    """Accuracy per topic across every test taken, weakest first."""
    return sorted(_accuracy_rows(_tally_topics(test_history)), key=lambda r: r["accuracy"])


def result_topic_breakdown(result: TestResult) -> list[dict]:
    """Accuracy per topic for a single test, in the order topics appeared."""
    return _accuracy_rows(_tally_topics([result]))


def score_series(test_history: list[TestResult], test_type: str) -> list[dict]:
    results = sorted((t for t in test_history if t.test_type == test_type), key=lambda t: t.timestamp)
    return [
        {
            "timestamp": t.timestamp,
            "total_score": t.total_score,
            "english_score": t.english_score,
            "math_score": t.math_score,
        }
        for t in results
    ]


def is_chartable(series: list) -> bool:
    return len(series) >= MIN_CHART_POINTS


def get_overall_stats(test_history: list[TestResult], flashcard_history: list[FlashcardResult]) -> dict:
    total_tests = len(test_history)
    cards_reviewed = sum(f.total for f in flashcard_history)
    avg_score = sum(t.total_score for t in test_history) / total_tests if total_tests else 0
    avg_flash = sum(f.score for f in flashcard_history) / cards_reviewed * 100 if cards_reviewed else 0
    avg = round_half_up(avg_score)
    # Scaled scores and percentages mix once any Full Simulation is in the history
    has_full = any(t.test_type == TEST_FULL for t in test_history)
    return {
        "total_tests": total_tests,
        "flashcards_reviewed": cards_reviewed,
        "avg_score": avg,
        "avg_score_label": str(avg) if has_full else f"{avg}%",
        "avg_flashcard_score": round_half_up(avg_flash),
    }


def xp_progress(profile: UserProfile) -> float:
    return profile.xp / profile.xp_to_next_level * 100


def latest_full_simulation(test_history: list[TestResult]) -> Optional[TestResult]:
    full = [t for t in test_history if t.test_type == TEST_FULL]
    return max(full, key=lambda t: t.timestamp) if full else None


def dream_score_progress(profile: UserProfile, test_history: list[TestResult]) -> float:
    latest = latest_full_simulation(test_history)
    if latest is None or not profile.dream_score:
        return 0.0
    return latest.total_score / profile.dream_score * 100


def days_until(exam_date: Optional[date], today: Optional[date] = None) -> int:
    if exam_date is None:
        return 0
    return max(0, (exam_date - (today or date.today())).days)
