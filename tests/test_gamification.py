"""Tests for XP, levels and achievement tasks."""
import pytest

from sat_prep.gamification import TASKS, add_xp, evaluate_tasks, xp_for_deck, xp_for_test
from sat_prep.models import TEST_FULL, TEST_QUICK, FlashcardResult, TestResult, UserProfile


def result(test_type, score):
    return TestResult(test_type, score, 0, 0, (), 60, 1)


def test_add_xp_without_level_up():
    profile, gained = add_xp(UserProfile(), 250)
    assert (profile.level, profile.xp, profile.xp_to_next_level) == (1, 250, 1000)
    assert gained == 0


def test_add_xp_rolls_over_into_next_level():
    profile, gained = add_xp(UserProfile(xp=900), 250)
    assert (profile.level, profile.xp, profile.xp_to_next_level) == (2, 150, 1200)
    assert gained == 1


def test_add_xp_can_gain_several_levels():
    profile, gained = add_xp(UserProfile(), 2300)
    assert gained == 2
    assert (profile.level, profile.xp, profile.xp_to_next_level) == (3, 100, 1440)


def test_add_xp_keeps_xp_below_threshold():
    profile = UserProfile()
    for earned in (999, 1, 5000, 37, 12000):
        profile, _ = add_xp(profile, earned)
        assert 0 <= profile.xp < profile.xp_to_next_level


def test_xp_for_test():
    assert xp_for_test(result(TEST_QUICK, 70)) == 70
    assert xp_for_test(result(TEST_FULL, 1234)) == 123


def test_xp_for_deck():
    assert xp_for_deck(FlashcardResult(7, 10, 1)) == 70


def test_first_full_simulation_completes_score_tasks():
    history = [result(TEST_FULL, 1250)]
    profile, newly = evaluate_tasks(UserProfile(), history, [])
    assert [t.id for t in newly] == ["first_sim", "score_1200"]
    assert profile.completed_tasks == ("first_sim", "score_1200")
    assert profile.xp == 750


def test_completed_tasks_are_not_paid_twice():
    history = [result(TEST_FULL, 1250)]
    profile, _ = evaluate_tasks(UserProfile(), history, [])
    again, newly = evaluate_tasks(profile, history, [])
    assert newly == []
    assert again == profile


def test_completed_tasks_only_grow():
    decks = [FlashcardResult(10, 10, n) for n in range(5)]
    profile, first = evaluate_tasks(UserProfile(), [], decks[:1])
    assert [t.id for t in first] == ["perfect_flash_deck"]
    profile, second = evaluate_tasks(profile, [], decks)
    assert [t.id for t in second] == ["five_flash_decks"]
    assert profile.completed_tasks == ("perfect_flash_deck", "five_flash_decks")


def test_ten_quick_tests_task():
    history = [result(TEST_QUICK, 50) for _ in range(10)]
    _, newly = evaluate_tasks(UserProfile(), history, [])
    assert [t.id for t in newly] == ["ten_quick_tests"]


def test_task_ids_are_unique():
    ids = [t.id for t in TASKS]
    assert len(ids) == len(set(ids)) == 6


def test_add_xp_rejects_non_positive_threshold():
    with pytest.raises(ValueError):
        add_xp(UserProfile(xp_to_next_level=0), 10)
