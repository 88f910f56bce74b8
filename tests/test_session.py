"""Tests for the signed-in session and its persistence."""
from datetime import date

import pytest

from sat_prep import db
from sat_prep.errors import LoginError
from sat_prep.models import (
    SOURCE_FLASHCARD, SOURCE_QUESTION_BANK, TEST_FULL, TEST_QUICK, AnswerRecord,
    FlashcardResult, TestResult,
)
from sat_prep.session import Session, validate_login


@pytest.fixture
def session(tmp_db):
    s = Session.start(tmp_db)
    s.login("ada", "Secret1")
    return s


def test_validate_login_messages():
    with pytest.raises(LoginError, match="Username cannot be empty."):
        validate_login("   ", "Secret1")
    with pytest.raises(LoginError, match="uppercase letter and one number"):
        validate_login("ada", "secret1")
    with pytest.raises(LoginError, match="uppercase letter and one number"):
        validate_login("ada", "Secret")
    assert validate_login("  ada ", "Secret1") == "ada"


def test_failed_login_writes_nothing(tmp_db):
    s = Session.start(tmp_db)
    with pytest.raises(LoginError):
        s.login("ada", "nope")
    assert not s.is_logged_in
    assert db.get_item(tmp_db, db.USER_KEY) is None


def test_login_is_restored_on_start(tmp_db, session):
    session.complete_placement_quiz()
    restored = Session.start(tmp_db)
    assert restored.is_logged_in
    assert restored.username == "ada"
    assert restored.placement_quiz_taken


def test_fresh_login_has_defaults(session):
    assert session.profile.level == 1
    assert session.test_history == []
    assert session.error_log == []
    assert session.exam_date is None
    assert not session.placement_quiz_taken


def test_logout_clears_everything(tmp_db, session):
    session.update_profile(dream_score=1500)
    session.logout()
    assert not session.is_logged_in
    assert session.profile.dream_score == 1400
    assert not Session.start(tmp_db).is_logged_in
    assert db.get_item(tmp_db, db.PROFILE_KEY) is None


def test_profile_and_exam_date_persist(tmp_db, session):
    session.update_profile(avatar_id=3, dream_score=1500)
    session.set_exam_date(date(2026, 12, 5))
    restored = Session.start(tmp_db)
    assert restored.profile.avatar_id == 3
    assert restored.profile.dream_score == 1500
    assert restored.exam_date == date(2026, 12, 5)


def test_add_to_error_log_deduplicates(tmp_db, session, make_question):
    assert session.add_to_error_log(make_question(1), "B1", SOURCE_QUESTION_BANK)
    assert not session.add_to_error_log(make_question(1), "C1", SOURCE_FLASHCARD)
    assert len(Session.start(tmp_db).error_log) == 1


def test_complete_quick_test(tmp_db, session, make_question):
    answers = (
        AnswerRecord(make_question(1), "A1", True),
        AnswerRecord(make_question(2), "C2", False),
    )
    result = TestResult(TEST_QUICK, 50, 0, 0, answers, 30, 1000)
    award = session.complete_test(result)
    assert award.xp == 50
    assert award.levels_gained == 0
    assert session.latest_result == result
    assert session.profile.xp == 50

    restored = Session.start(tmp_db)
    assert restored.test_history == [result]
    assert [e.user_answer for e in restored.error_log] == ["C2"]
    assert restored.profile.xp == 50


def test_complete_full_simulation_pays_task_bonuses(session):
    result = TestResult(TEST_FULL, 1250, 650, 600, (), 8000, 1000)
    award = session.complete_test(result)
    assert award.xp == 125
    assert [t.id for t in award.tasks] == ["first_sim", "score_1200"]
    assert session.profile.xp == 125 + 250 + 500
    assert session.profile.completed_tasks == ("first_sim", "score_1200")


def test_complete_flashcard_deck(tmp_db, session):
    award = session.complete_flashcard_deck(FlashcardResult(7, 10, 1))
    assert award.xp == 70
    assert session.profile.xp == 70
    assert Session.start(tmp_db).flashcard_history == [FlashcardResult(7, 10, 1)]


def test_perfect_deck_task_and_level_up(session):
    session.update_profile(xp=950)
    award = session.complete_flashcard_deck(FlashcardResult(10, 10, 1))
    assert [t.id for t in award.tasks] == ["perfect_flash_deck"]
    assert award.levels_gained == 1
    # 950 + 100 + 200 = 1250 -> level 2 with 250 carried over
    assert session.profile.level == 2
    assert session.profile.xp == 250
