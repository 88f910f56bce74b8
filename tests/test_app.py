import pytest
from unittest.mock import patch

from sat_prep.app import (
    VIEWS, AppState, Page, SessionExitRequested, option_for, run_quick_practice, run_test,
    session_prompt, view_results, view_topics,
)
from sat_prep.mock_test import MockTestFlow
from sat_prep.session import Session


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("sat_prep.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("sat_prep.app.Prompt.ask", return_value="MENU"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("sat_prep.app.Prompt.ask", return_value="hello"):
        assert session_prompt("test prompt") == "hello"


def test_every_page_has_a_view():
    assert set(VIEWS) == set(Page)


def test_option_for_maps_letters(make_question):
    q = make_question(1)
    assert option_for(q, "a") == "A1"
    assert option_for(q, " D ") == "D1"
    assert option_for(q, "e") is None
    assert option_for(q, "next") is None


def make_state(tmp_db, clock_values=None):
    values = iter(clock_values or [])
    return AppState(session=Session(tmp_db), client=None, clock=lambda: next(values, 0))


def start_retake(make_question, count=2):
    flow = MockTestFlow(client=None)
    flow.start_retake([make_question(n) for n in range(1, count + 1)])
    return flow


def test_run_test_collects_answers(tmp_db, make_question):
    flow = start_retake(make_question)
    with patch("sat_prep.app.Prompt.ask", side_effect=["a", "n", "b", "p", "n", "a", "n"]):
        result = run_test(make_state(tmp_db), flow)
    assert [a.user_answer for a in result.answers] == ["A1", "A2"]
    assert result.total_score == 100
    assert flow.timers_active == 0


def test_run_test_discards_input_after_timeout(tmp_db, make_question):
    flow = start_retake(make_question)
    # First answer arrives 95 seconds after the prompt was shown
    state = make_state(tmp_db, [0, 95, 0, 0])
    with patch("sat_prep.app.Prompt.ask", side_effect=["a", "n"]):
        result = run_test(state, flow)
    assert result.answers[0].user_answer is None
    assert result.total_score == 0
    assert result.duration == 95


def test_run_test_exit_closes_flow(tmp_db, make_question):
    flow = start_retake(make_question)
    with patch("sat_prep.app.Prompt.ask", side_effect=["q"]):
        with pytest.raises(SessionExitRequested):
            run_test(make_state(tmp_db), flow)
    assert flow.result is None
    assert flow.timers_active == 0


def test_view_topics_routes_to_placement_quiz(tmp_db):
    with patch("sat_prep.app.Prompt.ask", return_value="p"):
        assert view_topics(make_state(tmp_db)) == Page.PLACEMENT_QUIZ


def test_view_topics_selects_topic(tmp_db):
    state = make_state(tmp_db)
    with patch("sat_prep.app.Prompt.ask", return_value="5"):
        assert view_topics(state) == Page.SUB_TOPICS
    assert state.topic.name == "Heart of Algebra"


def test_view_results_without_tests(tmp_db):
    assert view_results(make_state(tmp_db)) is None


def test_quick_practice_back_key_navigates_without_answering(tmp_db, fake_client, questions_json):
    state = AppState(session=Session.start(tmp_db), client=fake_client(questions_json(5)))
    # next, back to the first question, answer it wrong, finish
    inputs = ["Mixed", "medium", "n", "p", "b", "f"]
    with patch("sat_prep.app.Prompt.ask", side_effect=inputs):
        run_quick_practice(state)
    assert [(e.question.question, e.user_answer) for e in state.session.error_log] == [("Question 1?", "B1")]
