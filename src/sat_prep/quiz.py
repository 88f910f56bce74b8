"""Practice flows: topic question bank, quick practice and the placement quiz."""
import logging
from typing import Callable, Optional

from sat_prep.errors import GenerationError
from sat_prep.generation import (
    ContentClient, generate_placement_quiz, generate_question_batch,
    generate_quick_practice, get_mistake_feedback,
)
from sat_prep.mock_test import round_half_up
from sat_prep.models import Question
from sat_prep.timers import TimerGroup

logger = logging.getLogger(__name__)

INITIAL_BATCH_SIZE = 25
MORE_BATCH_SIZE = 10
QUICK_PRACTICE_SIZE = 5
FEEDBACK_UNAVAILABLE = "Could not load feedback for this mistake."

# Called with (question, user_answer) whenever an answer is wrong
MistakeRecorder = Callable[[Question, str], None]


class QuestionBank:
    """Endless practice on one topic, fetched in batches."""

    def __init__(self, client: ContentClient, record_mistake: MistakeRecorder) -> None:
        self.client = client
        self.record_mistake = record_mistake
        self.topic: Optional[str] = None
        self.cache: list[Question] = []
        self.index = 0
        self.selected: Optional[str] = None
        self.feedback: Optional[str] = None

    def load_topic(self, topic: str) -> None:
        self.topic = topic
        self.cache = []
        self.index = 0
        self._clear_answer()
        self.cache = generate_question_batch(self.client, topic, INITIAL_BATCH_SIZE)

    @property
    def current(self) -> Optional[Question]:
        if self.index < len(self.cache):
            return self.cache[self.index]
        return None

    @property
    def is_answered(self) -> bool:
        return self.selected is not None

    @property
    def at_end_of_cache(self) -> bool:
        return self.index >= len(self.cache) - 1

    def answer(self, option: str) -> bool:
        question = self.current
        if question is None:
            raise RuntimeError("No question loaded")
        if self.is_answered:
            raise RuntimeError("Question already answered")
        self.selected = option
        is_correct = question.is_correct(option)
        if not is_correct:
            self.record_mistake(question, option)
            self.feedback = self._fetch_feedback(question, option)
        return is_correct

    def _fetch_feedback(self, question: Question, option: str) -> str:
        try:
            return get_mistake_feedback(self.client, question, option)
        except GenerationError as e:
            logger.warning("Failed to get feedback: %s", e)
            return FEEDBACK_UNAVAILABLE

    def next_question(self) -> None:
        """Move on, fetching another batch when the cache runs out."""
        if self.at_end_of_cache:
            more = generate_question_batch(self.client, self.topic, MORE_BATCH_SIZE)
            self.cache = self.cache + more
        self.index += 1
        self._clear_answer()

    def _clear_answer(self) -> None:
        self.selected = None
        self.feedback = None


class QuickPractice:
    """A short timed quiz by subject and difficulty."""

    def __init__(self, client: ContentClient, record_mistake: MistakeRecorder) -> None:
        self.client = client
        self.record_mistake = record_mistake
        self.questions: list[Question] = []
        self.answers: list[Optional[str]] = []
        self.current = 0
        self.seconds = 0
        self._timers = TimerGroup()

    def start(self, subject: str, difficulty: str, count: int = QUICK_PRACTICE_SIZE) -> None:
        self._timers.cancel_all()
        self.questions = generate_quick_practice(self.client, count, subject, difficulty)
        self.answers = [None] * len(self.questions)
        self.current = 0
        self.seconds = 0
        self._timers.every(1, self._tick)

    def _tick(self) -> None:
        self.seconds += 1

    def advance_clock(self, seconds: float) -> None:
        self._timers.advance(seconds)

    def answer(self, option: str) -> None:
        self.answers[self.current] = option

    def back(self) -> None:
        self.current = max(0, self.current - 1)

    def next(self) -> None:
        self.current = min(len(self.questions) - 1, self.current + 1)

    def finish(self) -> int:
        """Stop the clock, log every wrong answer and return the score."""
        self._timers.cancel_all()
        for q, a in zip(self.questions, self.answers):
            if a and not q.is_correct(a):
                self.record_mistake(q, a)
        return self.score

    def close(self) -> None:
        self._timers.cancel_all()

    @property
    def score(self) -> int:
        return sum(1 for q, a in zip(self.questions, self.answers) if q.is_correct(a))

    @property
    def timers_active(self) -> int:
        return self._timers.active


def load_placement_quiz(client: ContentClient) -> list[Question]:
    return generate_placement_quiz(client)


def score_answers(questions: list[Question], answers: list) -> int:
    return sum(1 for q, a in zip(questions, answers) if q.is_correct(a))


def placement_recommendation(score: int, total: int) -> str:
    percentage = round_half_up(score / total * 100) if total else 0
    if percentage < 40:
        return ("It looks like you're just getting started. We recommend exploring the 'Topics' "
                "section to build a strong foundation in each subject area.")
    if percentage < 70:
        return ("You have a solid base! We suggest using the 'Question Bank' to practice specific "
                "topics and strengthen your skills.")
    return ("You're off to a great start! You seem ready to challenge yourself with 'Mock Tests' "
            "to simulate the real exam experience.")
