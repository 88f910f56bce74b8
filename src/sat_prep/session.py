"""Signed-in session: profile, histories and the error log, with explicit persistence.

Every mutating method writes the affected slots before it returns, so a
restart always sees the state left by the last completed action.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sat_prep import db
from sat_prep.error_log import add_batch, add_single
from sat_prep.errors import LoginError
from sat_prep.gamification import Task, add_xp, evaluate_tasks, xp_for_deck, xp_for_test
from sat_prep.models import (
    FlashcardResult, IncorrectQuestion, Question, TestResult, UserProfile,
)

logger = logging.getLogger(__name__)

_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")


def validate_login(username: str, password: str) -> str:
    """Return the trimmed username or raise LoginError with the message to show."""
    name = (username or "").strip()
    if not name:
        raise LoginError("Username cannot be empty.")
    if not _UPPER_RE.search(password or "") or not _DIGIT_RE.search(password or ""):
        raise LoginError("Password must contain at least one uppercase letter and one number.")
    return name


@dataclass
class Award:
    """What a completed activity earned, for the UI to announce."""
    xp: int
    levels_gained: int = 0
    tasks: list[Task] = field(default_factory=list)


class Session:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self.username: Optional[str] = None
        self._reset()

    def _reset(self) -> None:
        self.placement_quiz_taken = False
        self.profile = UserProfile()
        self.test_history: list[TestResult] = []
        self.flashcard_history: list[FlashcardResult] = []
        self.error_log: list[IncorrectQuestion] = []
        self.exam_date: Optional[date] = None
        self.latest_result: Optional[TestResult] = None

    # -- load / save boundaries ----------------------------------------

    @classmethod
    def start(cls, db_path: str) -> "Session":
        """Open the store and reload a previous login if there is one."""
        db.init_db(db_path)
        session = cls(db_path)
        username = db.get_item(db_path, db.USER_KEY)
        if username:
            session.username = username
            session._load()
        return session

    @property
    def is_logged_in(self) -> bool:
        return self.username is not None

    def _load(self) -> None:
        p = self.db_path
        self.placement_quiz_taken = db.get_item(p, db.PLACEMENT_QUIZ_KEY) == "true"
        self.error_log = [IncorrectQuestion.from_dict(d) for d in db.get_json(p, db.ERROR_LOG_KEY, [])]
        self.test_history = [TestResult.from_dict(d) for d in db.get_json(p, db.TEST_HISTORY_KEY, [])]
        self.flashcard_history = [
            FlashcardResult.from_dict(d) for d in db.get_json(p, db.FLASHCARD_HISTORY_KEY, [])
        ]
        stored = db.get_json(p, db.PROFILE_KEY)
        self.profile = UserProfile.from_dict(stored) if stored else UserProfile()
        exam_date = db.get_item(p, db.EXAM_DATE_KEY)
        self.exam_date = date.fromisoformat(exam_date) if exam_date else None
        logger.info(
            "Loaded session for %s: %d tests, %d decks, %d logged mistakes",
            self.username, len(self.test_history), len(self.flashcard_history), len(self.error_log),
        )

    def login(self, username: str, password: str) -> None:
        name = validate_login(username, password)
        self.username = name
        db.set_item(self.db_path, db.USER_KEY, name)
        self._load()

    def logout(self) -> None:
        db.clear_storage(self.db_path)
        self.username = None
        self._reset()

    def _save_profile(self) -> None:
        db.set_json(self.db_path, db.PROFILE_KEY, self.profile.to_dict())

    def _save_error_log(self) -> None:
        db.set_json(self.db_path, db.ERROR_LOG_KEY, [e.to_dict() for e in self.error_log])

    # -- mutations -------------------------------------------------------

    def complete_placement_quiz(self) -> None:
        self.placement_quiz_taken = True
        db.set_item(self.db_path, db.PLACEMENT_QUIZ_KEY, "true")

    def update_profile(self, **changes) -> UserProfile:
        self.profile = self.profile.update(**changes)
        self._save_profile()
        return self.profile

    def set_exam_date(self, exam_date: date) -> None:
        self.exam_date = exam_date
        db.set_item(self.db_path, db.EXAM_DATE_KEY, exam_date.isoformat())

    def add_to_error_log(self, question: Question, user_answer: str, source: str) -> bool:
        self.error_log, added = add_single(self.error_log, question, user_answer, source)
        if added:
            self._save_error_log()
        return added

    def _award(self, earned: int) -> Award:
        start_level = self.profile.level
        self.profile, _ = add_xp(self.profile, earned)
        self.profile, tasks = evaluate_tasks(self.profile, self.test_history, self.flashcard_history)
        self._save_profile()
        if tasks:
            logger.info("Tasks completed: %s", ", ".join(t.id for t in tasks))
        return Award(xp=earned, levels_gained=self.profile.level - start_level, tasks=tasks)

    def complete_test(self, result: TestResult) -> Award:
        self.latest_result = result
        self.test_history = self.test_history + [result]
        db.set_json(self.db_path, db.TEST_HISTORY_KEY, [t.to_dict() for t in self.test_history])
        self.error_log = add_batch(self.error_log, result)
        self._save_error_log()
        return self._award(xp_for_test(result))

    def complete_flashcard_deck(self, result: FlashcardResult) -> Award:
        self.flashcard_history = self.flashcard_history + [result]
        db.set_json(self.db_path, db.FLASHCARD_HISTORY_KEY, [f.to_dict() for f in self.flashcard_history])
        return self._award(xp_for_deck(result))
