"""Data classes for the SAT prep domain model.

Every record converts to and from the camelCase JSON stored in the
persistent slots (see ``sat_prep.db``).
"""
import time
from dataclasses import dataclass, field, replace
from typing import Optional

TEST_QUICK = "Quick"
TEST_FULL = "Full Simulation"
TEST_RETAKE = "Retake"

SOURCE_MOCK_TEST = "Mock Test"
SOURCE_QUESTION_BANK = "Question Bank"
SOURCE_FLASHCARD = "Flashcard"
SOURCES = (SOURCE_MOCK_TEST, SOURCE_QUESTION_BANK, SOURCE_FLASHCARD)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Question:
    question: str
    options: tuple
    correct_answer: str
    explanation: str
    topic: str
    category: Optional[str] = None
    sub_topic: Optional[str] = None
    passage: Optional[str] = None

    def is_correct(self, answer: Optional[str]) -> bool:
        return answer is not None and answer == self.correct_answer

    def to_dict(self) -> dict:
        data = {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "topic": self.topic,
        }
        if self.category is not None:
            data["category"] = self.category
        if self.sub_topic is not None:
            data["subTopic"] = self.sub_topic
        if self.passage is not None:
            data["passage"] = self.passage
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            question=data["question"],
            options=tuple(data["options"]),
            correct_answer=data["correctAnswer"],
            explanation=data.get("explanation", ""),
            topic=data.get("topic", ""),
            category=data.get("category"),
            sub_topic=data.get("subTopic"),
            passage=data.get("passage"),
        )


@dataclass(frozen=True)
class AnswerRecord:
    question: Question
    user_answer: Optional[str]
    is_correct: bool

    def to_dict(self) -> dict:
        return {
            "question": self.question.to_dict(),
            "userAnswer": self.user_answer,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerRecord":
        return cls(
            question=Question.from_dict(data["question"]),
            user_answer=data.get("userAnswer"),
            is_correct=bool(data["isCorrect"]),
        )


@dataclass(frozen=True)
class TestResult:
    test_type: str
    total_score: int
    english_score: int
    math_score: int
    answers: tuple
    duration: int
    timestamp: int

    __test__ = False  # not a pytest test class

    def to_dict(self) -> dict:
        return {
            "testType": self.test_type,
            "totalScore": self.total_score,
            "englishScore": self.english_score,
            "mathScore": self.math_score,
            "answers": [a.to_dict() for a in self.answers],
            "duration": self.duration,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TestResult":
        return cls(
            test_type=data["testType"],
            total_score=data["totalScore"],
            english_score=data.get("englishScore", 0),
            math_score=data.get("mathScore", 0),
            answers=tuple(AnswerRecord.from_dict(a) for a in data.get("answers", [])),
            duration=data.get("duration", 0),
            timestamp=data["timestamp"],
        )


@dataclass(frozen=True)
class IncorrectQuestion:
    question: Question
    user_answer: str
    timestamp: int
    source: str

    def to_dict(self) -> dict:
        return {
            "question": self.question.to_dict(),
            "userAnswer": self.user_answer,
            "timestamp": self.timestamp,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IncorrectQuestion":
        return cls(
            question=Question.from_dict(data["question"]),
            user_answer=data["userAnswer"],
            timestamp=data["timestamp"],
            source=data["source"],
        )


@dataclass(frozen=True)
class FlashcardResult:
    score: int
    total: int
    timestamp: int

    def to_dict(self) -> dict:
        return {"score": self.score, "total": self.total, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict) -> "FlashcardResult":
        return cls(score=data["score"], total=data["total"], timestamp=data["timestamp"])


@dataclass(frozen=True)
class UserProfile:
    level: int = 1
    xp: int = 0
    xp_to_next_level: int = 1000
    avatar_id: int = 0
    dream_score: int = 1400
    completed_tasks: tuple = field(default_factory=tuple)

    def update(self, **changes) -> "UserProfile":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "xp": self.xp,
            "xpToNextLevel": self.xp_to_next_level,
            "avatarId": self.avatar_id,
            "dreamScore": self.dream_score,
            "completedTasks": list(self.completed_tasks),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        # Older snapshots lack the avatar, dream score and task fields
        defaults = cls()
        to_next = data.get("xpToNextLevel", defaults.xp_to_next_level)
        if not isinstance(to_next, int) or to_next <= 0:
            to_next = defaults.xp_to_next_level
        return cls(
            level=data.get("level", defaults.level),
            xp=data.get("xp", defaults.xp),
            xp_to_next_level=to_next,
            avatar_id=data.get("avatarId", defaults.avatar_id),
            dream_score=data.get("dreamScore", defaults.dream_score),
            completed_tasks=tuple(data.get("completedTasks") or ()),
        )


@dataclass(frozen=True)
class Flashcard:
    word: str
    definition: str
    sentence: str
    options: tuple

    def as_question(self) -> Question:
        """The vocabulary question logged when this card is answered wrong."""
        return Question(
            question=f'What is the definition of "{self.word}"?',
            options=self.options,
            correct_answer=self.definition,
            explanation=f'The word "{self.word}" means: {self.definition}. Example: "{self.sentence}"',
            topic="Vocabulary",
            category="English",
        )


@dataclass(frozen=True)
class KeyConcept:
    title: str
    content: str


@dataclass(frozen=True)
class WorkedExample:
    problem: str
    solution: str


@dataclass(frozen=True)
class CommonMistake:
    mistake: str
    correction: str


@dataclass(frozen=True)
class StructuredLesson:
    introduction: str
    key_concepts: tuple
    worked_example: WorkedExample
    common_mistakes: tuple
    concept_check_question: Question
