import json

import pytest

from sat_prep.errors import GenerationError
from sat_prep.models import Question


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_prep.db")
    return db_path


class FakeClient:
    """Content client that replays canned responses in order.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if not self.responses:
            raise GenerationError("No canned response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def question_dict(n, topic="Heart of Algebra", category="Math", **extra):
    data = {
        "question": f"Question {n}?",
        "options": [f"A{n}", f"B{n}", f"C{n}", f"D{n}"],
        "correctAnswer": f"A{n}",
        "explanation": f"Because A{n}.",
        "topic": topic,
        "category": category,
    }
    data.update(extra)
    return data


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def questions_json():
    def build(count, start=1, **kwargs):
        return json.dumps([question_dict(n, **kwargs) for n in range(start, start + count)])
    return build


@pytest.fixture
def make_question():
    def build(n, **kwargs):
        return Question.from_dict(question_dict(n, **kwargs))
    return build
