"""Prompts, response schemas and typed parsing for generated content."""
import json
import logging
import random
import re
from typing import Any, Optional, Protocol

from sat_prep.errors import GenerationError, InvalidRequest
from sat_prep.gemini import ContentRequest
from sat_prep.models import (
    CommonMistake, Flashcard, IncorrectQuestion, KeyConcept, Question,
    StructuredLesson, WorkedExample,
)
from sat_prep.topics import CATEGORIES, DIFFICULTIES, is_known_topic

logger = logging.getLogger(__name__)

MOCK_TEST_QUESTIONS_COUNT = 10
PLACEMENT_QUIZ_QUESTIONS_COUNT = 10
OPTIONS_PER_QUESTION = 4
SUBJECTS = CATEGORIES + ("Mixed",)


class ContentClient(Protocol):
    def generate(self, request: ContentRequest) -> str: ...


QUESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "question": {"type": "STRING"},
        "options": {"type": "ARRAY", "items": {"type": "STRING"}},
        "correctAnswer": {"type": "STRING"},
        "explanation": {"type": "STRING"},
        "topic": {"type": "STRING"},
        "subTopic": {"type": "STRING"},
        "category": {"type": "STRING", "enum": list(CATEGORIES)},
        "passage": {"type": "STRING"},
    },
    "required": ["question", "options", "correctAnswer", "explanation", "topic", "category"],
}

QUESTION_LIST_SCHEMA = {"type": "ARRAY", "items": QUESTION_SCHEMA}

LESSON_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "introduction": {"type": "STRING"},
        "keyConcepts": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {"title": {"type": "STRING"}, "content": {"type": "STRING"}},
                "required": ["title", "content"],
            },
        },
        "workedExample": {
            "type": "OBJECT",
            "properties": {"problem": {"type": "STRING"}, "solution": {"type": "STRING"}},
            "required": ["problem", "solution"],
        },
        "commonMistakes": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {"mistake": {"type": "STRING"}, "correction": {"type": "STRING"}},
                "required": ["mistake", "correction"],
            },
        },
        "conceptCheckQuestion": QUESTION_SCHEMA,
    },
    "required": ["introduction", "keyConcepts", "workedExample", "commonMistakes", "conceptCheckQuestion"],
}

FLASHCARD_LIST_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "word": {"type": "STRING"},
            "definition": {"type": "STRING"},
            "sentence": {"type": "STRING"},
            "distractors": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
        "required": ["word", "definition", "sentence", "distractors"],
    },
}

BASE_PROMPT_SUFFIX = (
    "For each question, provide 4 multiple-choice options, the correct answer, and a brief "
    "explanation. Ensure the correct answer is one of the options. For any reading comprehension "
    "questions that refer to a passage, you MUST provide the full passage text in the 'passage' field."
)

_FENCE_RE = re.compile(r"```(?:json)?")
_PASSAGE_REF_RE = re.compile(r"\bpassage\b", re.IGNORECASE)


def parse_json_response(text: str) -> Any:
    """Strip optional ```json fences and parse. Any failure is a GenerationError."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON response: %.200s", text)
        raise GenerationError("Invalid JSON response from content API") from e


def _require_str(data: dict, key: str, required: bool = True) -> Optional[str]:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise GenerationError(f"Generated record is missing '{key}'")
        return None
    if not isinstance(value, str):
        raise GenerationError(f"Generated field '{key}' is not a string")
    return value.strip()


def parse_question(data: Any) -> Question:
    if not isinstance(data, dict):
        raise GenerationError("Generated question is not an object")
    text = _require_str(data, "question")
    options = data.get("options")
    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        raise GenerationError("Generated question has no option list")
    options = [o.strip() for o in options]
    if len(options) != OPTIONS_PER_QUESTION or len(set(options)) != OPTIONS_PER_QUESTION:
        raise GenerationError(f"Generated question needs {OPTIONS_PER_QUESTION} unique options")
    correct = _require_str(data, "correctAnswer")
    if correct not in options:
        raise GenerationError("Correct answer is not one of the options")
    category = _require_str(data, "category")
    if category not in CATEGORIES:
        raise GenerationError(f"Unknown question category '{category}'")
    passage = _require_str(data, "passage", required=False)
    if passage is None and _PASSAGE_REF_RE.search(text):
        raise GenerationError("Question refers to a passage but none was provided")
    return Question(
        question=text,
        options=tuple(options),
        correct_answer=correct,
        explanation=_require_str(data, "explanation", required=False) or "",
        topic=_require_str(data, "topic"),
        category=category,
        sub_topic=_require_str(data, "subTopic", required=False),
        passage=passage,
    )


def parse_question_list(text: str) -> list[Question]:
    data = parse_json_response(text)
    if not isinstance(data, list):
        raise GenerationError("Expected a JSON array of questions")
    return [parse_question(item) for item in data]


def _check_count(count: int) -> None:
    if not isinstance(count, int) or count <= 0:
        raise InvalidRequest("count must be a positive integer")


def _check_difficulty(difficulty: str) -> str:
    level = (difficulty or "").lower()
    if level not in DIFFICULTIES:
        raise InvalidRequest(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
    return level


def _request_questions(client: ContentClient, kind: str, prompt: str, count: int) -> list[Question]:
    questions = parse_question_list(client.generate(ContentRequest(kind, prompt, QUESTION_LIST_SCHEMA)))
    if not questions:
        raise GenerationError(f"No questions returned for {kind}")
    if len(questions) != count:
        logger.info("Asked for %d %s questions, got %d", count, kind, len(questions))
    return questions


def generate_question_batch(client: ContentClient, topic: str, count: int) -> list[Question]:
    _check_count(count)
    if not is_known_topic(topic):
        raise InvalidRequest(f"Unknown topic '{topic}'")
    prompt = (
        f'Generate {count} SAT-style practice questions on the topic of "{topic}". '
        f"Provide a variety of difficulties. {BASE_PROMPT_SUFFIX}"
    )
    return _request_questions(client, "question batch", prompt, count)


def generate_quick_practice(client: ContentClient, count: int, subject: str, difficulty: str) -> list[Question]:
    _check_count(count)
    if subject not in SUBJECTS:
        raise InvalidRequest(f"subject must be one of {', '.join(SUBJECTS)}")
    level = _check_difficulty(difficulty)
    subject_prompt = "Math and English" if subject == "Mixed" else subject
    prompt = (
        f"Generate a quick practice quiz of {count} SAT-style questions. The questions should be "
        f"from the {subject_prompt} section(s) and have a {level} difficulty level. {BASE_PROMPT_SUFFIX}"
    )
    return _request_questions(client, "quick practice", prompt, count)


def generate_mock_test(client: ContentClient) -> list[Question]:
    count = MOCK_TEST_QUESTIONS_COUNT
    prompt = (
        f"Generate a {count}-question mixed SAT practice test. Distribute the questions as evenly "
        f"as possible across all major Math and English topics. Ensure a range of difficulties. "
        f"{BASE_PROMPT_SUFFIX}"
    )
    return _request_questions(client, "mock test", prompt, count)


def generate_adaptive_module(client: ContentClient, section: str, difficulty: str, count: int) -> list[Question]:
    _check_count(count)
    if section not in CATEGORIES:
        raise InvalidRequest(f"section must be one of {', '.join(CATEGORIES)}")
    level = _check_difficulty(difficulty)
    prompt = (
        f"Generate an adaptive SAT module with {count} questions for the {section} section. "
        f"Distribute the questions as evenly as possible across all topics within the {section} "
        f"category. The difficulty should be targeted at a {level} level. {BASE_PROMPT_SUFFIX}"
    )
    return _request_questions(client, f"{section} {level} module", prompt, count)


def generate_placement_quiz(client: ContentClient) -> list[Question]:
    count = PLACEMENT_QUIZ_QUESTIONS_COUNT
    prompt = (
        f"Generate a {count}-question SAT placement quiz. It should contain a mix of core Math and "
        f"English concepts with varying difficulty to gauge a user's starting level. {BASE_PROMPT_SUFFIX}"
    )
    return _request_questions(client, "placement quiz", prompt, count)


def regenerate_mistake_questions(client: ContentClient, mistakes: list[IncorrectQuestion]) -> list[Question]:
    """One fresh question per mistake, testing the same concepts."""
    _check_count(len(mistakes))
    summary = "\n".join(f'Topic: {m.question.topic}, Question: "{m.question.question}"' for m in mistakes)
    prompt = (
        f"A student made the following mistakes:\n{summary}\n\n"
        f"Generate {len(mistakes)} new, unique SAT-style questions that test the same underlying "
        f"concepts as the questions the student got wrong. Do not repeat the original questions. "
        f"{BASE_PROMPT_SUFFIX}"
    )
    return parse_question_list(client.generate(ContentRequest("mistake retake", prompt, QUESTION_LIST_SCHEMA)))


def generate_lesson(client: ContentClient, main_topic: str, sub_topic: str) -> StructuredLesson:
    if not is_known_topic(main_topic) or not is_known_topic(sub_topic):
        raise InvalidRequest(f"Unknown lesson topic '{main_topic}' / '{sub_topic}'")
    prompt = (
        f'Create a structured lesson plan for an SAT prep student on the topic "{sub_topic}" which is '
        f'part of the broader category "{main_topic}". The lesson should be highly example-driven and '
        "minimize long paragraphs of text. Focus on showing concepts through clear, step-by-step "
        "examples. It should include:\n"
        "1. A brief introduction to the concept.\n"
        "2. Key concepts, each explained with a simple definition and a clear example.\n"
        "3. A detailed, step-by-step worked example of a typical SAT problem for this topic.\n"
        '4. Common mistakes, each illustrated with a "what not to do" example and a corrected version '
        "showing the right approach.\n"
        "5. One concept check question with 4 options and a detailed explanation. For the concept check "
        "question, if it's a reading comprehension question, you MUST include a passage."
    )
    data = parse_json_response(client.generate(ContentRequest("lesson", prompt, LESSON_SCHEMA)))
    if not isinstance(data, dict):
        raise GenerationError("Expected a JSON object for the lesson")
    try:
        example = data["workedExample"]
        return StructuredLesson(
            introduction=_require_str(data, "introduction"),
            key_concepts=tuple(
                KeyConcept(_require_str(c, "title"), _require_str(c, "content")) for c in data["keyConcepts"]
            ),
            worked_example=WorkedExample(_require_str(example, "problem"), _require_str(example, "solution")),
            common_mistakes=tuple(
                CommonMistake(_require_str(m, "mistake"), _require_str(m, "correction"))
                for m in data["commonMistakes"]
            ),
            concept_check_question=parse_question(data["conceptCheckQuestion"]),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise GenerationError("Lesson is missing required sections") from e


def generate_flashcards(client: ContentClient, count: int, rng: Optional[random.Random] = None) -> list[Flashcard]:
    _check_count(count)
    rng = rng or random.Random()
    prompt = (
        f"Generate {count} SAT vocabulary flashcards. For each flashcard, provide a challenging word, "
        "its correct definition, an example sentence, and three incorrect but plausible definitions "
        "to be used as distractors in a multiple-choice quiz."
    )
    data = parse_json_response(client.generate(ContentRequest("flashcards", prompt, FLASHCARD_LIST_SCHEMA)))
    if not isinstance(data, list) or not data:
        raise GenerationError("Expected a non-empty JSON array of flashcards")
    cards = []
    for item in data:
        if not isinstance(item, dict):
            raise GenerationError("Generated flashcard is not an object")
        definition = _require_str(item, "definition")
        distractors = item.get("distractors")
        if not isinstance(distractors, list) or not all(isinstance(d, str) for d in distractors):
            raise GenerationError("Generated flashcard has no distractors")
        distractors = [d.strip() for d in distractors]
        if len(distractors) != 3 or len(set(distractors)) != 3 or definition in distractors:
            raise GenerationError("Flashcard needs three distinct distractors unlike the definition")
        options = distractors + [definition]
        rng.shuffle(options)
        cards.append(Flashcard(
            word=_require_str(item, "word"),
            definition=definition,
            sentence=_require_str(item, "sentence"),
            options=tuple(options),
        ))
    return cards


def get_mistake_feedback(client: ContentClient, question: Question, user_answer: str) -> str:
    prompt = (
        "A student answered an SAT question incorrectly. Provide constructive feedback on why their "
        "answer might be wrong and suggest a concept to review. Keep the feedback concise and encouraging.\n"
        f'Question: "{question.question}"\n'
        f"Options: {', '.join(question.options)}\n"
        f'Correct Answer: "{question.correct_answer}"\n'
        f'Student\'s incorrect answer: "{user_answer}"'
    )
    text = client.generate(ContentRequest("mistake feedback", prompt))
    if not text or not text.strip():
        raise GenerationError("Empty feedback from content API")
    return text.strip()
