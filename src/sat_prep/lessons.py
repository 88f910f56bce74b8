"""Topic lessons with a single concept-check question."""
from typing import Optional

from sat_prep.generation import ContentClient, generate_lesson
from sat_prep.models import StructuredLesson
from sat_prep.topics import Topic


class LessonView:
    def __init__(self, client: ContentClient, topic: Topic, sub_topic: str) -> None:
        if sub_topic not in topic.sub_topics:
            raise ValueError(f"'{sub_topic}' is not part of {topic.name}")
        self.client = client
        self.topic = topic
        self.sub_topic = sub_topic
        self.lesson: Optional[StructuredLesson] = None
        self.selected: Optional[str] = None

    def load(self) -> StructuredLesson:
        self.lesson = generate_lesson(self.client, self.topic.name, self.sub_topic)
        self.selected = None
        return self.lesson

    def check(self, option: str) -> bool:
        """Answer the concept check; only the first answer counts."""
        if self.lesson is None:
            raise RuntimeError("Lesson not loaded")
        question = self.lesson.concept_check_question
        if self.selected is None:
            self.selected = option
        return question.is_correct(self.selected)
