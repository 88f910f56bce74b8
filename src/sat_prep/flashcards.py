"""Vocabulary flashcard decks."""
import random
from typing import Callable, Optional

from sat_prep.generation import ContentClient, generate_flashcards
from sat_prep.models import Flashcard, FlashcardResult, Question, now_ms

DECK_SIZE = 10


class FlashcardDeck:
    def __init__(
        self,
        client: ContentClient,
        record_mistake: Callable[[Question, str], None],
        rng: Optional[random.Random] = None,
    ) -> None:
        self.client = client
        self.record_mistake = record_mistake
        self.rng = rng
        self.cards: list[Flashcard] = []
        self.answers: list[Optional[bool]] = []
        self.index = 0
        self.finished = False

    def deal(self, count: int = DECK_SIZE) -> None:
        """Fetch a fresh deck; the previous deck is kept if generation fails."""
        cards = generate_flashcards(self.client, count, rng=self.rng)
        self.cards = cards
        self.answers = [None] * len(cards)
        self.index = 0
        self.finished = False

    @property
    def current(self) -> Flashcard:
        return self.cards[self.index]

    @property
    def score(self) -> int:
        return sum(1 for a in self.answers if a is True)

    def answer(self, option: str) -> bool:
        """Each card takes exactly one answer."""
        if self.answers[self.index] is not None:
            raise RuntimeError("Card already answered")
        card = self.current
        is_correct = option == card.definition
        self.answers[self.index] = is_correct
        if not is_correct:
            self.record_mistake(card.as_question(), option)
        return is_correct

    def next(self) -> Optional[FlashcardResult]:
        """Advance; on the last card, finish the deck and return its result."""
        if self.index < len(self.cards) - 1:
            self.index += 1
            return None
        return self.finish()

    def finish(self) -> FlashcardResult:
        self.finished = True
        return FlashcardResult(score=self.score, total=len(self.cards), timestamp=now_ms())
