from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from studydeck.services.scheduler import INITIAL_EASE, CardSchedule, CardStage


class Flashcard(BaseModel):
    id: str
    deck_id: str
    front: str
    back: str
    ease_factor: float = INITIAL_EASE
    interval: int = 0             # days until next review; 0 = never scheduled
    repetitions: int = 0          # consecutive passing reviews
    last_reviewed: datetime | None = None
    next_review: datetime | None = None  # None = due immediately
    created_at: str
    updated_at: str

    def schedule(self) -> CardSchedule:
        return CardSchedule(
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            last_reviewed=self.last_reviewed,
            next_review=self.next_review,
        )


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)


class FlashcardUpdate(BaseModel):
    front: str | None = Field(default=None, min_length=1)
    back: str | None = Field(default=None, min_length=1)


class FlashcardStats(BaseModel):
    stage: CardStage
    difficulty: int         # 100 / ease_factor, higher = harder
    review_count: int
    current_interval: int
    next_review_in: str
    is_due: bool
    last_reviewed: datetime | None


class DeckStats(BaseModel):
    deck_id: str
    total: int
    due: int
    new: int
    learning: int
    review: int


class DueCounts(BaseModel):
    total: int
    new: int
    learning: int
    review: int


class DueFlashcards(BaseModel):
    flashcards: list[Flashcard]
    stats: DueCounts
    count: int
