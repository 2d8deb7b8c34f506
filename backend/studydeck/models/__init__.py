from studydeck.models.deck import Deck, DeckColor, DeckCreate, DeckList, DeckUpdate
from studydeck.models.flashcard import (
    DeckStats,
    DueCounts,
    DueFlashcards,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardStats,
    FlashcardUpdate,
)
from studydeck.models.review import (
    ReviewEvent,
    ReviewEventList,
    ReviewRequest,
    ReviewResult,
)

__all__ = [
    "Deck",
    "DeckColor",
    "DeckCreate",
    "DeckList",
    "DeckStats",
    "DeckUpdate",
    "DueCounts",
    "DueFlashcards",
    "Flashcard",
    "FlashcardCreate",
    "FlashcardList",
    "FlashcardStats",
    "FlashcardUpdate",
    "ReviewEvent",
    "ReviewEventList",
    "ReviewRequest",
    "ReviewResult",
]
