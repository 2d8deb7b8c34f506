from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite
from fastapi import APIRouter, Depends, Query

from studydeck.config import settings
from studydeck.db.sqlite import get_db, get_due_flashcards
from studydeck.models.flashcard import DueCounts, DueFlashcards
from studydeck.services.scheduler import CardStage, card_stage

router = APIRouter()


@router.get("/due", response_model=DueFlashcards)
async def get_due(
    deck_id: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    db: aiosqlite.Connection = Depends(get_db),
) -> DueFlashcards:
    """Cards due for review today across all decks (or one deck), oldest first."""
    limit = min(limit or settings.due_limit_default, settings.due_limit_max)
    cards = await get_due_flashcards(
        db, datetime.now(timezone.utc), deck_id=deck_id, limit=limit
    )

    stages = [card_stage(c.schedule()) for c in cards]
    learning = sum(1 for s in stages if s is CardStage.LEARNING)
    new = sum(1 for s in stages if s is CardStage.NEW)
    return DueFlashcards(
        flashcards=cards,
        stats=DueCounts(
            total=len(cards),
            new=new,
            learning=learning,
            review=len(cards) - new - learning,
        ),
        count=len(cards),
    )
