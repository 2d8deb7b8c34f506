"""
Flashcard & review router (mounted under /decks/{deck_id}/flashcards).

Endpoints:
  POST   /                   create a card in the deck
  GET    /                   list cards in the deck
  GET    /{id}               single card
  PATCH  /{id}               edit front / back
  DELETE /{id}               delete card (and its review history)
  GET    /{id}/stats         learning stage, difficulty, next-review description
  GET    /{id}/reviews       review history, newest first
  POST   /{id}/review        submit a rating, run SM-2, persist schedule + review row
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studydeck.db.sqlite import (
    apply_review,
    create_flashcard,
    delete_flashcard,
    get_db,
    get_deck,
    get_flashcard,
    list_flashcards,
    list_reviews,
    update_flashcard_content,
)
from studydeck.models.flashcard import (
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardStats,
    FlashcardUpdate,
)
from studydeck.models.review import ReviewEventList, ReviewRequest, ReviewResult
from studydeck.services import scheduler
from studydeck.services.scheduler import InvalidCardState, InvalidRating

logger = logging.getLogger(__name__)
router = APIRouter()


async def _require_deck(db: aiosqlite.Connection, deck_id: str) -> None:
    if not await get_deck(db, deck_id):
        raise HTTPException(status_code=404, detail="Deck not found")


async def _require_card(
    db: aiosqlite.Connection, deck_id: str, card_id: str
) -> Flashcard:
    await _require_deck(db, deck_id)
    card = await get_flashcard(db, card_id, deck_id=deck_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.post("/", response_model=Flashcard, status_code=201)
async def create_card(
    deck_id: str,
    body: FlashcardCreate,
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    await _require_deck(db, deck_id)
    return await create_flashcard(db, deck_id, body)


@router.get("/", response_model=FlashcardList)
async def list_cards(
    deck_id: str,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    await _require_deck(db, deck_id)
    items, total = await list_flashcards(db, deck_id, offset=offset, limit=limit)
    return FlashcardList(items=items, total=total)


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    deck_id: str,
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    return await _require_card(db, deck_id, card_id)


@router.patch("/{card_id}", response_model=Flashcard)
async def edit_card(
    deck_id: str,
    card_id: str,
    body: FlashcardUpdate,
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    await _require_card(db, deck_id, card_id)
    updated = await update_flashcard_content(db, card_id, body)
    if not updated:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return updated


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    deck_id: str,
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    await _require_card(db, deck_id, card_id)
    deleted = await delete_flashcard(db, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")


@router.get("/{card_id}/stats", response_model=FlashcardStats)
async def card_stats(
    deck_id: str,
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardStats:
    card = await _require_card(db, deck_id, card_id)
    stats = scheduler.card_statistics(card.schedule(), datetime.now(timezone.utc))
    return FlashcardStats(**dataclasses.asdict(stats))


@router.get("/{card_id}/reviews", response_model=ReviewEventList)
async def card_reviews(
    deck_id: str,
    card_id: str,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewEventList:
    await _require_card(db, deck_id, card_id)
    items, total = await list_reviews(db, card_id, offset=offset, limit=limit)
    return ReviewEventList(items=items, total=total)


@router.post("/{card_id}/review", response_model=ReviewResult)
async def review_card(
    deck_id: str,
    card_id: str,
    body: ReviewRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Submit a rating (0=Wrong, 2=Hard, 3=Good, 5=Easy) and reschedule the card."""
    card = await _require_card(db, deck_id, card_id)
    previous = card.schedule()
    now = datetime.now(timezone.utc)

    try:
        outcome = scheduler.review(previous, body.rating, now)
    except InvalidRating as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except InvalidCardState as e:
        logger.error("Stored schedule for card %s is invalid: %s", card_id, e)
        raise HTTPException(status_code=409, detail=str(e)) from e

    updated = await apply_review(
        db, card_id, previous, outcome.schedule, outcome.quality, body.rating
    )
    if updated is None:
        logger.warning("Concurrent review detected for card %s; nothing written", card_id)
        raise HTTPException(
            status_code=409,
            detail="Flashcard was reviewed concurrently; reload and retry",
        )

    new = outcome.schedule
    logger.info(
        "Reviewed card %s: quality=%d interval=%d ease=%.2f",
        card_id, outcome.quality, new.interval, new.ease_factor,
    )
    return ReviewResult(
        id=card_id,
        quality=outcome.quality,
        ease_factor=new.ease_factor,
        interval=new.interval,
        repetitions=new.repetitions,
        last_reviewed=new.last_reviewed,
        next_review=new.next_review,
        next_review_in=scheduler.describe_interval(new.next_review, now),
    )
