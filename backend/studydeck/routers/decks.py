from datetime import datetime, timezone

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from studydeck.db.sqlite import (
    create_deck,
    delete_deck,
    get_db,
    get_deck,
    get_deck_flashcards,
    get_deck_stats,
    list_decks,
    update_deck,
)
from studydeck.models.deck import Deck, DeckCreate, DeckList, DeckUpdate
from studydeck.models.flashcard import DeckStats
from studydeck.services.export import deck_to_csv, export_filename

router = APIRouter()


@router.post("/", response_model=Deck, status_code=201)
async def create(body: DeckCreate, db: aiosqlite.Connection = Depends(get_db)):
    return await create_deck(db, body)


@router.get("/", response_model=DeckList)
async def list_all(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_decks(db, offset, limit)
    return DeckList(items=items, total=total, offset=offset, limit=limit)


@router.get("/{deck_id}", response_model=Deck)
async def get_one(deck_id: str, db: aiosqlite.Connection = Depends(get_db)):
    deck = await get_deck(db, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.get("/{deck_id}/stats", response_model=DeckStats)
async def deck_stats(
    deck_id: str, db: aiosqlite.Connection = Depends(get_db)
) -> DeckStats:
    """Total cards, due today, and new/learning/review counts for a deck."""
    if not await get_deck(db, deck_id):
        raise HTTPException(status_code=404, detail="Deck not found")
    return DeckStats(**await get_deck_stats(db, deck_id, datetime.now(timezone.utc)))


@router.get("/{deck_id}/export")
async def export_deck(deck_id: str, db: aiosqlite.Connection = Depends(get_db)):
    """Download the deck as Anki-compatible CSV."""
    deck = await get_deck(db, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    cards = await get_deck_flashcards(db, deck_id)
    if not cards:
        raise HTTPException(status_code=400, detail="No flashcards to export in this deck")

    filename = export_filename(deck.name, datetime.now(timezone.utc).date())
    return Response(
        content=deck_to_csv(cards),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/{deck_id}", response_model=Deck)
async def update(
    deck_id: str, body: DeckUpdate, db: aiosqlite.Connection = Depends(get_db)
):
    deck = await update_deck(db, deck_id, body)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.delete("/{deck_id}", status_code=204)
async def delete(deck_id: str, db: aiosqlite.Connection = Depends(get_db)):
    deleted = await delete_deck(db, deck_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Deck not found")
