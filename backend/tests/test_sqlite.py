from contextlib import asynccontextmanager
from datetime import timedelta

import aiosqlite
import pytest

from studydeck.db import init_all_databases
from studydeck.db.sqlite import (
    apply_review,
    create_deck,
    create_flashcard,
    delete_deck,
    get_db,
    get_deck,
    get_deck_stats,
    get_due_flashcards,
    get_flashcard,
    list_reviews,
)
from studydeck.models.deck import DeckCreate
from studydeck.models.flashcard import FlashcardCreate
from studydeck.services.scheduler import review


@asynccontextmanager
async def open_db(data_dir):
    await init_all_databases(data_dir)
    connections = get_db()
    db = await anext(connections)
    try:
        yield db
    finally:
        await connections.aclose()


async def _deck_with_cards(db: aiosqlite.Connection, count: int):
    deck = await create_deck(db, DeckCreate(name="Spanish"))
    cards = [
        await create_flashcard(
            db, deck.id, FlashcardCreate(front=f"word {i}", back=f"palabra {i}")
        )
        for i in range(count)
    ]
    return deck, cards


@pytest.mark.asyncio
async def test_new_card_has_default_schedule(data_dir):
    async with open_db(data_dir) as db:
        _, (card,) = await _deck_with_cards(db, 1)
        assert card.ease_factor == 2.5
        assert card.interval == 0
        assert card.repetitions == 0
        assert card.last_reviewed is None
        assert card.next_review is None


@pytest.mark.asyncio
async def test_apply_review_persists_schedule_and_history(data_dir, now):
    async with open_db(data_dir) as db:
        _, (card,) = await _deck_with_cards(db, 1)
        outcome = review(card.schedule(), 5, now)

        updated = await apply_review(
            db, card.id, card.schedule(), outcome.schedule, outcome.quality, 5
        )

        assert updated is not None
        assert updated.schedule() == outcome.schedule
        events, total = await list_reviews(db, card.id)
        assert total == 1
        assert events[0].quality == 5
        assert events[0].rating == 5
        assert events[0].reviewed_at == now


@pytest.mark.asyncio
async def test_apply_review_rejects_stale_snapshot(data_dir, now):
    async with open_db(data_dir) as db:
        _, (card,) = await _deck_with_cards(db, 1)
        stale = card.schedule()

        first = review(stale, 3, now)
        assert await apply_review(db, card.id, stale, first.schedule, first.quality, 3)

        # A second writer that loaded the card before the first review landed
        second = review(stale, 0, now + timedelta(seconds=1))
        result = await apply_review(
            db, card.id, stale, second.schedule, second.quality, 0
        )

        assert result is None
        stored = await get_flashcard(db, card.id)
        assert stored.repetitions == 1
        _, total = await list_reviews(db, card.id)
        assert total == 1


@pytest.mark.asyncio
async def test_due_cards_exclude_future_reviews(data_dir, now):
    async with open_db(data_dir) as db:
        deck, (fresh, reviewed) = await _deck_with_cards(db, 2)
        outcome = review(reviewed.schedule(), 3, now)
        await apply_review(
            db, reviewed.id, reviewed.schedule(), outcome.schedule, outcome.quality, 3
        )

        due_today = await get_due_flashcards(db, now, deck_id=deck.id)
        assert [c.id for c in due_today] == [fresh.id]

        due_tomorrow = await get_due_flashcards(db, now + timedelta(days=1))
        assert [c.id for c in due_tomorrow] == [fresh.id, reviewed.id]


@pytest.mark.asyncio
async def test_deck_stats(data_dir, now):
    async with open_db(data_dir) as db:
        deck, cards = await _deck_with_cards(db, 3)
        outcome = review(cards[0].schedule(), 3, now)
        await apply_review(
            db, cards[0].id, cards[0].schedule(), outcome.schedule, outcome.quality, 3
        )

        stats = await get_deck_stats(db, deck.id, now)
        assert stats == {
            "deck_id": deck.id,
            "total": 3,
            "due": 2,
            "new": 2,
            "learning": 1,
            "review": 0,
        }
        assert (await get_deck(db, deck.id)).card_count == 3


@pytest.mark.asyncio
async def test_deleting_deck_cascades(data_dir, now):
    async with open_db(data_dir) as db:
        deck, (card,) = await _deck_with_cards(db, 1)
        outcome = review(card.schedule(), 0, now)
        await apply_review(db, card.id, card.schedule(), outcome.schedule, 0, 0)

        assert await delete_deck(db, deck.id)
        assert await get_flashcard(db, card.id) is None
        _, total = await list_reviews(db, card.id)
        assert total == 0
